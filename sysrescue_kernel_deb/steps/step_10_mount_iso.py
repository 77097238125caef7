from __future__ import annotations

import logging
from typing import Any, Dict

from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


class MountIsoStep:
    step_id = "10_mount_iso"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Mounting ISO: %s", ctx.iso_path)
        mp = ctx.work.mount(
            ctx.iso_path,
            ctx.work.iso_mount,
            fstype="iso9660",
            failure_hint=f"Could not mount {ctx.iso_path} as an iso9660 image.",
        )
        state.setdefault("paths", {})["iso_mount"] = str(mp)
        return state
