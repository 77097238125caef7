from __future__ import annotations

import logging
from typing import Any, Dict

from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


class MountRootfsStep:
    step_id = "30_mount_rootfs"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        rootfs_image = state["paths"]["rootfs_image"]
        logger.info("Mounting %s (squashfs)", ctx.cfg.rootfs_name)
        mp = ctx.work.mount(
            rootfs_image,
            ctx.work.rootfs_mount,
            fstype="squashfs",
            failure_hint="squashfs mount failed; ensure squashfs is available in your kernel.",
        )
        state["paths"]["rootfs_mount"] = str(mp)
        return state
