from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..lib.debpkg import build_deb
from ..pipeline import BuildCtx
from .step_60_write_control import package_info

logger = logging.getLogger(__name__)


class BuildDebStep:
    step_id = "70_build_deb"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        info = package_info(ctx, state)
        deb_path = ctx.output_dir / info.deb_filename
        logger.info("Building %s", deb_path)
        build_deb(
            Path(state["paths"]["pkg_root"]),
            deb_path,
            source_date_epoch=state["decisions"]["source_date_epoch"],
        )
        state["paths"]["deb"] = str(deb_path)
        return state
