from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..lib.kversion import ModuleTree
from ..lib.staging import stage_payload
from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


class StagePayloadStep:
    step_id = "50_stage_payload"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        paths = state["paths"]
        decisions = state["decisions"]
        kernel_image = Path(paths["kernel_image"])
        modules = ModuleTree(root=Path(paths["module_root"]), version=decisions["kernel_version"])

        # Everything generated is stamped with the kernel image's mtime so
        # identical inputs give identical archives.
        epoch = int(kernel_image.stat().st_mtime)
        decisions["source_date_epoch"] = epoch

        staged = stage_payload(
            pkg_root=ctx.work.pkg_root,
            kernel_image=kernel_image,
            modules=modules,
            suffix=ctx.cfg.suffix,
            epoch=epoch,
        )
        paths["pkg_root"] = str(staged.pkg_root)
        decisions["kernel_image_name"] = staged.kernel_image.name
        return state
