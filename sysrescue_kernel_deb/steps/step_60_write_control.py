from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..lib.control import PackageInfo, write_control_files
from ..lib.staging import installed_size_kib
from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


def package_info(ctx: BuildCtx, state: Dict[str, Any]) -> PackageInfo:
    cfg = ctx.cfg
    decisions = state["decisions"]
    return PackageInfo(
        kernel_version=decisions["kernel_version"],
        arch=ctx.arch,
        suffix=cfg.suffix,
        revision=cfg.revision,
        maintainer=cfg.maintainer,
        section=cfg.section,
        priority=cfg.priority,
        depends=cfg.depends(ctx.arch),
        installed_size_kib=decisions.get("installed_size_kib"),
    )


class WriteControlStep:
    step_id = "60_write_control"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        pkg_root = Path(state["paths"]["pkg_root"])
        decisions = state["decisions"]
        decisions["installed_size_kib"] = installed_size_kib(pkg_root)

        info = package_info(ctx, state)
        write_control_files(pkg_root / "DEBIAN", info, epoch=decisions["source_date_epoch"])
        decisions["package_name"] = info.package_name
        decisions["package_version"] = info.version
        logger.info("Wrote control files for %s %s", info.package_name, info.version)
        return state
