from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..errors import DiscoveryError
from ..lib.kversion import package_name, parse_package_kernel_version, resolve_kernel_version
from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


class ResolveKernelStep:
    step_id = "40_resolve_kernel"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        rootfs_mount = Path(state["paths"]["rootfs_mount"])
        tree = resolve_kernel_version(rootfs_mount, ctx.cfg.module_roots)

        # The post-install hook recovers the version from the package name;
        # refuse versions it could not recover.
        name = package_name(tree.version, ctx.cfg.suffix)
        try:
            if parse_package_kernel_version(name, ctx.cfg.suffix) != tree.version:
                raise ValueError(name)
        except ValueError as e:
            raise DiscoveryError(f"Kernel version {tree.version!r} does not survive the package name {name!r}.") from e

        logger.info("Kernel version: %s", tree.version)
        state.setdefault("decisions", {})["kernel_version"] = tree.version
        state["paths"]["module_root"] = str(tree.root)
        return state
