from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..errors import DiscoveryError
from ..lib.discovery import locate
from ..pipeline import BuildCtx

logger = logging.getLogger(__name__)


class LocatePayloadStep:
    """Find the kernel image and the squashfs root filesystem in the ISO.

    SystemRescue layouts seen in the wild:
      sysresccd/boot/x86_64/vmlinuz
      sysresccd/boot/i686/vmlinuz
      sysresccd/x86_64/airootfs.sfs
      sysresccd/i686/airootfs.sfs
    """

    step_id = "20_locate_payload"

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        iso_mount = Path(state["paths"]["iso_mount"])

        kernel = locate(iso_mount, cfg.kernel_name, cfg.kernel_path_pattern, prefer=ctx.prefer)
        if kernel is None:
            raise DiscoveryError(
                f"Could not locate {cfg.kernel_name} inside ISO (expected under {cfg.kernel_path_pattern})."
            )

        rootfs = locate(iso_mount, cfg.rootfs_name, cfg.rootfs_path_pattern, prefer=ctx.prefer)
        if rootfs is None:
            raise DiscoveryError(
                f"Could not locate {cfg.rootfs_name} inside ISO (expected under {cfg.rootfs_path_pattern})."
            )

        logger.info("Found kernel: %s", kernel.relative_to(iso_mount))
        logger.info("Found rootfs image: %s", rootfs.relative_to(iso_mount))

        paths = state.setdefault("paths", {})
        paths["kernel_image"] = str(kernel)
        paths["rootfs_image"] = str(rootfs)
        return state
