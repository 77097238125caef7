from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..errors import DiscoveryError
from .kversion import ModuleTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedPayload:
    pkg_root: Path
    kernel_image: Path
    modules_dir: Path

    @property
    def debian_dir(self) -> Path:
        return self.pkg_root / "DEBIAN"


def kernel_image_name(kernel_version: str, suffix: str) -> str:
    return f"vmlinuz-{kernel_version}-{suffix}"


def copy_tree(src: str | Path, dst: str | Path) -> None:
    """Copy a directory tree, keeping modes, timestamps and symlinks as links."""

    s = Path(src)
    if not s.is_dir():
        raise FileNotFoundError(str(src))
    shutil.copytree(s, dst, symlinks=True, copy_function=shutil.copy2, dirs_exist_ok=True)


def clamp_mtimes(paths: Iterable[Path], epoch: int) -> None:
    for p in paths:
        os.utime(p, (epoch, epoch), follow_symlinks=False)


def installed_size_kib(root: Path, *, exclude: str = "DEBIAN") -> int:
    """Approximate Installed-Size the way dpkg does: KiB per file, 1 per link."""

    total = 0
    for dirpath, dirnames, filenames in os.walk(root):
        if Path(dirpath) == root and exclude in dirnames:
            dirnames.remove(exclude)
        for fn in filenames:
            p = Path(dirpath) / fn
            if p.is_symlink():
                total += 1
            else:
                total += (p.stat().st_size + 1023) // 1024
    return total


def stage_payload(
    *,
    pkg_root: Path,
    kernel_image: Path,
    modules: ModuleTree,
    suffix: str,
    epoch: int,
) -> StagedPayload:
    """Lay out /boot and /lib/modules/<kver> under pkg_root."""

    boot_dir = pkg_root / "boot"
    modules_parent = pkg_root / "lib" / "modules"
    debian_dir = pkg_root / "DEBIAN"
    for d in (boot_dir, modules_parent, debian_dir):
        d.mkdir(parents=True, exist_ok=True)

    # Resolution only proved the root had a version entry; check the exact
    # directory we are about to copy.
    if not modules.path.is_dir():
        raise DiscoveryError(f"Modules for {modules.version} not found in airootfs.")

    kernel_dst = boot_dir / kernel_image_name(modules.version, suffix)
    shutil.copy2(kernel_image, kernel_dst)
    logger.info("Copied kernel image to /boot/%s", kernel_dst.name)

    modules_dst = modules_parent / modules.version
    copy_tree(modules.path, modules_dst)
    logger.info("Copied modules to /lib/modules/%s", modules.version)

    clamp_mtimes([pkg_root, boot_dir, pkg_root / "lib", modules_parent, debian_dir], epoch)

    return StagedPayload(pkg_root=pkg_root, kernel_image=kernel_dst, modules_dir=modules_dst)
