from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from . import mounts

logger = logging.getLogger(__name__)

WORK_PREFIX = "sysrescue-kernel-deb."


@dataclass(frozen=True)
class WorkArea:
    """Temporary working directory plus the release stack for its resources.

    Every resource acquired through ``mount`` is released by the stack in
    reverse acquisition order when the ``work_area()`` block exits.
    """

    root: Path
    stack: contextlib.ExitStack

    @property
    def iso_mount(self) -> Path:
        return self.root / "mnt_iso"

    @property
    def rootfs_mount(self) -> Path:
        return self.root / "mnt_sfs"

    @property
    def pkg_root(self) -> Path:
        return self.root / "pkg"

    def mount(self, image: Path, mount_point: Path, *, fstype: str, failure_hint: str | None = None) -> Path:
        return self.stack.enter_context(
            mounts.loop_mounted(image, mount_point, fstype=fstype, failure_hint=failure_hint)
        )


def mounts_below(root: Path) -> List[Path]:
    if not root.is_dir():
        return []
    return [p for p in sorted(root.iterdir()) if p.is_dir() and mounts.is_mounted(p)]


def remove_work_root(root: Path) -> bool:
    """Remove the work root unless something is still mounted inside it."""

    busy = mounts_below(root)
    if busy:
        logger.error("Leaving %s in place; still mounted: %s", root, ", ".join(str(p) for p in busy))
        return False
    try:
        shutil.rmtree(root)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not remove %s: %s", root, e)
        return False
    logger.debug("Removed %s", root)
    return True


@contextlib.contextmanager
def work_area(parent: Optional[str] = None) -> Iterator[WorkArea]:
    if parent:
        Path(parent).mkdir(parents=True, exist_ok=True)
    root = Path(tempfile.mkdtemp(prefix=WORK_PREFIX, dir=parent))
    logger.debug("Work area: %s", root)
    try:
        with contextlib.ExitStack() as stack:
            yield WorkArea(root=root, stack=stack)
    finally:
        remove_work_root(root)
