from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Iterator

from ..errors import MountError
from .command import run_cmd

logger = logging.getLogger(__name__)


def is_mounted(path: str | Path) -> bool:
    return os.path.ismount(str(path))


def umount(mount_point: str | Path) -> bool:
    """Unmount if mounted; fall back to a lazy unmount. Returns True when gone."""

    if not is_mounted(mount_point):
        return True
    r = run_cmd(["umount", str(mount_point)], check=False)
    if not r.ok:
        logger.warning("umount %s failed (%s); retrying lazily", mount_point, r.stderr.strip())
        run_cmd(["umount", "-l", str(mount_point)], check=False)
    return not is_mounted(mount_point)


@contextlib.contextmanager
def loop_mounted(
    image: str | Path,
    mount_point: str | Path,
    *,
    fstype: str,
    failure_hint: str | None = None,
) -> Iterator[Path]:
    """Loop-mount image read-only at mount_point for the duration of the block."""

    mp = Path(mount_point)
    mp.mkdir(parents=True, exist_ok=True)

    try:
        run_cmd(["mount", "-o", "loop,ro", "-t", fstype, str(image), str(mp)])
    except (OSError, RuntimeError) as e:
        raise MountError(failure_hint or f"Could not mount {image} ({fstype}): {e}") from e
    logger.debug("Mounted %s (%s) at %s", image, fstype, mp)

    try:
        yield mp
    finally:
        if umount(mp):
            logger.debug("Unmounted %s", mp)
        else:
            logger.error("Could not unmount %s; it is still mounted", mp)
