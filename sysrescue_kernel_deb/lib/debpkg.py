from __future__ import annotations

import logging
from pathlib import Path

from ..errors import BuildError
from .command import run_cmd

logger = logging.getLogger(__name__)


def build_deb(pkg_root: Path, out_path: Path, *, source_date_epoch: int | None = None) -> Path:
    """Build a .deb from a staged tree with dpkg-deb.

    Files are recorded as root:root regardless of who owns them in the
    staging tree. SOURCE_DATE_EPOCH pins the archive member timestamps.
    """

    out_path.parent.mkdir(parents=True, exist_ok=True)
    env = {}
    if source_date_epoch is not None:
        env["SOURCE_DATE_EPOCH"] = str(source_date_epoch)

    try:
        run_cmd(
            ["dpkg-deb", "--root-owner-group", "--build", str(pkg_root), str(out_path)],
            env=env,
        )
    except (OSError, RuntimeError) as e:
        raise BuildError(f"dpkg-deb failed to build {out_path}: {e}") from e

    if not out_path.is_file():
        raise BuildError(f"dpkg-deb reported success but {out_path} is missing")
    return out_path
