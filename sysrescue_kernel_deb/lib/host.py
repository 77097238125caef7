from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from ..errors import BuildError, UsageError
from .command import run_cmd

logger = logging.getLogger(__name__)

USAGE = "Usage: sudo sysrescue-kernel-deb /path/to/systemrescue-*.iso [OUTPUT_DIR]"


def is_root() -> bool:
    return os.geteuid() == 0


def validate_inputs(iso_path: str | None) -> Path:
    """Check the image argument and privilege before touching anything."""

    if not iso_path or not Path(iso_path).is_file():
        raise UsageError(USAGE)
    if not is_root():
        raise UsageError("Please run as root (sudo).")
    return Path(iso_path).resolve()


def dpkg_architecture() -> str:
    """Debian architecture of the build host, e.g. amd64."""

    try:
        r = run_cmd(["dpkg", "--print-architecture"])
    except (OSError, RuntimeError) as e:
        raise BuildError(f"Cannot determine Debian architecture: {e}") from e
    arch = (r.stdout or "").strip()
    if not arch:
        raise BuildError("dpkg --print-architecture returned nothing")
    return arch


def host_machine() -> str:
    """Kernel machine name, e.g. x86_64; matches the ISO's per-arch dirs."""

    return platform.machine()
