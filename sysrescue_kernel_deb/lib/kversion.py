from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..config import DEFAULT_MODULE_ROOTS, is_kernel_version
from ..errors import DiscoveryError

logger = logging.getLogger(__name__)

PACKAGE_PREFIX = "linux-image-"

# Characters special in both Python re and POSIX ERE (sed -E).
_ERE_SPECIAL = set("\\.[]()*+?{}|^$")


@dataclass(frozen=True)
class ModuleTree:
    """A kernel version and the module root it was found under."""

    root: Path
    version: str

    @property
    def path(self) -> Path:
        return self.root / self.version


def _version_dirs(root: Path) -> list[str]:
    return sorted(p.name for p in root.iterdir() if p.is_dir())


def resolve_kernel_version(rootfs: str | Path, module_roots: Sequence[str] = DEFAULT_MODULE_ROOTS) -> ModuleTree:
    """Derive the kernel version from the module tree of a mounted rootfs.

    Module roots are probed in order; the first one that exists decides,
    and its lexically first subdirectory is the version. An existing but
    empty root is an error, not a reason to try the next candidate.
    """

    rootfs = Path(rootfs)
    for rel in module_roots:
        root = rootfs / rel
        if not root.is_dir():
            continue
        versions = _version_dirs(root)
        if not versions:
            raise DiscoveryError(f"Could not determine kernel version from modules directory ({rel} is empty).")
        if len(versions) > 1:
            logger.warning("Several kernel versions under %s (%s); using %s", rel, ", ".join(versions), versions[0])
        version = versions[0]
        if not is_kernel_version(version):
            raise DiscoveryError(
                f"Unusable kernel version directory name {version!r} under {rel} "
                "(needs a leading digit, then lowercase a-z, 0-9, . + - only)."
            )
        return ModuleTree(root=root, version=version)

    raise DiscoveryError("Could not determine kernel version from modules directory.")


def _ere_escape(text: str) -> str:
    return "".join("\\" + c if c in _ERE_SPECIAL else c for c in text)


def package_name_pattern(suffix: str) -> str:
    """Extended regex matching linux-image-<kver>-<suffix>, kver in group 1.

    Used both here and (via sed -E) inside the generated post-install hook.
    """

    return rf"^{_ere_escape(PACKAGE_PREFIX)}(.+)-{_ere_escape(suffix)}$"


def package_name(kernel_version: str, suffix: str) -> str:
    return f"{PACKAGE_PREFIX}{kernel_version}-{suffix}"


def parse_package_kernel_version(name: str, suffix: str) -> str:
    """Inverse of package_name(): recover the kernel version token."""

    m = re.match(package_name_pattern(suffix), name or "")
    if not m or not is_kernel_version(m.group(1)):
        raise ValueError(f"Not a {PACKAGE_PREFIX}<version>-{suffix} package name: {name!r}")
    return m.group(1)
