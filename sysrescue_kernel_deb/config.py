from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import UsageError

# Debian package names: lowercase alphanumerics plus . + -. The kernel
# version and suffix both end up in the package name.
PACKAGE_TOKEN_RE = re.compile(r"^[a-z0-9][a-z0-9.+-]*$")
# The kernel version also opens the Version field, which must start with a digit.
KERNEL_VERSION_RE = re.compile(r"^[0-9][a-z0-9.+-]*$")
# debian_revision: alphanumerics plus . + ~, no hyphen or underscore.
REVISION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.+~]*$")

DEFAULT_SUFFIX = "sysrescue"
DEFAULT_REVISION = "1~local"
DEFAULT_MODULE_ROOTS = ["usr/lib/modules", "lib/modules"]

BASE_DEPENDS = ["kmod", "initramfs-tools (>= 0.140)"]

GRUB_BY_ARCH = {
    "amd64": "grub-pc | grub-efi-amd64",
    "i386": "grub-pc | grub-efi-ia32",
    "arm64": "grub-efi-arm64",
}


def is_package_token(value: str) -> bool:
    return bool(PACKAGE_TOKEN_RE.match(value or ""))


def is_kernel_version(value: str) -> bool:
    return bool(KERNEL_VERSION_RE.match(value or ""))


def is_revision(value: str) -> bool:
    return bool(REVISION_RE.match(value or ""))


def _str_list(value: Any, key: str) -> List[str]:
    """A YAML list of strings; a bare string counts as a one-item list."""

    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise UsageError(f"{key} must be a list of strings, got {value!r}")
    return list(value)


@dataclass(frozen=True)
class ToolConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def suffix(self) -> str:
        return str(self._section("package").get("suffix") or DEFAULT_SUFFIX)

    @property
    def revision(self) -> str:
        return str(self._section("package").get("revision") or DEFAULT_REVISION)

    @property
    def maintainer(self) -> str:
        return str(self._section("package").get("maintainer") or "local <root@localhost>")

    @property
    def section(self) -> str:
        return str(self._section("package").get("section") or "kernel")

    @property
    def priority(self) -> str:
        return str(self._section("package").get("priority") or "optional")

    def depends(self, arch: str) -> List[str]:
        configured = self._section("package").get("depends")
        if configured:
            return _str_list(configured, "package.depends")
        return [*BASE_DEPENDS, GRUB_BY_ARCH.get(arch, GRUB_BY_ARCH["amd64"])]

    @property
    def arch(self) -> Optional[str]:
        value = self.raw.get("arch")
        return str(value) if value else None

    @property
    def kernel_name(self) -> str:
        return str(self._section("iso").get("kernel_name") or "vmlinuz")

    @property
    def kernel_path_pattern(self) -> str:
        return str(self._section("iso").get("kernel_path_pattern") or "sysresccd/boot")

    @property
    def rootfs_name(self) -> str:
        return str(self._section("iso").get("rootfs_name") or "airootfs.sfs")

    @property
    def rootfs_path_pattern(self) -> str:
        return str(self._section("iso").get("rootfs_path_pattern") or "sysresccd/(x86_64|i686)")

    @property
    def prefer(self) -> Optional[str]:
        value = self._section("iso").get("prefer")
        return str(value) if value else None

    @property
    def module_roots(self) -> List[str]:
        roots = self._section("rootfs").get("module_roots")
        return _str_list(roots, "rootfs.module_roots") if roots else list(DEFAULT_MODULE_ROOTS)

    @property
    def work_dir(self) -> Optional[str]:
        value = self.raw.get("work_dir")
        return str(value) if value else None


def validate_config(cfg: ToolConfig) -> ToolConfig:
    if not is_package_token(cfg.suffix):
        raise UsageError(f"Invalid package.suffix {cfg.suffix!r} in config (lowercase a-z, 0-9, . + - only)")
    if not is_revision(cfg.revision):
        raise UsageError(f"Invalid package.revision {cfg.revision!r} in config (A-Z, a-z, 0-9, . + ~ only)")
    # Both raise UsageError on non-list values.
    cfg.depends(cfg.arch or "amd64")
    _ = cfg.module_roots
    for pattern in (cfg.kernel_path_pattern, cfg.rootfs_path_pattern):
        try:
            re.compile(pattern)
        except re.error as e:
            raise UsageError(f"Invalid path pattern {pattern!r} in config: {e}") from e
    return cfg


def load_config(path: Optional[str]) -> ToolConfig:
    """Load the optional YAML config; no path means all defaults."""

    if not path:
        return ToolConfig(raw={})

    p = Path(path)
    if not p.is_file():
        raise UsageError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise UsageError("config must be YAML (.yaml or .yml)")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise UsageError(f"Cannot parse config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise UsageError(f"{path} must contain a mapping/object")

    return validate_config(ToolConfig(raw=raw))
