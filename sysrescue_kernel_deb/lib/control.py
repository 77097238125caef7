from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from .kversion import package_name, package_name_pattern
from .staging import clamp_mtimes, kernel_image_name

logger = logging.getLogger(__name__)

GRUB_CFG = "/boot/grub/grub.cfg"


@dataclass(frozen=True)
class PackageInfo:
    kernel_version: str
    arch: str
    suffix: str
    revision: str
    maintainer: str = "local <root@localhost>"
    section: str = "kernel"
    priority: str = "optional"
    depends: Sequence[str] = field(default_factory=list)
    installed_size_kib: int | None = None

    @property
    def package_name(self) -> str:
        return package_name(self.kernel_version, self.suffix)

    @property
    def version(self) -> str:
        return f"{self.kernel_version}-{self.revision}"

    @property
    def deb_filename(self) -> str:
        return f"{self.package_name}_{self.revision}_{self.arch}.deb"

    @property
    def kernel_image_name(self) -> str:
        return kernel_image_name(self.kernel_version, self.suffix)


@dataclass(frozen=True)
class HookAction:
    """One best-effort step of a maintainer script.

    ``command`` is a shell fragment; when it fails the script reports the
    label on stderr and moves on to the next action.
    """

    label: str
    command: str
    announce: str | None = None


def render_control(info: PackageInfo) -> str:
    lines = [
        f"Package: {info.package_name}",
        f"Version: {info.version}",
        f"Section: {info.section}",
        f"Priority: {info.priority}",
        f"Architecture: {info.arch}",
    ]
    if info.installed_size_kib is not None:
        lines.append(f"Installed-Size: {info.installed_size_kib}")
    if info.depends:
        lines.append(f"Depends: {', '.join(info.depends)}")
    lines += [
        f"Maintainer: {info.maintainer}",
        "Description: Linux kernel extracted from SystemRescue ISO (with modules)",
        f" This package installs /boot/{info.kernel_image_name} and the matching modules",
        f" under /lib/modules/{info.kernel_version}, runs depmod, generates a Debian initramfs,",
        " and updates GRUB so the kernel can be booted.",
    ]
    return "\n".join(lines) + "\n"


def _grub_refresh() -> str:
    return (
        "if command -v update-grub >/dev/null 2>&1; then\n"
        "  update-grub\n"
        "elif command -v grub-mkconfig >/dev/null 2>&1; then\n"
        f"  grub-mkconfig -o {GRUB_CFG}\n"
        "else\n"
        '  echo "neither update-grub nor grub-mkconfig found" >&2\n'
        "  false\n"
        "fi"
    )


def render_actions(actions: Sequence[HookAction], *, tag: str) -> str:
    """Render actions so each failure is logged and never aborts the script."""

    out: List[str] = []
    for a in actions:
        if a.announce:
            out.append(f'echo "{a.announce}"')
        out.append(f"{{\n{_indent(a.command)}\n}} || echo \"{tag}: {a.label} failed (ignored)\" >&2")
    return "\n".join(out)


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())


def postinst_actions(info: PackageInfo) -> List[HookAction]:
    kernel = f"/boot/{kernel_image_name('${KVER}', info.suffix)}"
    return [
        HookAction("depmod", 'depmod -a "${KVER}"', announce="Running depmod for ${KVER} ..."),
        HookAction(
            "update-initramfs",
            'update-initramfs -c -k "${KVER}"',
            announce="Generating initramfs for ${KVER} ...",
        ),
        HookAction("/vmlinuz symlink", f'ln -sf "{kernel}" /vmlinuz'),
        HookAction("/initrd.img symlink", 'ln -sf "/boot/initrd.img-${KVER}" /initrd.img'),
        HookAction("bootloader update", _grub_refresh(), announce="Updating GRUB ..."),
    ]


def postrm_actions() -> List[HookAction]:
    return [HookAction("bootloader update", _grub_refresh(), announce="Updating GRUB after removal ...")]


def render_postinst(info: PackageInfo) -> str:
    # The version is re-derived from the installing package name on the
    # target machine; nothing from the build host is baked in but the suffix.
    pattern = package_name_pattern(info.suffix)
    return (
        "#!/bin/sh\n"
        "set -u\n"
        "\n"
        'case "${1:-configure}" in\n'
        "  configure) ;;\n"
        "  *) exit 0 ;;\n"
        "esac\n"
        "\n"
        'PKGNAME="${DPKG_MAINTSCRIPT_PACKAGE:-}"\n'
        f"KVER=\"$(printf '%s\\n' \"$PKGNAME\" | sed -n -E 's/{pattern}/\\1/p')\"\n"
        'if [ -z "${KVER}" ]; then\n'
        '  echo "postinst: cannot derive kernel version from package name \'${PKGNAME}\'; skipping" >&2\n'
        "  exit 0\n"
        "fi\n"
        "\n"
        f"{render_actions(postinst_actions(info), tag='postinst')}\n"
        "\n"
        "exit 0\n"
    )


def render_postrm() -> str:
    return (
        "#!/bin/sh\n"
        "set -u\n"
        "\n"
        f"{render_actions(postrm_actions(), tag='postrm')}\n"
        "\n"
        "exit 0\n"
    )


def write_control_files(debian_dir: Path, info: PackageInfo, *, epoch: int | None = None) -> List[Path]:
    """Write DEBIAN/control, postinst and postrm; returns the written paths."""

    debian_dir.mkdir(parents=True, exist_ok=True)
    files = [
        (debian_dir / "control", render_control(info), 0o644),
        (debian_dir / "postinst", render_postinst(info), 0o755),
        (debian_dir / "postrm", render_postrm(), 0o755),
    ]

    written: List[Path] = []
    for path, text, mode in files:
        path.write_text(text, encoding="utf-8")
        path.chmod(mode)
        written.append(path)
        logger.debug("Wrote %s", path)

    if epoch is not None:
        clamp_mtimes([*written, debian_dir], epoch)
    return written
