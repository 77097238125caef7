from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from sysrescue_kernel_deb.lib import debpkg, host, mounts
from sysrescue_kernel_deb.lib.command import CmdResult
from sysrescue_kernel_deb import main as main_mod

KVER = "6.9.0-test"
KERNEL_BYTES = b"\x7fFAKE-BZIMAGE" * 64
KERNEL_MTIME = 1_700_000_000


def write_file(path: Path, data: bytes | str = b"", mtime: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        data = data.encode("utf-8")
    path.write_bytes(data)
    path.chmod(0o644)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def make_rootfs(root: Path, *, module_root: str = "usr/lib/modules", versions=(KVER,)) -> Path:
    for v in versions:
        mod = root / module_root / v
        write_file(mod / "kernel/drivers/net/dummy.ko.zst", b"module", mtime=KERNEL_MTIME)
        write_file(mod / "modules.dep", "kernel/drivers/net/dummy.ko.zst:\n", mtime=KERNEL_MTIME)
        (mod / "build").symlink_to("/usr/src/linux")
    write_file(root / "etc/os-release", "ID=arch\n")
    return root


def make_iso_tree(root: Path, *, with_rootfs: bool = True, archs=("x86_64",)) -> Path:
    for a in archs:
        write_file(root / "sysresccd/boot" / a / "vmlinuz", KERNEL_BYTES, mtime=KERNEL_MTIME)
        if with_rootfs:
            write_file(root / "sysresccd" / a / "airootfs.sfs", b"hsqs")
    write_file(root / "EFI/boot/bootx64.efi", b"efi")
    return root


class FakeSystem:
    """Stands in for mount/umount/dpkg-deb.

    A loop mount copies the tree registered for the image's file name into
    the mount point; unmounting empties it again. dpkg-deb writes a listing
    of the staged tree (paths, modes, mtimes, link targets, control text).
    """

    def __init__(self) -> None:
        self.images: dict[str, Path] = {}
        self.mounted: set[Path] = set()
        self.calls: list[list[str]] = []
        self.unsupported: set[str] = set()
        self.deb_fail = False
        self.deb_env: dict[str, str] = {}

    def register(self, image_name: str, tree: Path) -> None:
        self.images[image_name] = tree

    def is_mounted(self, path) -> bool:
        return Path(path).resolve() in self.mounted

    def run_cmd(self, argv, *, check=True, env=None, cwd=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        tool = argv[0]
        if tool == "mount":
            fstype = argv[argv.index("-t") + 1]
            image, mp = Path(argv[-2]), Path(argv[-1])
            tree = self.images.get(image.name)
            if tree is None or fstype in self.unsupported:
                if check:
                    raise RuntimeError(f"Command failed (32): {' '.join(argv)}")
                return CmdResult(argv=argv, returncode=32, stdout="", stderr="mount failed")
            shutil.copytree(tree, mp, symlinks=True, dirs_exist_ok=True)
            self.mounted.add(mp.resolve())
        elif tool == "umount":
            mp = Path(argv[-1]).resolve()
            if mp in self.mounted:
                shutil.rmtree(mp)
                mp.mkdir()
                self.mounted.discard(mp)
        elif tool == "dpkg-deb":
            if self.deb_fail:
                raise RuntimeError("Command failed (2): dpkg-deb")
            self.deb_env = dict(env or {})
            pkg_root, out = Path(argv[-2]), Path(argv[-1])
            Path(out).write_text(listing(pkg_root), encoding="utf-8")
        return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

    def tools_called(self) -> list[str]:
        return [c[0] for c in self.calls]


def listing(root: Path) -> str:
    lines = []
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root).as_posix()
        st = p.lstat()
        if p.is_symlink():
            lines.append(f"L {rel} -> {os.readlink(p)}")
        elif p.is_dir():
            lines.append(f"D {rel} {st.st_mode & 0o7777:o} {int(st.st_mtime)}")
        else:
            lines.append(f"F {rel} {st.st_mode & 0o7777:o} {int(st.st_mtime)} {st.st_size}")
    for name in ("control", "postinst", "postrm"):
        cf = root / "DEBIAN" / name
        if cf.exists():
            lines.append(f"--- {name}\n{cf.read_text(encoding='utf-8')}")
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def _quiet_cli_logging(monkeypatch):
    # main() would attach console handlers bound to pytest's captured streams.
    monkeypatch.setattr(main_mod, "configure_logging", lambda **kwargs: None)


@pytest.fixture
def fake_system(monkeypatch) -> FakeSystem:
    fake = FakeSystem()
    monkeypatch.setattr(mounts, "run_cmd", fake.run_cmd)
    monkeypatch.setattr(mounts, "is_mounted", fake.is_mounted)
    monkeypatch.setattr(debpkg, "run_cmd", fake.run_cmd)
    monkeypatch.setattr(host, "is_root", lambda: True)
    monkeypatch.setattr(main_mod, "dpkg_architecture", lambda: "amd64")
    monkeypatch.setattr(main_mod, "host_machine", lambda: "x86_64")
    return fake


@pytest.fixture
def sysrescue_iso(tmp_path, fake_system) -> Path:
    """A fake ISO whose rootfs ships modules for KVER under usr/lib/modules."""

    iso = write_file(tmp_path / "images/systemrescue-11.01-amd64.iso", b"ISO")
    fake_system.register(iso.name, make_iso_tree(tmp_path / "trees/iso"))
    fake_system.register("airootfs.sfs", make_rootfs(tmp_path / "trees/rootfs"))
    return iso


@pytest.fixture
def config_file(tmp_path) -> Path:
    """Config that keeps the work area under tmp_path."""

    p = tmp_path / "config.yaml"
    p.write_text(f"work_dir: {tmp_path / 'work'}\n", encoding="utf-8")
    return p
