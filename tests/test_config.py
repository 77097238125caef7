from __future__ import annotations

import pytest

from sysrescue_kernel_deb.config import DEFAULT_MODULE_ROOTS, ToolConfig, is_package_token, is_revision, load_config
from sysrescue_kernel_deb.errors import UsageError


def test_defaults_without_config_file():
    cfg = load_config(None)

    assert cfg.suffix == "sysrescue"
    assert cfg.revision == "1~local"
    assert cfg.kernel_name == "vmlinuz"
    assert cfg.rootfs_name == "airootfs.sfs"
    assert cfg.module_roots == DEFAULT_MODULE_ROOTS
    assert cfg.arch is None
    assert cfg.work_dir is None


def test_yaml_overrides(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text(
        "package:\n"
        "  suffix: rescue\n"
        "  depends: [kmod]\n"
        "iso:\n"
        "  prefer: i686\n"
        "rootfs:\n"
        "  module_roots: [lib/modules]\n",
        encoding="utf-8",
    )

    cfg = load_config(str(p))

    assert cfg.suffix == "rescue"
    assert cfg.depends("amd64") == ["kmod"]
    assert cfg.prefer == "i686"
    assert cfg.module_roots == ["lib/modules"]


def test_grub_dependency_follows_architecture():
    cfg = ToolConfig(raw={})

    assert cfg.depends("amd64")[-1] == "grub-pc | grub-efi-amd64"
    assert cfg.depends("arm64")[-1] == "grub-efi-arm64"
    assert cfg.depends("riscv64")[-1] == "grub-pc | grub-efi-amd64"


@pytest.mark.parametrize(
    "name, body, message",
    [
        ("cfg.json", "{}", "must be YAML"),
        ("cfg.yaml", "- a\n- b\n", "mapping"),
        ("cfg.yaml", "package: {suffix: 'bad suffix'}\n", "package.suffix"),
        ("cfg.yaml", "iso: {kernel_path_pattern: '('}\n", "Invalid path pattern"),
        ("cfg.yaml", "key: [unclosed\n", "Cannot parse"),
        ("cfg.yaml", "package: {depends: 5}\n", "package.depends"),
        ("cfg.yaml", "package: {depends: [kmod, 3]}\n", "package.depends"),
        ("cfg.yaml", "rootfs: {module_roots: {usr: lib}}\n", "rootfs.module_roots"),
        ("cfg.yaml", "rootfs: {module_roots: [lib/modules, 7]}\n", "rootfs.module_roots"),
        ("cfg.yaml", "package: {suffix: Rescue}\n", "package.suffix"),
        ("cfg.yaml", "package: {suffix: sys_rescue}\n", "package.suffix"),
        ("cfg.yaml", "package: {revision: 1_local}\n", "package.revision"),
        ("cfg.yaml", "package: {revision: 1-local}\n", "package.revision"),
    ],
)
def test_invalid_configs_are_usage_errors(tmp_path, name, body, message):
    p = tmp_path / name
    p.write_text(body, encoding="utf-8")

    with pytest.raises(UsageError, match=message):
        load_config(str(p))


def test_missing_config_file(tmp_path):
    with pytest.raises(UsageError, match="not found"):
        load_config(str(tmp_path / "absent.yaml"))


def test_scalar_where_a_list_is_expected_is_a_single_item(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("package: {depends: kmod}\nrootfs: {module_roots: lib/modules}\n", encoding="utf-8")

    cfg = load_config(str(p))

    assert cfg.depends("amd64") == ["kmod"]
    assert cfg.module_roots == ["lib/modules"]


@pytest.mark.parametrize("value, ok", [("1~local", True), ("2+b1", True), ("0.1", True), ("1_local", False), ("", False)])
def test_revision_rules(value, ok):
    assert is_revision(value) is ok


@pytest.mark.parametrize(
    "value, ok",
    [("sysrescue", True), ("lts-2", True), ("rescue.v2", True), ("Rescue", False), ("res_cue", False), ("-x", False)],
)
def test_suffix_rules(value, ok):
    assert is_package_token(value) is ok
