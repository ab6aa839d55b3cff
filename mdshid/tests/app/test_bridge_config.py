from __future__ import annotations

import pytest

from mdshid.app.config import BridgeConfig, load_bridge_config
from mdshid.core.errors import ConfigError


def test_load_bridge_config_parses_hex_strings(tmp_path):
    p = tmp_path / "bridge.yaml"
    p.write_text(
        "bridge:\n"
        "  vendor_id: '0x1234'\n"
        "  product_id: 0x5678\n"
        "  upload_timeout_ms: 5000\n"
        "  verbose: true\n",
        encoding="utf-8",
    )

    cfg = load_bridge_config(p)

    assert cfg.vendor_id == 0x1234
    assert cfg.product_id == 0x5678
    assert cfg.upload_timeout_ms == 5000
    assert cfg.verbose is True
    assert cfg.read_timeout_ms == 100


def test_load_bridge_config_without_section(tmp_path):
    p = tmp_path / "bridge.yaml"
    p.write_text("device_path: /dev/hidraw2\nupload: false\n", encoding="utf-8")

    cfg = load_bridge_config(p).validate()
    assert cfg.device_path == "/dev/hidraw2"
    assert cfg.upload is False


def test_load_bridge_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_bridge_config(tmp_path / "nope.yaml")


def test_load_bridge_config_rejects_unknown_keys(tmp_path):
    p = tmp_path / "bridge.yaml"
    p.write_text("vendor_id: 1\nbaud: 115200\n", encoding="utf-8")
    with pytest.raises(ConfigError) as ei:
        load_bridge_config(p)
    assert "baud" in ei.value.message


def test_load_bridge_config_rejects_bad_yaml(tmp_path):
    p = tmp_path / "bridge.yaml"
    p.write_text("vendor_id: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_bridge_config(p)


def test_load_bridge_config_rejects_non_integer(tmp_path):
    p = tmp_path / "bridge.yaml"
    p.write_text("read_timeout_ms: 1.5\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_bridge_config(p)


def test_overrides_skip_none_and_validate():
    cfg = BridgeConfig(vendor_id=1, product_id=2).with_overrides({"device_path": None, "upload": False})
    assert cfg.upload is False
    assert cfg.device_path is None
    cfg.validate()


@pytest.mark.parametrize(
    "cfg",
    [BridgeConfig(), BridgeConfig(vendor_id=1), BridgeConfig(device_path="/dev/x", upload_timeout_ms=0)],
)
def test_validate_rejects_incomplete_configs(cfg):
    with pytest.raises(ConfigError):
        cfg.validate()
