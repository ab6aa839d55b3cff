# mdshid/app/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from mdshid.core.errors import ConfigError


@dataclass(frozen=True)
class BridgeConfig:
    vendor_id: int = 0
    product_id: int = 0
    device_path: Optional[str] = None
    serial_number: Optional[str] = None
    read_timeout_ms: int = 100
    upload: bool = True
    upload_timeout_ms: int = 30000
    verbose: bool = False
    log_file: Optional[str] = None

    def with_overrides(self, overrides: Mapping[str, Any]) -> "BridgeConfig":
        """Apply non-None overrides (CLI flags) on top of this config."""
        known = {f.name for f in fields(self)}
        unknown = sorted(k for k in overrides if k not in known)
        if unknown:
            raise ConfigError(
                f"Unknown bridge config keys: {unknown}",
                hint=f"Valid keys: {sorted(known)}",
            )
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> "BridgeConfig":
        if not self.device_path and not (self.vendor_id and self.product_id):
            raise ConfigError(
                "No device selected.",
                hint="Set device_path, or both vendor_id and product_id.",
            )
        if self.upload_timeout_ms <= 0:
            raise ConfigError(
                f"upload_timeout_ms must be > 0, got {self.upload_timeout_ms}",
                details={"upload_timeout_ms": self.upload_timeout_ms},
            )
        return self


_INT_KEYS = ("vendor_id", "product_id", "read_timeout_ms", "upload_timeout_ms")


def _coerce(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(doc)
    for key in _INT_KEYS:
        v = out.get(key)
        if isinstance(v, str):
            # vid/pid are usually written in hex
            out[key] = int(v, 0)
        elif isinstance(v, bool) or (v is not None and not isinstance(v, int)):
            raise ValueError(f"{key} must be an integer, got {type(v).__name__}")
    return out


def load_bridge_config(path: str | Path) -> BridgeConfig:
    """Load a BridgeConfig from a YAML mapping (a top-level `bridge:` key is optional)."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Bridge config not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError("Failed to parse bridge config.", hint=str(e), details={"path": str(path)}) from None

    if isinstance(doc, dict) and isinstance(doc.get("bridge"), dict):
        doc = doc["bridge"]
    if not isinstance(doc, dict):
        raise ConfigError("Bridge config must be a mapping.", details={"path": str(path)})

    try:
        values = _coerce(doc)
    except ValueError as e:
        raise ConfigError("Invalid value in bridge config.", hint=str(e), details={"path": str(path)}) from None

    return BridgeConfig().with_overrides(values)
