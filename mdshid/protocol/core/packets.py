from __future__ import annotations

from dataclasses import dataclass

from .defs import MAX_CHUNK_DATA_LEN, SEQUENCE_MAX


@dataclass(frozen=True)
class DeviceConfig:
    """
    Snapshot of the four MDS configuration feature reports.

    `authorization` is the raw "Header-Name:value" string the device hands out.
    """
    supported_features: int
    device_identifier: str
    data_uri: str
    authorization: str

    def as_dict(self, *, redact: bool = True) -> dict:
        auth = self.authorization
        if redact and auth:
            name, sep, _ = auth.partition(":")
            auth = f"{name}:***" if sep else "***"
        return {
            "supported_features": self.supported_features,
            "device_identifier": self.device_identifier,
            "data_uri": self.data_uri,
            "authorization": auth,
        }


@dataclass(frozen=True)
class StreamPacket:
    """One decoded stream-data report: 5-bit sequence + chunk bytes."""
    sequence: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= int(self.sequence) <= SEQUENCE_MAX:
            raise ValueError(f"Invalid sequence={self.sequence}; must be 0..{SEQUENCE_MAX}")
        if len(self.payload) > MAX_CHUNK_DATA_LEN:
            raise ValueError(f"Payload too long: {len(self.payload)} > {MAX_CHUNK_DATA_LEN}")

    def __len__(self) -> int:
        return len(self.payload)
