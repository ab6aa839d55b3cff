# mdshid/protocol/core/codec.py
"""
Stateless translation between MDS report payloads and typed values.

All buffers exclude the HID report-id prefix.
"""
from __future__ import annotations

import struct

from mdshid.core.errors import InvalidArgument, MalformedReport

from .defs import (
    FEATURES_LEN,
    MAX_CHUNK_DATA_LEN,
    SEQUENCE_MASK,
    STREAM_MODE_DISABLED,
    STREAM_MODE_ENABLED,
)
from .packets import StreamPacket

_U32_LE = struct.Struct("<I")


def decode_features(buf: bytes) -> int:
    if len(buf) < FEATURES_LEN:
        raise MalformedReport(
            f"features report too short: {len(buf)} < {FEATURES_LEN}",
            details={"len": len(buf)},
        )
    return _U32_LE.unpack_from(buf, 0)[0]


def encode_features(value: int) -> bytes:
    if not 0 <= int(value) <= 0xFFFFFFFF:
        raise InvalidArgument(f"features value out of u32 range: {value!r}")
    return _U32_LE.pack(int(value))


def decode_string_field(buf: bytes, max_len: int) -> str:
    """
    Decode a bounded string report.

    At most `max_len - 1` bytes are kept (room for the terminator the device
    side reserves); anything longer is silently truncated. A NUL byte ends
    the string early. Invalid UTF-8 (including a multi-byte sequence cut by
    the limit) is dropped, so the result never encodes to more bytes than kept.
    """
    if max_len < 1:
        raise InvalidArgument(f"max_len must be >= 1, got {max_len}")

    raw = bytes(buf[: max_len - 1])
    nul = raw.find(b"\x00")
    if nul >= 0:
        raw = raw[:nul]
    return raw.decode("utf-8", errors="ignore")


def encode_string_field(text: str, max_len: int) -> bytes:
    if max_len < 1:
        raise InvalidArgument(f"max_len must be >= 1, got {max_len}")
    return text.encode("utf-8")[: max_len - 1]


def encode_stream_control(enable: bool) -> bytes:
    return bytes([STREAM_MODE_ENABLED if enable else STREAM_MODE_DISABLED])


def decode_stream_control(buf: bytes) -> bool:
    if len(buf) < 1:
        raise MalformedReport("stream control report is empty")
    mode = buf[0]
    if mode == STREAM_MODE_ENABLED:
        return True
    if mode == STREAM_MODE_DISABLED:
        return False
    raise MalformedReport(f"unknown stream control mode 0x{mode:02x}", details={"mode": mode})


def decode_stream_packet(buf: bytes) -> StreamPacket:
    if len(buf) < 1:
        raise MalformedReport("stream data report missing sequence byte")
    # Upper 3 bits of byte 0 are reserved.
    return StreamPacket(
        sequence=buf[0] & SEQUENCE_MASK,
        payload=bytes(buf[1 : 1 + MAX_CHUNK_DATA_LEN]),
    )


def encode_stream_packet(sequence: int, payload: bytes) -> bytes:
    if len(payload) > MAX_CHUNK_DATA_LEN:
        raise InvalidArgument(
            f"chunk payload too long: {len(payload)} > {MAX_CHUNK_DATA_LEN}",
            details={"len": len(payload)},
        )
    return bytes([int(sequence) & SEQUENCE_MASK]) + bytes(payload)
