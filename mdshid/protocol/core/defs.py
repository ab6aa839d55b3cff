# mdshid/protocol/core/defs.py
from __future__ import annotations

from enum import IntEnum


class ReportId(IntEnum):
    SUPPORTED_FEATURES = 0x01
    DEVICE_IDENTIFIER = 0x02
    DATA_URI = 0x03
    AUTHORIZATION = 0x04
    STREAM_CONTROL = 0x05
    STREAM_DATA = 0x06


FEATURES_LEN = 4
MAX_DEVICE_ID_LEN = 64
MAX_URI_LEN = 128
MAX_AUTH_LEN = 128
MAX_CHUNK_DATA_LEN = 63
MAX_STREAM_REPORT_LEN = MAX_CHUNK_DATA_LEN + 1  # + sequence byte

STREAM_MODE_DISABLED = 0x00
STREAM_MODE_ENABLED = 0x01

SEQUENCE_MASK = 0x1F
SEQUENCE_MAX = 31
SEQUENCE_MODULUS = SEQUENCE_MAX + 1

STREAM_CONTROL_TIMEOUT_MS = 1000
