# mdshid/transport/loopback.py
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Tuple

from mdshid.core.errors import MalformedReport, WrongReportType
from mdshid.protocol.core import codec
from mdshid.protocol.core.defs import MAX_CHUNK_DATA_LEN, SEQUENCE_MASK, ReportId
from mdshid.protocol.core.packets import DeviceConfig
from mdshid.protocol.core.reports import (
    Authorization,
    DataUri,
    DeviceIdentifier,
    SupportedFeatures,
    encode_report,
)

from .base import HidTransport
from .errors import TransportIOError, TransportTimeout


class LoopbackTransport(HidTransport):
    """
    In-memory MDS device.

    Answers the configuration feature reports from a DeviceConfig, honours
    the stream-control output report and emits queued diagnostic data as
    stream packets (sliced to 63 bytes, 5-bit wrapping sequence). Disabling
    the stream resets the device-side sequence to 0.
    """

    def __init__(self, config: DeviceConfig):
        self.config = config
        self.streaming = False
        self.writes: List[Tuple[int, bytes]] = []
        self._chunks: Deque[bytes] = deque()
        self._next_seq = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    # ---------------- Device-side helpers ----------------
    def queue_data(self, data: bytes) -> int:
        """Slice `data` into chunk payloads; returns the number of packets queued."""
        n = 0
        for i in range(0, len(data), MAX_CHUNK_DATA_LEN):
            self._chunks.append(bytes(data[i:i + MAX_CHUNK_DATA_LEN]))
            n += 1
        return n

    def skip_sequence(self, count: int = 1) -> None:
        """Advance the device sequence as if `count` packets were lost."""
        self._next_seq = (self._next_seq + int(count)) & SEQUENCE_MASK

    @property
    def pending(self) -> int:
        return len(self._chunks)

    # ---------------- HidTransport ----------------
    def read_feature(self, report_id: int, max_len: int, timeout_ms: int) -> bytes:
        self._require_open("read_feature")
        variants = {
            ReportId.SUPPORTED_FEATURES: SupportedFeatures(self.config.supported_features),
            ReportId.DEVICE_IDENTIFIER: DeviceIdentifier(self.config.device_identifier),
            ReportId.DATA_URI: DataUri(self.config.data_uri),
            ReportId.AUTHORIZATION: Authorization(self.config.authorization),
        }
        report = variants.get(report_id)
        if report is None:
            raise WrongReportType(f"unsupported feature report 0x{int(report_id):02x}")
        _, data = encode_report(report)
        return data[:max_len]

    def write_output(self, report_id: int, data: bytes, timeout_ms: int) -> int:
        self._require_open("write_output")
        if report_id != ReportId.STREAM_CONTROL:
            raise WrongReportType(f"unsupported output report 0x{int(report_id):02x}")
        try:
            enabled = codec.decode_stream_control(data)
        except MalformedReport as e:
            raise TransportIOError(f"device rejected stream control: {e}") from None

        self.writes.append((int(report_id), bytes(data)))
        self.streaming = enabled
        if not enabled:
            self._next_seq = 0
        return len(data)

    def read_input(self, max_len: int, timeout_ms: int) -> Tuple[int, bytes]:
        self._require_open("read_input")
        if not self.streaming or not self._chunks:
            raise TransportTimeout(f"no input report within {timeout_ms} ms")

        payload = self._chunks.popleft()
        buf = codec.encode_stream_packet(self._next_seq, payload)
        self._next_seq = (self._next_seq + 1) & SEQUENCE_MASK
        return int(ReportId.STREAM_DATA), buf[:max_len]

    def _require_open(self, op: str) -> None:
        if not self._open:
            raise TransportIOError(f"{op} while transport not open")
