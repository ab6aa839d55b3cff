# mdshid/protocol/session.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from mdshid.core.errors import InvalidArgument, WrongReportType
from mdshid.interfaces.chunk_uploader import ChunkUploader
from mdshid.transport.base import HidTransport

from .core import codec
from .core.defs import (
    FEATURES_LEN,
    MAX_AUTH_LEN,
    MAX_DEVICE_ID_LEN,
    MAX_STREAM_REPORT_LEN,
    MAX_URI_LEN,
    SEQUENCE_MASK,
    STREAM_CONTROL_TIMEOUT_MS,
    ReportId,
)
from .core.packets import DeviceConfig, StreamPacket
from .sequence import SequenceTracker, SequenceVerdict

FEATURE_READ_TIMEOUT_MS = 1000


@dataclass(frozen=True)
class PacketEvent:
    """One accepted stream packet plus its continuity verdict (None = first packet)."""
    packet: StreamPacket
    verdict: Optional[SequenceVerdict]

    @property
    def discontinuous(self) -> bool:
        return self.verdict is SequenceVerdict.DISCONTINUOUS


class MdsSession:
    """
    MDS protocol state machine over a borrowed HID transport.

    The transport may be omitted when reports are driven externally; only the
    buffer-based calls (handle_input_report, forward, sequence accessors) are
    usable then. The session never opens or closes the transport.
    """

    def __init__(
        self,
        transport: Optional[HidTransport] = None,
        *,
        uploader: Optional[ChunkUploader] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._transport = transport
        self._uploader = uploader
        self._log = logger or logging.getLogger(__name__)

        self._tracker = SequenceTracker()
        self._streaming = False
        self._closed = False

    @classmethod
    def create(
        cls,
        transport: Optional[HidTransport] = None,
        *,
        uploader: Optional[ChunkUploader] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "MdsSession":
        return cls(transport, uploader=uploader, logger=logger)

    # ---------------- State ----------------
    @property
    def streaming_enabled(self) -> bool:
        return self._streaming

    @property
    def tracker(self) -> SequenceTracker:
        return self._tracker

    @property
    def last_sequence(self) -> Optional[int]:
        return self._tracker.last_sequence

    def update_last_sequence(self, seq: int) -> None:
        self._tracker.force(int(seq) & SEQUENCE_MASK)

    def set_uploader(self, uploader: Optional[ChunkUploader]) -> None:
        self._uploader = uploader

    # ---------------- Device configuration ----------------
    def read_config(self) -> DeviceConfig:
        # Fixed order; first failure aborts the remaining reads.
        features = self.get_supported_features()
        device_id = self.get_device_identifier()
        uri = self.get_data_uri()
        auth = self.get_authorization()

        cfg = DeviceConfig(
            supported_features=features,
            device_identifier=device_id,
            data_uri=uri,
            authorization=auth,
        )
        self._log.info(
            "DEVICE_CONFIG device_id=%s uri=%s features=0x%08x",
            device_id,
            uri,
            features,
        )
        return cfg

    def get_supported_features(self) -> int:
        data = self._read_feature(ReportId.SUPPORTED_FEATURES, FEATURES_LEN)
        return codec.decode_features(data)

    def get_device_identifier(self) -> str:
        data = self._read_feature(ReportId.DEVICE_IDENTIFIER, MAX_DEVICE_ID_LEN)
        return codec.decode_string_field(data, MAX_DEVICE_ID_LEN)

    def get_data_uri(self) -> str:
        data = self._read_feature(ReportId.DATA_URI, MAX_URI_LEN)
        return codec.decode_string_field(data, MAX_URI_LEN)

    def get_authorization(self) -> str:
        data = self._read_feature(ReportId.AUTHORIZATION, MAX_AUTH_LEN)
        return codec.decode_string_field(data, MAX_AUTH_LEN)

    # ---------------- Stream control ----------------
    def stream_enable(self) -> None:
        self._write_stream_control(True)
        self._streaming = True
        self._log.info("STREAM_ENABLED")

    def stream_disable(self) -> None:
        # On write failure streaming_enabled stays as it was.
        self._write_stream_control(False)
        self._streaming = False
        self._tracker.reset()
        self._log.info("STREAM_DISABLED")

    # ---------------- Stream data ----------------
    def read_packet(self, timeout_ms: int) -> StreamPacket:
        return self._read_event(timeout_ms).packet

    def handle_input_report(self, report_id: int, data: bytes) -> PacketEvent:
        """Decode an externally received input report and update sequence state."""
        if int(report_id) != ReportId.STREAM_DATA:
            raise WrongReportType(
                f"expected stream data report 0x{int(ReportId.STREAM_DATA):02x}, got 0x{int(report_id):02x}",
                details={"report_id": int(report_id)},
            )

        packet = codec.decode_stream_packet(data)
        expected = self._tracker.expected_next()
        verdict = self._tracker.observe(packet.sequence)

        if verdict is SequenceVerdict.DISCONTINUOUS:
            self._log.warning(
                "SEQUENCE_DISCONTINUITY expected=%s got=%d total=%d",
                expected,
                packet.sequence,
                self._tracker.discontinuities,
            )
        else:
            self._log.debug("STREAM_PACKET seq=%d len=%d", packet.sequence, len(packet.payload))

        return PacketEvent(packet=packet, verdict=verdict)

    def forward(self, config: DeviceConfig, packet: StreamPacket) -> Optional[int]:
        """Hand the packet payload to the uploader; None when no uploader is set."""
        uploader = self._uploader
        if uploader is None:
            return None
        return uploader.deliver(config.data_uri, config.authorization, packet.payload)

    def process(self, config: DeviceConfig, timeout_ms: int) -> PacketEvent:
        """
        Read one packet, check continuity and forward its payload.

        Read, decode and delivery errors propagate; the sequence update made
        by the read is kept even when delivery fails.
        """
        if config is None:
            raise InvalidArgument("process() requires a DeviceConfig")

        event = self._read_event(timeout_ms)
        self.forward(config, event.packet)
        return event

    # ---------------- Lifecycle ----------------
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._streaming and self._transport is not None:
            try:
                self.stream_disable()
            except Exception as e:
                self._log.warning("STREAM_DISABLE_ON_CLOSE_FAILED err=%s", e)

        self._tracker.reset()

    def __enter__(self) -> "MdsSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- Internals ----------------
    def _read_event(self, timeout_ms: int) -> PacketEvent:
        transport = self._require_transport("read_packet")
        report_id, data = transport.read_input(MAX_STREAM_REPORT_LEN, int(timeout_ms))
        return self.handle_input_report(report_id, data)

    def _read_feature(self, report_id: ReportId, max_len: int) -> bytes:
        transport = self._require_transport("read_feature")
        return transport.read_feature(int(report_id), max_len, FEATURE_READ_TIMEOUT_MS)

    def _write_stream_control(self, enable: bool) -> None:
        transport = self._require_transport("stream_control")
        buf = codec.encode_stream_control(enable)
        transport.write_output(int(ReportId.STREAM_CONTROL), buf, STREAM_CONTROL_TIMEOUT_MS)

    def _require_transport(self, op: str) -> HidTransport:
        if self._transport is None:
            raise InvalidArgument(
                f"{op} needs a transport; this session was created without one.",
                hint="Use handle_input_report() for externally driven transports.",
            )
        return self._transport
