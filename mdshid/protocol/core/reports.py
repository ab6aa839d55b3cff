# mdshid/protocol/core/reports.py
"""
Typed MDS report variants and the report table keyed by report id.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from mdshid.core.errors import WrongReportType

from . import codec
from .defs import (
    FEATURES_LEN,
    MAX_AUTH_LEN,
    MAX_DEVICE_ID_LEN,
    MAX_STREAM_REPORT_LEN,
    MAX_URI_LEN,
    ReportId,
)
from .packets import StreamPacket


@dataclass(frozen=True)
class SupportedFeatures:
    value: int


@dataclass(frozen=True)
class DeviceIdentifier:
    value: str


@dataclass(frozen=True)
class DataUri:
    value: str


@dataclass(frozen=True)
class Authorization:
    value: str


@dataclass(frozen=True)
class StreamControl:
    enabled: bool


@dataclass(frozen=True)
class StreamData:
    packet: StreamPacket


Report = Union[SupportedFeatures, DeviceIdentifier, DataUri, Authorization, StreamControl, StreamData]


@dataclass(frozen=True)
class ReportDef:
    report_id: ReportId
    kind: str          # "feature" | "output" | "input"
    direction: str     # "device_to_host" | "host_to_device"
    max_len: int
    variant: type
    decode: Callable[[bytes], Report]
    encode: Callable[[Report], bytes]


def _string_def(report_id: ReportId, variant: type, max_len: int) -> ReportDef:
    return ReportDef(
        report_id=report_id,
        kind="feature",
        direction="device_to_host",
        max_len=max_len,
        variant=variant,
        decode=lambda b: variant(codec.decode_string_field(b, max_len)),
        encode=lambda r: codec.encode_string_field(r.value, max_len),
    )


REPORTS: Dict[ReportId, ReportDef] = {
    ReportId.SUPPORTED_FEATURES: ReportDef(
        report_id=ReportId.SUPPORTED_FEATURES,
        kind="feature",
        direction="device_to_host",
        max_len=FEATURES_LEN,
        variant=SupportedFeatures,
        decode=lambda b: SupportedFeatures(codec.decode_features(b)),
        encode=lambda r: codec.encode_features(r.value),
    ),
    ReportId.DEVICE_IDENTIFIER: _string_def(ReportId.DEVICE_IDENTIFIER, DeviceIdentifier, MAX_DEVICE_ID_LEN),
    ReportId.DATA_URI: _string_def(ReportId.DATA_URI, DataUri, MAX_URI_LEN),
    ReportId.AUTHORIZATION: _string_def(ReportId.AUTHORIZATION, Authorization, MAX_AUTH_LEN),
    ReportId.STREAM_CONTROL: ReportDef(
        report_id=ReportId.STREAM_CONTROL,
        kind="output",
        direction="host_to_device",
        max_len=1,
        variant=StreamControl,
        decode=lambda b: StreamControl(codec.decode_stream_control(b)),
        encode=lambda r: codec.encode_stream_control(r.enabled),
    ),
    ReportId.STREAM_DATA: ReportDef(
        report_id=ReportId.STREAM_DATA,
        kind="input",
        direction="device_to_host",
        max_len=MAX_STREAM_REPORT_LEN,
        variant=StreamData,
        decode=lambda b: StreamData(codec.decode_stream_packet(b)),
        encode=lambda r: codec.encode_stream_packet(r.packet.sequence, r.packet.payload),
    ),
}

_BY_VARIANT: Dict[type, ReportDef] = {d.variant: d for d in REPORTS.values()}


def is_mds_report(report_id: int) -> bool:
    return int(report_id) in REPORTS


def report_def(report_id: int) -> ReportDef:
    try:
        return REPORTS[ReportId(report_id)]
    except ValueError:
        raise WrongReportType(
            f"unknown MDS report id 0x{int(report_id):02x}",
            details={"report_id": int(report_id)},
        ) from None


def decode_report(report_id: int, buf: bytes) -> Report:
    return report_def(report_id).decode(bytes(buf))


def encode_report(report: Report) -> Tuple[int, bytes]:
    d = _BY_VARIANT.get(type(report))
    if d is None:
        raise WrongReportType(f"not an MDS report variant: {type(report).__name__}")
    return int(d.report_id), d.encode(report)
