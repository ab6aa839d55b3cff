# protocol/core/__init__.py

from .defs import ReportId
from .packets import DeviceConfig, StreamPacket
from .reports import REPORTS, Report, decode_report, encode_report, is_mds_report

__all__ = [
    "ReportId",
    "DeviceConfig", "StreamPacket",
    "REPORTS", "Report", "decode_report", "encode_report", "is_mds_report",
]
