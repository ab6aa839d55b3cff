# protocol/__init__.py

from .core import DeviceConfig, ReportId, StreamPacket
from .sequence import SequenceTracker, SequenceVerdict
from .session import MdsSession, PacketEvent

__all__ = [
    "DeviceConfig", "ReportId", "StreamPacket",
    "SequenceTracker", "SequenceVerdict",
    "MdsSession", "PacketEvent",
]
