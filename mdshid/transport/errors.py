# mdshid/transport/errors.py
from __future__ import annotations

from mdshid.core.errors import MdsError


class TransportError(MdsError):
    """Base class for transport-layer failures."""
    code = "transport_error"


class TransportOpenError(TransportError):
    code = "transport_open"


class TransportIOError(TransportError):
    code = "transport_io"


class TransportTimeout(TransportError):
    """No report arrived within the requested timeout."""
    code = "timeout"
