# mdshid/core/errors.py
from __future__ import annotations


class MdsError(Exception):
    """
    Base class for all expected operational errors in the MDS bridge.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidArgument(MdsError):
    """
    A required input is missing, empty or out of range.

    Examples:
      - sequence number outside 0..31
      - transport-backed call on a session created without a transport
      - use of a torn-down HidContext
    """
    code = "invalid_argument"


class ConfigError(MdsError):
    """
    Bridge configuration could not be loaded or is inconsistent.
    """
    code = "config_error"


class BridgeNotStarted(MdsError):
    """
    Bridge pump used before start() read the device configuration.
    """
    code = "bridge_not_started"


# ---------------------------------------------------------------------------
# Report / protocol errors
# ---------------------------------------------------------------------------

class MalformedReport(MdsError):
    """
    Report buffer is too short or structurally invalid for its report type.
    """
    code = "malformed_report"


class WrongReportType(MdsError):
    """
    Received report id does not match the expected one (or is filtered out).
    """
    code = "wrong_report_type"


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class InvalidAuthFormat(MdsError):
    """
    Authorization string is not of the form "Header-Name:value".
    """
    code = "invalid_auth_format"


class DeliveryFailed(MdsError):
    """
    Chunk upload failed: transport error or HTTP status outside 2xx.

    `status` is the HTTP status (0 when no response was received).
    """
    code = "delivery_failed"

    def __init__(self, message: str, *, status: int = 0, hint: str | None = None, details: dict | None = None):
        super().__init__(message, hint=hint, details=details)
        self.status = int(status)
