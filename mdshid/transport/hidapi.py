# mdshid/transport/hidapi.py
from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Optional, Tuple

import hid

from mdshid.core.errors import WrongReportType

from .base import HidDeviceInfo, HidTransport
from .errors import TransportIOError, TransportOpenError, TransportTimeout


def _as_str(v) -> str:
    if v is None:
        return ""
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return str(v)


def enumerate_devices(vendor_id: int = 0, product_id: int = 0) -> List[HidDeviceInfo]:
    """List HID interfaces matching vid/pid (0 = wildcard)."""
    try:
        entries = hid.enumerate(int(vendor_id), int(product_id))
    except (OSError, ValueError) as e:
        raise TransportIOError(f"HID enumeration failed: {e}") from None

    out: List[HidDeviceInfo] = []
    for d in entries:
        out.append(
            HidDeviceInfo(
                path=_as_str(d.get("path")),
                vendor_id=int(d.get("vendor_id", 0)),
                product_id=int(d.get("product_id", 0)),
                serial_number=_as_str(d.get("serial_number")),
                manufacturer=_as_str(d.get("manufacturer_string")),
                product=_as_str(d.get("product_string")),
                release_number=int(d.get("release_number", 0)),
                usage_page=int(d.get("usage_page", 0)),
                usage=int(d.get("usage", 0)),
                interface_number=int(d.get("interface_number", -1)),
            )
        )
    return out


class HidApiTransport(HidTransport):
    """
    HID report transport implemented via hidapi (`hid` module).

    Notes:
      - Opens either by `path` or by `vendor_id`/`product_id` (+ optional serial).
      - hidapi has no write timeout; `timeout_ms` is accepted and ignored on writes.
      - hidapi prefixes numbered reports with their id; it is stripped here.
    """

    def __init__(
        self,
        *,
        path: Optional[str] = None,
        vendor_id: int = 0,
        product_id: int = 0,
        serial_number: Optional[str] = None,
    ):
        if not path and not (vendor_id and product_id):
            raise TransportOpenError("HidApiTransport needs a device path or vendor_id/product_id")
        self.path = path
        self.vendor_id = int(vendor_id)
        self.product_id = int(product_id)
        self.serial_number = serial_number
        self.dev: Optional[hid.device] = None
        self._nonblocking = False
        self._filter: Optional[FrozenSet[int]] = None
        self._log = logging.getLogger(__name__)

    @property
    def is_open(self) -> bool:
        return self.dev is not None

    def open(self) -> None:
        if self.dev is not None:
            return
        dev = hid.device()
        try:
            if self.path:
                dev.open_path(self.path.encode("utf-8"))
            else:
                dev.open(self.vendor_id, self.product_id, self.serial_number)
        except (OSError, ValueError) as e:
            target = self.path or f"{self.vendor_id:04x}:{self.product_id:04x}"
            raise TransportOpenError(f"could not open HID device {target!r}: {e}") from None

        self.dev = dev
        self._nonblocking = False

    def close(self) -> None:
        if self.dev is not None:
            try:
                self.dev.close()
            finally:
                self.dev = None

    # ---------------- Options ----------------
    def set_nonblocking(self, nonblocking: bool) -> None:
        dev = self._require_dev("set_nonblocking")
        try:
            dev.set_nonblocking(1 if nonblocking else 0)
        except (OSError, ValueError) as e:
            raise TransportIOError(f"HID set_nonblocking failed: {e}") from None
        self._nonblocking = bool(nonblocking)

    def set_report_filter(self, report_ids: Optional[Iterable[int]]) -> None:
        """Restrict traffic to `report_ids`; None disables filtering."""
        self._filter = None if report_ids is None else frozenset(int(r) for r in report_ids)

    def _check_filter(self, report_id: int) -> None:
        if self._filter is not None and report_id not in self._filter:
            raise WrongReportType(
                f"report id 0x{report_id:02x} is filtered out",
                details={"report_id": report_id, "allowed": sorted(self._filter)},
            )

    # ---------------- Reports ----------------
    def read_feature(self, report_id: int, max_len: int, timeout_ms: int) -> bytes:
        # hidapi feature requests are synchronous control transfers; no timeout knob.
        dev = self._require_dev("read_feature")
        self._check_filter(report_id)
        try:
            data = dev.get_feature_report(int(report_id), int(max_len) + 1)
        except (OSError, ValueError) as e:
            self._drop_dev()
            raise TransportIOError(f"HID feature read 0x{report_id:02x} failed: {e}") from None

        raw = bytes(data)
        # First byte echoes the report id.
        return raw[1:1 + int(max_len)]

    def write_output(self, report_id: int, data: bytes, timeout_ms: int) -> int:
        dev = self._require_dev("write_output")
        self._check_filter(report_id)
        try:
            n = dev.write(bytes([int(report_id)]) + bytes(data))
        except (OSError, ValueError) as e:
            self._drop_dev()
            raise TransportIOError(f"HID write 0x{report_id:02x} failed (device disconnected?): {e}") from None

        if n < 0:
            raise TransportIOError(f"HID write 0x{report_id:02x} failed (rc={n})")
        # Don't count the report id byte.
        return max(n - 1, 0)

    def read_input(self, max_len: int, timeout_ms: int) -> Tuple[int, bytes]:
        dev = self._require_dev("read_input")
        try:
            if timeout_ms > 0:
                data = dev.read(int(max_len) + 1, int(timeout_ms))
            else:
                want_nonblocking = timeout_ms == 0
                if want_nonblocking != self._nonblocking:
                    self.set_nonblocking(want_nonblocking)
                data = dev.read(int(max_len) + 1)
        except (OSError, ValueError) as e:
            self._drop_dev()
            raise TransportIOError(f"HID read failed (device disconnected or unavailable): {e}") from None

        if not data:
            raise TransportTimeout(f"no input report within {timeout_ms} ms", details={"timeout_ms": timeout_ms})

        raw = bytes(data)
        report_id = raw[0]
        self._check_filter(report_id)
        return report_id, raw[1:1 + int(max_len)]

    def _drop_dev(self) -> None:
        # The handle is exclusive; release it before forgetting it.
        dev, self.dev = self.dev, None
        if dev is None:
            return
        try:
            dev.close()
        except (OSError, ValueError) as e:
            self._log.debug("HID_CLOSE_AFTER_ERROR_FAILED err=%s", e)

    def _require_dev(self, op: str) -> hid.device:
        if self.dev is None:
            raise TransportIOError(f"{op} while transport not open")
        return self.dev
