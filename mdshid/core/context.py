# mdshid/core/context.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from mdshid.core.errors import InvalidArgument
from mdshid.transport.base import HidDeviceInfo, HidTransport
from mdshid.transport.hidapi import HidApiTransport, enumerate_devices

TransportFactory = Callable[..., HidTransport]
Enumerator = Callable[[int, int], List[HidDeviceInfo]]


class HidContext:
    """
    Process-scoped HID context.

    Obtain one with HidContext.init(), open devices through it and call
    teardown() when done; teardown closes every transport the context opened.
    `transport_factory`/`enumerator` are injectable for tests and custom backends.
    """

    def __init__(
        self,
        *,
        transport_factory: Optional[TransportFactory] = None,
        enumerator: Optional[Enumerator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._factory = transport_factory or HidApiTransport
        self._enumerate = enumerator or enumerate_devices
        self._log = logger or logging.getLogger(__name__)
        self._open: List[HidTransport] = []
        self._active = True

    @classmethod
    def init(cls, **kwargs) -> "HidContext":
        ctx = cls(**kwargs)
        ctx._log.debug("HID_CONTEXT_INIT")
        return ctx

    @property
    def active(self) -> bool:
        return self._active

    def enumerate(self, vendor_id: int = 0, product_id: int = 0) -> List[HidDeviceInfo]:
        self._require_active("enumerate")
        return self._enumerate(int(vendor_id), int(product_id))

    def open(self, vendor_id: int, product_id: int, serial_number: Optional[str] = None) -> HidTransport:
        self._require_active("open")
        return self._open_with(vendor_id=int(vendor_id), product_id=int(product_id), serial_number=serial_number)

    def open_path(self, path: str) -> HidTransport:
        self._require_active("open_path")
        if not path:
            raise InvalidArgument("device path is empty")
        return self._open_with(path=path)

    def close(self, transport: HidTransport) -> None:
        if transport in self._open:
            self._open.remove(transport)
        transport.close()

    def teardown(self) -> None:
        if not self._active:
            return
        self._active = False
        for t in list(self._open):
            try:
                t.close()
            except Exception:
                self._log.exception("HID_TRANSPORT_CLOSE_FAILED")
        self._open.clear()
        self._log.debug("HID_CONTEXT_TEARDOWN")

    def __enter__(self) -> "HidContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    def _open_with(self, **params) -> HidTransport:
        transport = self._factory(**params)
        transport.open()
        self._open.append(transport)
        self._log.info("HID_DEVICE_OPENED params=%s", params)
        return transport

    def _require_active(self, op: str) -> None:
        if not self._active:
            raise InvalidArgument(f"{op} on a torn-down HidContext")
