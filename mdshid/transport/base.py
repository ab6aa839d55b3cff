from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Tuple


@dataclass(frozen=True)
class HidDeviceInfo:
    """Enumeration record for one HID interface."""
    path: str
    vendor_id: int
    product_id: int
    serial_number: str = ""
    manufacturer: str = ""
    product: str = ""
    release_number: int = 0
    usage_page: int = 0
    usage: int = 0
    interface_number: int = -1


class HidTransport(ABC):
    """
    Abstract HID report transport.

    Contract:
      - open()/close() manage the underlying device handle.
      - report ids are passed separately; payload bytes never include them.
      - timeout_ms: 0 = non-blocking poll, negative = block indefinitely,
        positive = bounded wait.
      - read_input() raises TransportTimeout when nothing arrives in time.
      - every other failure of the device is raised as TransportIOError.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def read_feature(self, report_id: int, max_len: int, timeout_ms: int) -> bytes: ...

    @abstractmethod
    def write_output(self, report_id: int, data: bytes, timeout_ms: int) -> int: ...

    @abstractmethod
    def read_input(self, max_len: int, timeout_ms: int) -> Tuple[int, bytes]: ...

    def __enter__(self) -> "HidTransport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
