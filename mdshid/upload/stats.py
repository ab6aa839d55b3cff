from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class UploadStats:
    chunks_uploaded: int = 0
    bytes_uploaded: int = 0
    upload_failures: int = 0
    last_status: int = 0


class UploadCounters:
    """Lock-guarded UploadStats accumulator (safe to share across pipelines)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chunks = 0
        self._bytes = 0
        self._failures = 0
        self._last_status = 0

    def record_success(self, status: int, nbytes: int) -> None:
        with self._lock:
            self._chunks += 1
            self._bytes += int(nbytes)
            self._last_status = int(status)

    def record_failure(self, status: int) -> None:
        with self._lock:
            self._failures += 1
            self._last_status = int(status)

    def snapshot(self) -> UploadStats:
        with self._lock:
            return UploadStats(
                chunks_uploaded=self._chunks,
                bytes_uploaded=self._bytes,
                upload_failures=self._failures,
                last_status=self._last_status,
            )

    def reset(self) -> None:
        with self._lock:
            self._chunks = 0
            self._bytes = 0
            self._failures = 0
            self._last_status = 0
