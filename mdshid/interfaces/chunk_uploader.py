# mdshid/interfaces/chunk_uploader.py
from __future__ import annotations

from typing import Protocol


class ChunkUploader(Protocol):
    """
    Forwarding capability used by MdsSession.process().

    deliver() returns the HTTP-like status on success and raises an MdsError
    (InvalidAuthFormat, DeliveryFailed, ...) on failure.
    """
    def deliver(self, uri: str, auth_header: str, payload: bytes) -> int: ...
