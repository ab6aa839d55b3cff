# mdshid/upload/http.py
from __future__ import annotations

import logging
from typing import Optional

import requests

from mdshid.core.errors import DeliveryFailed, InvalidArgument

from .auth import parse_auth_header
from .stats import UploadCounters, UploadStats


class HttpChunkUploader:
    """
    Default ChunkUploader: one HTTP POST per chunk via requests.

    No retry loop here; callers retry by processing the next packet.
    """

    DEFAULT_TIMEOUT_MS = 30000
    CONTENT_TYPE = "application/octet-stream"

    def __init__(
        self,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        verbose: bool = False,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self._http = session or requests.Session()
        self._owns_http = session is None
        self._counters = UploadCounters()
        self.timeout_ms = int(timeout_ms)
        self.verbose = bool(verbose)

    # ---------------- Configuration ----------------
    def set_timeout(self, timeout_ms: int) -> None:
        if int(timeout_ms) <= 0:
            raise InvalidArgument(f"upload timeout must be > 0 ms, got {timeout_ms}")
        self.timeout_ms = int(timeout_ms)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    # ---------------- Stats ----------------
    def stats(self) -> UploadStats:
        return self._counters.snapshot()

    def reset_stats(self) -> None:
        self._counters.reset()

    # ---------------- Delivery ----------------
    def deliver(self, uri: str, auth_header: str, payload: bytes) -> int:
        if not uri:
            raise InvalidArgument("upload URI is empty")

        # Rejected before any network attempt; stats untouched.
        name, value = parse_auth_header(auth_header)

        headers = {
            name: value,
            "Content-Type": self.CONTENT_TYPE,
        }

        try:
            resp = self._http.post(
                uri,
                data=bytes(payload),
                headers=headers,
                timeout=self.timeout_ms / 1000.0,
            )
        except requests.RequestException as e:
            self._counters.record_failure(0)
            self._log.warning("UPLOAD_FAILED uri=%s err=%s", uri, e)
            raise DeliveryFailed(
                "Chunk upload failed (no response).",
                status=0,
                hint=str(e),
                details={"uri": uri, "bytes": len(payload)},
            ) from None

        status = int(resp.status_code)
        if not 200 <= status < 300:
            self._counters.record_failure(status)
            self._log.warning("UPLOAD_HTTP_ERROR uri=%s status=%d", uri, status)
            raise DeliveryFailed(
                f"Chunk upload failed with HTTP status {status}.",
                status=status,
                details={"uri": uri, "bytes": len(payload)},
            )

        self._counters.record_success(status, len(payload))
        if self.verbose:
            self._log.info("CHUNK_UPLOADED bytes=%d status=%d", len(payload), status)
        else:
            self._log.debug("CHUNK_UPLOADED bytes=%d status=%d", len(payload), status)
        return status

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "HttpChunkUploader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
