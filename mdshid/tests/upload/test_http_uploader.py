from __future__ import annotations

import logging
import threading
from types import SimpleNamespace

import pytest
import requests

from mdshid.core.errors import DeliveryFailed, InvalidArgument, InvalidAuthFormat
from mdshid.upload.auth import parse_auth_header
from mdshid.upload.http import HttpChunkUploader


class FakeHttp:
    """requests.Session stand-in recording POST calls."""

    def __init__(self, status: int = 202, exc: Exception | None = None):
        self.status = status
        self.exc = exc
        self.calls: list[dict] = []
        self.closed = False

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": dict(headers or {}), "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(status_code=self.status)

    def close(self):
        self.closed = True


URI = "https://chunks.example.com/api/v0/chunks/dev-1"
AUTH = "Memfault-Project-Key:abc123"


def _uploader(http: FakeHttp, **kw) -> HttpChunkUploader:
    return HttpChunkUploader(session=http, logger=logging.getLogger("test"), **kw)  # type: ignore[arg-type]


# ---------------- auth header ----------------

def test_parse_auth_header_splits_at_first_colon():
    assert parse_auth_header("Memfault-Project-Key:abc") == ("Memfault-Project-Key", "abc")
    assert parse_auth_header("Authorization: Bearer a:b") == ("Authorization", "Bearer a:b")


@pytest.mark.parametrize("bad", ["", "no-colon-here", ":value-only"])
def test_parse_auth_header_rejects_malformed(bad):
    with pytest.raises(InvalidAuthFormat):
        parse_auth_header(bad)


# ---------------- deliver ----------------

def test_deliver_success_posts_chunk_and_updates_stats():
    http = FakeHttp(status=202)
    up = _uploader(http, timeout_ms=5000)

    status = up.deliver(URI, AUTH, b"\x01\x02\x03")

    assert status == 202
    call = http.calls[0]
    assert call["url"] == URI
    assert call["data"] == b"\x01\x02\x03"
    assert call["headers"]["Memfault-Project-Key"] == "abc123"
    assert call["headers"]["Content-Type"] == "application/octet-stream"
    assert call["timeout"] == pytest.approx(5.0)

    st = up.stats()
    assert st.chunks_uploaded == 1
    assert st.bytes_uploaded == 3
    assert st.upload_failures == 0
    assert st.last_status == 202


def test_deliver_malformed_auth_fails_before_network_and_keeps_stats():
    http = FakeHttp()
    up = _uploader(http)

    with pytest.raises(InvalidAuthFormat):
        up.deliver(URI, "no colon", b"abc")

    assert http.calls == []
    assert up.stats().upload_failures == 0


def test_deliver_http_error_counts_failure():
    http = FakeHttp(status=503)
    up = _uploader(http)

    with pytest.raises(DeliveryFailed) as ei:
        up.deliver(URI, AUTH, b"abc")

    assert ei.value.status == 503
    st = up.stats()
    assert st.upload_failures == 1
    assert st.chunks_uploaded == 0
    assert st.last_status == 503


def test_deliver_redirect_status_is_failure():
    up = _uploader(FakeHttp(status=301))
    with pytest.raises(DeliveryFailed):
        up.deliver(URI, AUTH, b"abc")
    assert up.stats().upload_failures == 1


def test_deliver_transport_error_counts_failure_with_status_zero():
    http = FakeHttp(exc=requests.ConnectionError("refused"))
    up = _uploader(http)

    with pytest.raises(DeliveryFailed) as ei:
        up.deliver(URI, AUTH, b"abc")

    assert ei.value.status == 0
    assert up.stats().upload_failures == 1
    assert up.stats().last_status == 0


def test_deliver_empty_uri_is_invalid():
    with pytest.raises(InvalidArgument):
        _uploader(FakeHttp()).deliver("", AUTH, b"x")


def test_reset_stats_zeroes_counters():
    up = _uploader(FakeHttp())
    up.deliver(URI, AUTH, b"abcd")
    up.reset_stats()

    st = up.stats()
    assert (st.chunks_uploaded, st.bytes_uploaded, st.upload_failures, st.last_status) == (0, 0, 0, 0)


def test_set_timeout_validates():
    up = _uploader(FakeHttp())
    up.set_timeout(1500)
    assert up.timeout_ms == 1500
    with pytest.raises(InvalidArgument):
        up.set_timeout(0)


def test_shared_uploader_counts_are_consistent_across_threads():
    up = _uploader(FakeHttp())

    def worker():
        for _ in range(200):
            up.deliver(URI, AUTH, b"xy")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    st = up.stats()
    assert st.chunks_uploaded == 800
    assert st.bytes_uploaded == 1600


def test_close_only_closes_owned_session():
    http = FakeHttp()
    _uploader(http).close()
    assert http.closed is False
