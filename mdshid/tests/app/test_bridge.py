from __future__ import annotations

import logging

import pytest

from mdshid.app.bridge import MdsBridge
from mdshid.core.errors import BridgeNotStarted, DeliveryFailed
from mdshid.protocol.core.packets import DeviceConfig
from mdshid.protocol.session import MdsSession
from mdshid.transport.loopback import LoopbackTransport

CFG = DeviceConfig(
    supported_features=0x1F,
    device_identifier="bridge-1",
    data_uri="https://example.invalid/chunks/bridge-1",
    authorization="Memfault-Project-Key:k",
)


class RecordingUploader:
    def __init__(self, fail_on: set[int] | None = None):
        self.payloads: list[bytes] = []
        self.fail_on = fail_on or set()

    def deliver(self, uri, auth_header, payload):
        idx = len(self.payloads)
        self.payloads.append(payload)
        if idx in self.fail_on:
            raise DeliveryFailed("server said no", status=500)
        return 202


def _bridge(uploader=None):
    t = LoopbackTransport(CFG)
    t.open()
    s = MdsSession.create(t, uploader=uploader, logger=logging.getLogger("test"))
    return t, s, MdsBridge(s, read_timeout_ms=0)


def test_run_forwards_every_chunk_in_order():
    up = RecordingUploader()
    t, s, b = _bridge(up)
    t.queue_data(bytes(range(100)))

    with b:
        assert b.config == CFG
        st = b.run(max_packets=2)

    assert st.packets == 2
    assert st.bytes == 100
    assert st.discontinuities == 0
    assert b"".join(up.payloads) == bytes(range(100))
    assert t.streaming is False


def test_lost_packet_counts_discontinuity_and_still_forwards():
    up = RecordingUploader()
    t, s, b = _bridge(up)

    with b:
        t.queue_data(b"a")
        b.step()
        t.skip_sequence(2)
        t.queue_data(b"b")
        b.step()

    assert b.stats().discontinuities == 1
    assert up.payloads == [b"a", b"b"]


def test_delivery_failure_is_counted_and_run_continues():
    up = RecordingUploader(fail_on={0})
    t, s, b = _bridge(up)
    t.queue_data(b"x" * 63 + b"y")

    with b:
        st = b.run(max_packets=2)

    assert st.packets == 2
    assert st.delivery_failures == 1
    assert s.last_sequence is None  # reset by stop()


def test_empty_queue_counts_idle_polls_until_time_limit():
    t, s, b = _bridge()
    with b:
        st = b.run(secs=0.05)
    assert st.packets == 0
    assert st.idle_polls > 0


def test_callbacks_receive_events_and_errors_are_contained():
    t, s, b = _bridge()
    seen = []

    def boom(event):
        raise RuntimeError("callback bug")

    b.subscribe(boom)
    unsubscribe = b.subscribe(seen.append)
    t.queue_data(b"abc")

    with b:
        b.step()
        unsubscribe()
        t.queue_data(b"def")
        b.step()

    assert [e.packet.payload for e in seen] == [b"abc"]


def test_request_stop_ends_run():
    t, s, b = _bridge()
    b.subscribe(lambda e: b.request_stop())
    t.queue_data(bytes(63 * 5))

    with b:
        st = b.run()

    assert st.packets == 1


def test_pump_before_start_raises_bridge_not_started():
    t, _, b = _bridge()
    t.queue_data(b"abc")

    with pytest.raises(BridgeNotStarted):
        b.run(max_packets=1)
    with pytest.raises(BridgeNotStarted) as ei:
        b.step()
    assert ei.value.code == "bridge_not_started"
    assert t.pending == 1


def test_require_config_after_start():
    _, _, b = _bridge()
    with b:
        assert b.require_config() == CFG
