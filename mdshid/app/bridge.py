# mdshid/app/bridge.py
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from mdshid.core.errors import BridgeNotStarted, DeliveryFailed, MalformedReport, WrongReportType
from mdshid.protocol.core.packets import DeviceConfig
from mdshid.protocol.session import MdsSession, PacketEvent
from mdshid.transport.errors import TransportTimeout

PacketCallback = Callable[[PacketEvent], None]


@dataclass(frozen=True)
class BridgeStats:
    packets: int = 0
    bytes: int = 0
    discontinuities: int = 0
    delivery_failures: int = 0
    ignored_reports: int = 0
    idle_polls: int = 0


class MdsBridge:
    """
    App-level driver: reads the device config, enables streaming and pumps
    MdsSession.process() until a limit or a stop request.

    Timeouts count as idle polls. Delivery failures and non-stream reports are
    logged and skipped; transport I/O errors and auth-format errors end the run.
    """

    def __init__(
        self,
        session: MdsSession,
        *,
        read_timeout_ms: int = 100,
        logger: Optional[logging.Logger] = None,
    ):
        self._session = session
        self._read_timeout_ms = int(read_timeout_ms)
        self._log = logger or logging.getLogger(__name__)

        self._stop = threading.Event()
        self._config: Optional[DeviceConfig] = None
        self._packet_cbs: List[PacketCallback] = []

        self._packets = 0
        self._bytes = 0
        self._disc_base = 0
        self._delivery_failures = 0
        self._ignored = 0
        self._idle = 0

    @property
    def config(self) -> Optional[DeviceConfig]:
        return self._config

    def require_config(self) -> DeviceConfig:
        if self._config is None:
            raise BridgeNotStarted(
                "MdsBridge has no device config yet.",
                hint="Call start() or enter the bridge context first.",
            )
        return self._config

    @property
    def session(self) -> MdsSession:
        return self._session

    def stats(self) -> BridgeStats:
        return BridgeStats(
            packets=self._packets,
            bytes=self._bytes,
            discontinuities=self._session.tracker.discontinuities - self._disc_base,
            delivery_failures=self._delivery_failures,
            ignored_reports=self._ignored,
            idle_polls=self._idle,
        )

    def subscribe(self, cb: PacketCallback) -> Callable[[], None]:
        self._packet_cbs.append(cb)

        def _unsubscribe() -> None:
            if cb in self._packet_cbs:
                self._packet_cbs.remove(cb)

        return _unsubscribe

    # ---------------- Lifecycle ----------------
    def start(self) -> DeviceConfig:
        self._stop.clear()
        self._disc_base = self._session.tracker.discontinuities
        self._config = self._session.read_config()
        self._session.stream_enable()
        self._log.info("BRIDGE_STARTED device_id=%s", self._config.device_identifier)
        return self._config

    def request_stop(self) -> None:
        self._stop.set()

    def stop(self) -> None:
        self._stop.set()
        if self._session.streaming_enabled:
            self._session.stream_disable()
        st = self.stats()
        self._log.info(
            "BRIDGE_STOPPED packets=%d bytes=%d discontinuities=%d delivery_failures=%d",
            st.packets,
            st.bytes,
            st.discontinuities,
            st.delivery_failures,
        )

    def __enter__(self) -> "MdsBridge":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.stop()
        except Exception:
            self._log.exception("BRIDGE_STOP_FAILED")

    # ---------------- Pump ----------------
    def run(self, *, max_packets: Optional[int] = None, secs: Optional[float] = None) -> BridgeStats:
        self.require_config()

        t0 = time.monotonic()
        while not self._stop.is_set():
            if max_packets is not None and self._packets >= max_packets:
                break
            if secs is not None and time.monotonic() - t0 >= secs:
                break
            self.step()

        return self.stats()

    def step(self) -> Optional[PacketEvent]:
        """One process() iteration; returns the event when a packet was accepted."""
        config = self.require_config()
        try:
            event = self._session.process(config, self._read_timeout_ms)
        except TransportTimeout:
            self._idle += 1
            return None
        except (WrongReportType, MalformedReport) as e:
            self._ignored += 1
            self._log.debug("NON_MDS_REPORT_IGNORED err=%s", e)
            return None
        except DeliveryFailed as e:
            # The packet was read and sequenced before delivery failed.
            self._delivery_failures += 1
            self._packets += 1
            self._log.warning("CHUNK_DELIVERY_FAILED status=%d msg=%s", e.status, e.message)
            return None

        self._packets += 1
        self._bytes += len(event.packet.payload)

        for cb in list(self._packet_cbs):
            try:
                cb(event)
            except Exception:
                self._log.exception("PACKET_CALLBACK_ERROR")

        return event
