# mdshid/cli/commands.py
from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

from mdshid.app.bridge import MdsBridge
from mdshid.app.config import BridgeConfig, load_bridge_config
from mdshid.core.context import HidContext
from mdshid.protocol.session import MdsSession, PacketEvent
from mdshid.transport.base import HidTransport
from mdshid.upload.http import HttpChunkUploader

from mdshid.cli.args import config_overrides


# ---------------- Logging ----------------

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_console_logging(*, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def configure_file_logging(log_path: Path, *, verbose: bool = False) -> logging.FileHandler:
    """
    Mirror bridge logs into `log_path`: INFO and up, DEBUG with `verbose`.

    A second call for the same file reuses its handler and only adjusts the level.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    target = str(log_path.resolve())

    handler = next(
        (h for h in root.handlers if isinstance(h, logging.FileHandler) and h.baseFilename == target),
        None,
    )
    if handler is None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    handler.setLevel(level)

    # Root must let the file level through even when the console is quieter.
    if root.level > level:
        root.setLevel(level)
    return handler


# ---------------- Helpers ----------------

def resolve_config(args) -> BridgeConfig:
    base = load_bridge_config(args.config_file) if getattr(args, "config_file", None) else BridgeConfig()
    return base.with_overrides(config_overrides(args)).validate()


def open_transport(ctx: HidContext, cfg: BridgeConfig) -> HidTransport:
    if cfg.device_path:
        return ctx.open_path(cfg.device_path)
    return ctx.open(cfg.vendor_id, cfg.product_id, cfg.serial_number)


def print_packet(event: PacketEvent) -> None:
    flag = " (discontinuity)" if event.discontinuous else ""
    print(f"CHUNK seq={event.packet.sequence} len={len(event.packet.payload)}{flag}")


# ---------------- Commands ----------------

def cmd_devices(args) -> int:
    with HidContext.init() as ctx:
        devices = ctx.enumerate(args.vid, args.pid)

    if not devices:
        print("No HID devices found.")
        return 0

    for d in devices:
        label = " ".join(s for s in (d.manufacturer, d.product) if s) or "(unknown)"
        print(f"{d.vendor_id:04x}:{d.product_id:04x} {label}")
        print(f"  path: {d.path}")
        if d.serial_number:
            print(f"  serial: {d.serial_number}")
        print(f"  usage_page=0x{d.usage_page:04x} usage=0x{d.usage:04x} interface={d.interface_number}")
    return 0


def cmd_config(args) -> int:
    cfg = resolve_config(args)

    with HidContext.init() as ctx:
        transport = open_transport(ctx, cfg)
        with MdsSession.create(transport) as session:
            dc = session.read_config()

    shown = dc.as_dict(redact=True)
    print("MDS device configuration:")
    print(f"  Device ID: {shown['device_identifier']}")
    print(f"  Data URI:  {shown['data_uri']}")
    print(f"  Auth:      {shown['authorization']}")
    print(f"  Features:  0x{shown['supported_features']:08x}")
    return 0


def cmd_stream(args) -> int:
    cfg = resolve_config(args)
    if cfg.log_file:
        configure_file_logging(Path(cfg.log_file), verbose=cfg.verbose)

    uploader: Optional[HttpChunkUploader] = None
    if cfg.upload:
        uploader = HttpChunkUploader(timeout_ms=cfg.upload_timeout_ms, verbose=cfg.verbose)

    try:
        with HidContext.init() as ctx:
            transport = open_transport(ctx, cfg)
            with MdsSession.create(transport, uploader=uploader) as session:
                bridge = MdsBridge(session, read_timeout_ms=cfg.read_timeout_ms)
                bridge.subscribe(print_packet)

                prev = signal.signal(signal.SIGINT, lambda *_: bridge.request_stop())
                try:
                    with bridge:
                        dc = bridge.require_config()
                        print(f"Device:    {dc.device_identifier}")
                        print(f"Data URI:  {dc.data_uri}")
                        print(f"Upload:    {'on' if uploader else 'off'}")
                        st = bridge.run(max_packets=args.max_packets, secs=args.secs)
                finally:
                    signal.signal(signal.SIGINT, prev)
    finally:
        if uploader is not None:
            uploader.close()

    print(
        f"Packets: {st.packets} bytes={st.bytes} "
        f"discontinuities={st.discontinuities} delivery_failures={st.delivery_failures}"
    )
    if uploader is not None:
        us = uploader.stats()
        print(
            f"Uploads: chunks={us.chunks_uploaded} bytes={us.bytes_uploaded} "
            f"failures={us.upload_failures} last_status={us.last_status}"
        )
    return 0
