# mdshid/cli/args.py
from __future__ import annotations

import argparse
from typing import Any, Dict, Optional


def parse_hex(value: str) -> int:
    """Parse a VID/PID given as hex, with or without 0x prefix."""
    try:
        return int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid hex value '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdshid")
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_devices = sub.add_parser("devices", help="List HID devices.")
    p_devices.add_argument("--vid", type=parse_hex, default=0)
    p_devices.add_argument("--pid", type=parse_hex, default=0)

    device = argparse.ArgumentParser(add_help=False)
    device.add_argument("--config", dest="config_file", default=None, help="Bridge config YAML.")
    device.add_argument("--vid", dest="vendor_id", type=parse_hex, default=None)
    device.add_argument("--pid", dest="product_id", type=parse_hex, default=None)
    device.add_argument("--path", dest="device_path", default=None, help="HID device path (overrides vid/pid).")
    device.add_argument("--serial", dest="serial_number", default=None)

    sub.add_parser("config", parents=[device], help="Print the MDS device configuration.")

    ps = sub.add_parser("stream", parents=[device], help="Forward diagnostic chunks to the cloud.")
    ps.add_argument("--secs", type=float, default=None)
    ps.add_argument("--max-packets", type=int, default=None)
    ps.add_argument("--read-timeout-ms", dest="read_timeout_ms", type=int, default=None)
    ps.add_argument("--upload-timeout-ms", dest="upload_timeout_ms", type=int, default=None)
    ps.add_argument("--no-upload", dest="upload", action="store_false", default=None)
    ps.add_argument("--log-file", dest="log_file", default=None)

    return parser


OVERRIDE_KEYS = (
    "vendor_id",
    "product_id",
    "device_path",
    "serial_number",
    "read_timeout_ms",
    "upload_timeout_ms",
    "upload",
    "verbose",
    "log_file",
)


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Non-None CLI values that override the bridge config file."""
    return {
        k: getattr(args, k)
        for k in OVERRIDE_KEYS
        if getattr(args, k, None) is not None
    }


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
