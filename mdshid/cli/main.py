# mdshid/cli/main.py
from __future__ import annotations

from typing import Optional

from mdshid.core.errors import MdsError

from mdshid.cli.args import parse_args
from mdshid.cli.commands import cmd_config, cmd_devices, cmd_stream, configure_console_logging


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)
        configure_console_logging(verbose=bool(args.verbose))

        if args.cmd == "devices":
            return cmd_devices(args)
        if args.cmd == "config":
            return cmd_config(args)
        if args.cmd == "stream":
            return cmd_stream(args)

        return 2
    except MdsError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
