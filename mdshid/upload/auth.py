from __future__ import annotations

from typing import Tuple

from mdshid.core.errors import InvalidAuthFormat


def parse_auth_header(auth_header: str) -> Tuple[str, str]:
    """
    Split a device-provided "Header-Name:value" string at the first colon.
    """
    name, sep, value = auth_header.partition(":")
    name = name.strip()
    if not sep or not name:
        raise InvalidAuthFormat(
            "Invalid authorization header format (expected 'Header-Name:value').",
            hint="Check the authorization feature report the device returns.",
            details={"length": len(auth_header)},
        )
    return name, value.strip()
