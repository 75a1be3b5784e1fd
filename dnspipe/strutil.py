"""Small string and address helpers."""

from __future__ import annotations

import ipaddress
import re
from typing import Any

_WORD = re.compile(r"\S+")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def split_line(s: str) -> list[str]:
    """Return the whitespace separated words of ``s``."""
    return _WORD.findall(s)


def remove_comment(s: str, symbol: str) -> str:
    """Cut ``s`` at the first occurrence of ``symbol``."""
    i = s.find(symbol)
    if i >= 0:
        return s[:i]
    return s


def split_string2(s: str, symbol: str) -> tuple[str, str] | None:
    """Split ``s`` in two at the first ``symbol``.

    An empty symbol yields ``("", s)``. Returns None if ``symbol`` is absent.
    """
    if not symbol:
        return "", s
    head, sep, tail = s.partition(symbol)
    if not sep:
        return None
    return head, tail


def split_scheme_and_host(addr: str) -> tuple[str, str]:
    """Split ``scheme://host`` into ``(scheme, host)``; no scheme gives ``""``."""
    parts = split_string2(addr, "://")
    if parts is None:
        return "", addr
    return parts


def get_ip_from_addr(addr: Any) -> IPAddress | None:
    """Extract the IP address from an address-like object.

    Accepts ip address objects, networks, interfaces and socket address
    tuples. Anything else yields None.
    """
    if isinstance(addr, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return addr.ip
    if isinstance(addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return addr
    if isinstance(addr, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return addr.network_address
    if isinstance(addr, tuple) and addr and isinstance(addr[0], str):
        try:
            return ipaddress.ip_address(addr[0])
        except ValueError:
            return None
    return None