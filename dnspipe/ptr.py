"""Parsing of reverse-lookup (PTR) names."""

from __future__ import annotations

import ipaddress

IP4ARPA = ".in-addr.arpa."
IP6ARPA = ".ip6.arpa."

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_ptr_name(fqdn: str) -> IPAddress:
    """Return the address a PTR name points at.

    Raises ValueError if the name has no reverse suffix or is malformed.
    """
    if fqdn.endswith(IP4ARPA):
        return reverse4(fqdn[: -len(IP4ARPA)])
    if fqdn.endswith(IP6ARPA):
        return reverse6(fqdn[: -len(IP6ARPA)])
    raise ValueError("domain does not have a ptr suffix")


def reverse4(s: str) -> IPAddress:
    """Reverse the dotted labels of ``s`` and parse the result."""
    return ipaddress.ip_address(".".join(reversed(s.split("."))))


def reverse6(s: str) -> IPAddress:
    """Reverse the nibbles of ``s`` into a colon separated address and parse it."""
    out: list[str] = []
    written = 0
    for ch in reversed(s):
        if ch == ".":
            continue
        out.append(ch)
        written += 1
        if written != 32 and written % 4 == 0:
            out.append(":")
    return ipaddress.ip_address("".join(out))