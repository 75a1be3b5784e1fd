"""Probes that test a DNS server's TCP/TLS connection handling."""

from __future__ import annotations

import logging
import secrets
import socket
import ssl
import struct
import time
from typing import NamedTuple

import dns.exception
import dns.message

from dnspipe.strutil import split_scheme_and_host

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"tcp": 53, "tls": 853}
_PROBE_NAME = "www.cloudflare.com."


class ProbeError(Exception):
    """A probe could not complete."""


class ProbeAddr(NamedTuple):
    protocol: str
    host: str
    port: int


def _split_host_port(s: str) -> tuple[str, str] | None:
    if s.startswith("["):
        end = s.find("]")
        if end < 0 or s[end + 1 : end + 2] != ":":
            return None
        return s[1:end], s[end + 2 :]
    if s.count(":") != 1:
        return None
    host, port = s.split(":")
    return host, port


def parse_probe_addr(addr: str) -> ProbeAddr:
    """Parse ``{tcp|tls}://host[:port]``, filling in the default port."""
    protocol, host = split_scheme_and_host(addr)
    if not protocol or not host:
        raise ValueError(f"invalid addr {addr}")
    if protocol not in _DEFAULT_PORTS:
        raise ValueError(f"invalid protocol {protocol}")
    parts = _split_host_port(host)
    if parts is None:
        return ProbeAddr(protocol, host, _DEFAULT_PORTS[protocol])
    name, port = parts
    try:
        return ProbeAddr(protocol, name, int(port))
    except ValueError:
        raise ValueError(f"invalid port in addr {addr}") from None


def open_connection(addr: str) -> socket.socket:
    """Open a TCP or TLS connection to the server named by ``addr``."""
    target = parse_probe_addr(addr)
    raw = socket.create_connection((target.host, target.port))
    if target.protocol == "tcp":
        return raw
    context = ssl.create_default_context()
    raw.settimeout(5)
    try:
        conn = context.wrap_socket(raw, server_hostname=target.host)
    except (OSError, ssl.SSLError) as exc:
        raw.close()
        raise ProbeError(f"tls handshake failed: {exc}") from exc
    conn.settimeout(None)
    return conn


def _write_msg(sock: socket.socket, msg: dns.message.Message) -> None:
    wire = msg.to_wire()
    sock.sendall(struct.pack("!H", len(wire)) + wire)


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise ConnectionError("connection closed by peer")
        buf += chunk
    return bytes(buf)


def _read_msg(sock: socket.socket) -> dns.message.Message:
    (length,) = struct.unpack("!H", _recv_exact(sock, 2))
    return dns.message.from_wire(_recv_exact(sock, length))


def _query(name: str, msg_id: int) -> dns.message.Message:
    q = dns.message.make_query(name, "A")
    q.id = msg_id
    return q


def probe_connection_reuse(addr: str) -> int:
    """Send three queries over one connection; return the answered count.

    Raises ProbeError if any exchange fails.
    """
    rounds = 3
    with open_connection(addr) as sock:
        for i in range(rounds):
            sock.settimeout(3)
            logger.info("sending msg #%d", i)
            try:
                _write_msg(sock, _query(_PROBE_NAME, i))
            except OSError as exc:
                raise ProbeError(f"failed to write #{i} probe msg: {exc}") from exc
            try:
                _read_msg(sock)
            except (OSError, dns.exception.DNSException) as exc:
                raise ProbeError(f"failed to read #{i} probe msg response: {exc}") from exc
            logger.info("received response #%d", i)
    logger.info("server %s supports RFC 1035 connection reuse", addr)
    return rounds


def probe_pipeline(addr: str) -> bool:
    """Send several queries at once; return True if answers came out of order."""
    domains = [f"www.{secrets.token_hex(8)}.com." for _ in range(4)]
    domains.append(_PROBE_NAME)
    out_of_order = False
    with open_connection(addr) as sock:
        for i, domain in enumerate(domains):
            sock.settimeout(10)
            try:
                _write_msg(sock, _query(domain, i))
            except OSError as exc:
                raise ProbeError(f"failed to write #{i} probe msg: {exc}") from exc

        start = time.monotonic()
        for i in range(len(domains)):
            sock.settimeout(10)
            try:
                m = _read_msg(sock)
            except (OSError, dns.exception.DNSException) as exc:
                raise ProbeError(f"failed to read #{i} probe msg response: {exc}") from exc
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.info("#%d response received, latency: %d ms", m.id, latency_ms)
            if m.id != i:
                out_of_order = True

    if out_of_order:
        logger.info("server supports RFC7766 query pipelining")
    else:
        logger.info(
            "no out-of-order response received in this test, "
            "server MAY NOT support RFC7766 query pipelining"
        )
    return out_of_order


def probe_idle_timeout(addr: str) -> float:
    """Wait for the server to close an idle connection; return seconds waited."""
    with open_connection(addr) as sock:
        try:
            _write_msg(sock, _query(_PROBE_NAME, secrets.randbelow(1 << 16)))
        except OSError as exc:
            raise ProbeError(f"failed to write probe msg: {exc}") from exc

        logger.info(
            "testing server idle timeout, awaiting server closing the connection, "
            "this may take a while"
        )
        start = time.monotonic()
        try:
            _read_msg(sock)
        except (OSError, dns.exception.DNSException) as exc:
            raise ProbeError(f"failed to read probe msg response: {exc}") from exc

        while True:
            try:
                _read_msg(sock)
            except (OSError, dns.exception.DNSException):
                break
    elapsed = time.monotonic() - start
    logger.info("connection closed by peer, its idle timeout is %.2f sec", elapsed)
    return elapsed