"""Matchers that look at the query and the client that sent it."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable, Iterable
from typing import Any

import dns.edns
import dns.message

from dnspipe.chain import QueryContext
from dnspipe.strutil import get_ip_from_addr

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def _unmap(addr: IPAddress) -> IPAddress:
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def _to_ip(addr: Any) -> IPAddress | None:
    if isinstance(addr, str):
        try:
            return ipaddress.ip_address(addr)
        except ValueError:
            return None
    return get_ip_from_addr(addr)


def _parse_networks(values: Iterable[str]) -> list[IPNetwork]:
    networks: list[IPNetwork] = []
    for s in values:
        try:
            net = ipaddress.ip_network(s.strip(), strict=False)
        except ValueError as exc:
            raise ValueError(f"invalid ip or cidr {s!r}, {exc}") from exc
        if isinstance(net, ipaddress.IPv6Network) and net.network_address.ipv4_mapped is not None:
            if net.prefixlen >= 96:
                net = ipaddress.ip_network(
                    f"{net.network_address.ipv4_mapped}/{net.prefixlen - 96}", strict=False
                )
        networks.append(net)
    return networks


def _in_networks(addr: IPAddress, networks: list[IPNetwork]) -> bool:
    addr = _unmap(addr)
    return any(addr.version == net.version and addr in net for net in networks)


def _normalize(name: str) -> str:
    return name.lower().rstrip(".")


def _domain_rule(rule: str) -> Callable[[str], bool]:
    rule = rule.strip()
    kind, sep, value = rule.partition(":")
    if not sep:
        kind, value = "domain", rule
    if kind == "full":
        target = _normalize(value)
        return lambda name: name == target
    if kind == "domain":
        target = _normalize(value)
        return lambda name: name == target or name.endswith("." + target)
    if kind == "keyword":
        target = value.lower()
        return lambda name: target in name
    if kind == "regexp":
        try:
            pattern = re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid regexp {value!r}, {exc}") from exc
        return lambda name: pattern.search(name) is not None
    raise ValueError(f"invalid domain rule {rule!r}")


class QueryMatcher:
    """Matches queries that meet every configured condition.

    ``client_ip`` and ``ecs`` are lists of addresses or CIDRs; ``domain``
    holds rules written as ``full:``, ``domain:``, ``keyword:``, ``regexp:``
    or a bare domain; ``qtype`` and ``qclass`` are numeric codes.
    """

    def __init__(
        self,
        client_ip: Iterable[str] = (),
        ecs: Iterable[str] = (),
        domain: Iterable[str] = (),
        qtype: Iterable[int] = (),
        qclass: Iterable[int] = (),
    ) -> None:
        self._conditions: list[Callable[[QueryContext], bool]] = []

        client_nets = _parse_networks(client_ip)
        if client_nets:
            self._conditions.append(lambda qctx: self._match_client(qctx, client_nets))

        ecs_nets = _parse_networks(ecs)
        if ecs_nets:
            self._conditions.append(lambda qctx: self._match_ecs(qctx, ecs_nets))

        rules = [_domain_rule(r) for r in domain if r.strip()]
        if rules:
            self._conditions.append(lambda qctx: self._match_qname(qctx, rules))

        types = frozenset(int(t) for t in qtype)
        if types:
            self._conditions.append(
                lambda qctx: any(int(q.rdtype) in types for q in qctx.query.question)
            )

        classes = frozenset(int(c) for c in qclass)
        if classes:
            self._conditions.append(
                lambda qctx: any(int(q.rdclass) in classes for q in qctx.query.question)
            )

    @staticmethod
    def _match_client(qctx: QueryContext, networks: list[IPNetwork]) -> bool:
        addr = _to_ip(qctx.client_addr)
        return addr is not None and _in_networks(addr, networks)

    @staticmethod
    def _match_ecs(qctx: QueryContext, networks: list[IPNetwork]) -> bool:
        q = qctx.query
        if q.edns < 0:
            return False
        for option in q.options:
            if int(option.otype) == dns.edns.OptionType.ECS:
                try:
                    addr = ipaddress.ip_address(option.address)
                except ValueError:
                    return False
                return _in_networks(addr, networks)
        return False

    @staticmethod
    def _match_qname(qctx: QueryContext, rules: list[Callable[[str], bool]]) -> bool:
        for question in qctx.query.question:
            name = _normalize(question.name.to_text())
            if any(rule(name) for rule in rules):
                return True
        return False

    def match(self, qctx: QueryContext) -> bool:
        return all(condition(qctx) for condition in self._conditions)


class QueryIsEdns0:
    """Matches queries that carry EDNS0."""

    def match(self, qctx: QueryContext) -> bool:
        return qctx.query.edns >= 0


def _message_is_query(msg: dns.message.Message) -> bool:
    return not msg.flags & 0x8000