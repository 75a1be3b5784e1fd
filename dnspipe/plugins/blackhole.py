"""Answers queries with fixed addresses, an empty reply, or nothing."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable

import dns.flags
import dns.message
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from dnspipe.chain import ChainNode, QueryContext, exec_chain

_ANSWER_TTL = 3600


def _parse_addrs(values: Iterable[str], version: int) -> list[str]:
    family = ipaddress.IPv4Address if version == 4 else ipaddress.IPv6Address
    addrs: list[str] = []
    for s in values:
        try:
            addr = ipaddress.ip_address(s)
        except ValueError as exc:
            raise ValueError(f"invalid ipv{version} addr {s}, {exc}") from exc
        if not isinstance(addr, family):
            raise ValueError(f"invalid ipv{version} addr {s}")
        addrs.append(str(addr))
    return addrs


class BlackHole:
    """Replaces the response of a query.

    A and AAAA queries get the configured addresses if there are any.
    Otherwise the response is an empty reply with ``rcode``, or dropped
    when ``rcode`` is negative.
    """

    def __init__(
        self,
        ipv4: Iterable[str] = (),
        ipv6: Iterable[str] = (),
        rcode: int = dns.rcode.NOERROR,
    ) -> None:
        self.ipv4 = _parse_addrs(ipv4, 4)
        self.ipv6 = _parse_addrs(ipv6, 6)
        self.rcode = rcode

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        self._apply(qctx)
        await exec_chain(qctx, next_node)

    def _apply(self, qctx: QueryContext) -> None:
        q = qctx.query
        if len(q.question) != 1:
            return
        question = q.question[0]
        qtype = question.rdtype

        if qtype == dns.rdatatype.A and self.ipv4:
            qctx.set_response(self._ip_reply(q, dns.rdatatype.A, self.ipv4))
        elif qtype == dns.rdatatype.AAAA and self.ipv6:
            qctx.set_response(self._ip_reply(q, dns.rdatatype.AAAA, self.ipv6))
        elif self.rcode >= 0:
            r = dns.message.make_response(q)
            r.set_rcode(self.rcode)
            qctx.set_response(r)
        else:
            qctx.set_response(None)

    @staticmethod
    def _ip_reply(
        q: dns.message.Message, rdtype: dns.rdatatype.RdataType, addrs: list[str]
    ) -> dns.message.Message:
        r = dns.message.make_response(q)
        r.set_rcode(dns.rcode.NOERROR)
        r.flags |= dns.flags.RA
        rrset = dns.rrset.from_text_list(
            q.question[0].name, _ANSWER_TTL, dns.rdataclass.IN, rdtype, addrs
        )
        r.answer.append(rrset)
        return r