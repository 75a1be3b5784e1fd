"""General query and response tidying."""

from __future__ import annotations

import random

import dns.edns
import dns.flags
import dns.message
import dns.opcode
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.rrset

from dnspipe.chain import ChainNode, QueryContext, exec_chain

# 1280 (min ipv6 mtu) - 40 (ipv6 header) - 8 (udp header) - 8 (pppoe header) - 24 reserved
MAX_UDP_SIZE = 1200

_Z_FLAG = 0x0040


def _is_valid_query(q: dns.message.Message) -> bool:
    return (
        not q.flags & dns.flags.QR
        and dns.opcode.from_flags(q.flags) == dns.opcode.QUERY
        and not q.flags & dns.flags.AA
        and not q.flags & _Z_FLAG
        and not q.answer
        and not q.authority
    )


def is_unusual_query(query: dns.message.Message) -> bool:
    """Tell whether a query is malformed or not a single IN-class question."""
    return (
        not _is_valid_query(query)
        or len(query.question) != 1
        or query.question[0].rdclass != dns.rdataclass.IN
    )


def _set_options(msg: dns.message.Message, options) -> None:
    msg.use_edns(
        edns=msg.edns,
        ednsflags=msg.ednsflags,
        payload=msg.payload,
        options=list(options),
        pad=getattr(msg, "pad", 0),
    )


def _cap_payload(q: dns.message.Message, limit: int) -> None:
    if q.edns < 0 or q.payload <= limit:
        return
    q.use_edns(
        edns=q.edns,
        ednsflags=q.ednsflags,
        payload=limit,
        options=list(q.options),
        pad=getattr(q, "pad", 0),
    )


def _trim_and_shuffle(q: dns.message.Message, r: dns.message.Message) -> None:
    """Keep only answers of the queried A/AAAA type, renamed and shuffled."""
    if not q.question:
        return
    question = q.question[0]
    qtype = question.rdtype
    if qtype not in (dns.rdatatype.A, dns.rdatatype.AAAA):
        return
    kept = [rrset for rrset in r.answer if rrset.rdtype == qtype]
    rdatas = [rd for rrset in kept for rd in rrset]
    if not rdatas:
        r.answer = []
        return
    random.shuffle(rdatas)
    ttl = min(rrset.ttl for rrset in kept)
    r.answer = [dns.rrset.from_rdata_list(question.name, ttl, rdatas)]


class MiscOptimizer:
    """Refuses odd queries, limits the UDP size and tidies responses."""

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        q = qctx.query
        if is_unusual_query(q):
            r = dns.message.make_response(q)
            r.set_rcode(dns.rcode.REFUSED)
            qctx.set_response(r)
            return

        _cap_payload(q, MAX_UDP_SIZE)

        await exec_chain(qctx, next_node)

        r = qctx.response
        if r is None:
            return

        _trim_and_shuffle(q, r)

        if r.edns >= 0:
            options = [o for o in r.options if int(o.otype) != dns.edns.OptionType.PADDING]
            if len(options) != len(r.options) or getattr(r, "pad", 0):
                r.pad = 0
                _set_options(r, options)

        if q.edns < 0:
            r.use_edns(False)


class DCName:
    """Drops answers of other types from A/AAAA responses and shuffles the rest."""

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        q = qctx.query
        await exec_chain(qctx, next_node)
        r = qctx.response
        if r is None:
            return
        _trim_and_shuffle(q, r)