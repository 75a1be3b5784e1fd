"""Clamps the TTLs of a response's records."""

from __future__ import annotations

from collections.abc import Iterator

import dns.message
import dns.rrset

from dnspipe.chain import ChainNode, QueryContext, exec_chain


def _rrsets(r: dns.message.Message) -> Iterator[dns.rrset.RRset]:
    yield from r.answer
    yield from r.authority
    yield from r.additional


class TTL:
    """Limits response TTLs to ``maximum_ttl`` and raises them to ``minimal_ttl``.

    A limit of zero is not applied.
    """

    def __init__(self, maximum_ttl: int = 0, minimal_ttl: int = 0) -> None:
        self.maximum_ttl = maximum_ttl
        self.minimal_ttl = minimal_ttl

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        r = qctx.response
        if r is not None:
            for rrset in _rrsets(r):
                if self.maximum_ttl > 0 and rrset.ttl > self.maximum_ttl:
                    rrset.ttl = self.maximum_ttl
                if self.minimal_ttl > 0 and rrset.ttl < self.minimal_ttl:
                    rrset.ttl = self.minimal_ttl
        await exec_chain(qctx, next_node)