"""Caps the EDNS0 UDP payload size that a query advertises."""

from __future__ import annotations

import dns.message

from dnspipe.chain import ChainNode, QueryContext, exec_chain

_MIN_SIZE = 512
_MAX_SIZE = 4096


class BufSize:
    """Lowers a query's EDNS0 UDP size to ``size``, kept within 512..4096."""

    def __init__(self, size: int = 0) -> None:
        self.size = size

    @property
    def limit(self) -> int:
        return min(max(self.size, _MIN_SIZE), _MAX_SIZE)

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        _cap_payload(qctx.query, self.limit)
        await exec_chain(qctx, next_node)


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