"""Removes EDNS0 options from queries."""

from __future__ import annotations

from collections.abc import Iterable

import dns.edns
import dns.message

from dnspipe.chain import ChainNode, QueryContext, exec_chain


def _set_options(msg: dns.message.Message, options: Iterable[dns.edns.Option]) -> None:
    msg.use_edns(
        edns=msg.edns,
        ednsflags=msg.ednsflags,
        payload=msg.payload,
        options=list(options),
        pad=getattr(msg, "pad", 0),
    )


class Edns0Filter:
    """Filters a query's EDNS0 options.

    Priority: ``no_edns`` removes EDNS0 entirely; else ``keep`` keeps only
    the listed option codes; else ``discard`` removes the listed codes;
    with none of them, every option is removed.
    """

    def __init__(
        self,
        no_edns: bool = False,
        keep: Iterable[int] = (),
        discard: Iterable[int] = (),
    ) -> None:
        self.no_edns = no_edns
        self.keep = frozenset(int(o) for o in keep)
        self.discard = frozenset(int(o) for o in discard)

    def apply(self, query: dns.message.Message) -> None:
        """Filter the options of ``query`` in place."""
        if self.no_edns:
            query.use_edns(False)
            return
        if query.edns < 0 or not query.options:
            return
        if self.keep:
            options = [o for o in query.options if int(o.otype) in self.keep]
        elif self.discard:
            options = [o for o in query.options if int(o.otype) not in self.discard]
        else:
            options = []
        _set_options(query, options)

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        self.apply(qctx.query)
        await exec_chain(qctx, next_node)