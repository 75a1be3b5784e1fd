"""Matchers that look at the response of a query."""

from __future__ import annotations

from collections.abc import Iterable

from dnspipe.chain import QueryContext


class HasValidAnswer:
    """Matches responses with an answer record for one of the questions."""

    def match(self, qctx: QueryContext) -> bool:
        r = qctx.response
        if r is None:
            return False
        wanted = {(q.name, q.rdtype, q.rdclass) for q in qctx.query.question}
        return any(
            (rrset.name, rrset.rdtype, rrset.rdclass) in wanted and len(rrset) > 0
            for rrset in r.answer
        )


class RcodeMatcher:
    """Matches responses whose rcode is one of ``rcodes``."""

    def __init__(self, rcodes: Iterable[int]) -> None:
        self.rcodes = frozenset(int(c) for c in rcodes)

    def match(self, qctx: QueryContext) -> bool:
        r = qctx.response
        if r is None:
            return False
        return int(r.rcode()) in self.rcodes