"""Delays a query before passing it on."""

from __future__ import annotations

import asyncio

from dnspipe.chain import ChainNode, QueryContext, exec_chain


class Sleep:
    """Waits ``duration_ms`` milliseconds, then runs the rest of the chain."""

    def __init__(self, duration_ms: int = 0) -> None:
        if duration_ms < 0:
            raise ValueError(f"invalid sleep duration {duration_ms}")
        self.duration_ms = duration_ms

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        if self.duration_ms > 0:
            await asyncio.sleep(self.duration_ms / 1000)
        await exec_chain(qctx, next_node)