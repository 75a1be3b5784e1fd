"""Query context and the chain of executables that handles a query."""

from __future__ import annotations

import copy
import itertools
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import dns.message

_context_ids = itertools.count(1)
_mark_ids = itertools.count(1)
_mark_lock = threading.Lock()


def _copy_message(msg: dns.message.Message | None) -> dns.message.Message | None:
    return None if msg is None else copy.deepcopy(msg)


class QueryContext:
    """A query, its response so far, and facts about the request."""

    def __init__(self, query: dns.message.Message, client_addr: Any = None) -> None:
        self.query = query
        self.original_query = copy.deepcopy(query)
        self.response: dns.message.Message | None = None
        self.client_addr = client_addr
        self.id = next(_context_ids)
        self.start_time = time.monotonic()
        self._marks: set[int] = set()

    def set_response(self, response: dns.message.Message | None) -> None:
        """Replace the response; None drops it."""
        self.response = response

    def copy(self) -> QueryContext:
        """Return a copy whose query, response and marks are independent."""
        new = copy.copy(self)
        new.query = copy.deepcopy(self.query)
        new.response = _copy_message(self.response)
        new._marks = set(self._marks)
        return new

    def add_mark(self, mark: int) -> None:
        """Attach a mark to this context."""
        self._marks.add(mark)

    def has_mark(self, mark: int) -> bool:
        """Tell whether the mark is attached."""
        return mark in self._marks

    def __repr__(self) -> str:
        names = ", ".join(f"{q.name} {q.rdtype.name}" for q in self.query.question)
        return f"<QueryContext id={self.id} question=[{names}] client={self.client_addr}>"


@runtime_checkable
class Executable(Protocol):
    """Anything that handles a query and decides how to go on."""

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None: ...


@runtime_checkable
class Matcher(Protocol):
    """Anything that answers yes or no about a query."""

    def match(self, qctx: QueryContext) -> bool: ...


@dataclass
class ChainNode:
    """One link of a chain: an executable and what follows it."""

    executable: Executable
    next: ChainNode | None = None


def build_chain(executables: Iterable[Executable]) -> ChainNode | None:
    """Link executables in order; return the head, or None if there are none."""
    head: ChainNode | None = None
    for executable in reversed(list(executables)):
        head = ChainNode(executable, head)
    return head


async def exec_chain(qctx: QueryContext, node: ChainNode | None) -> None:
    """Run ``node`` and, through it, the rest of its chain."""
    if node is None:
        return
    await node.executable.exec(qctx, node.next)


def allocate_mark() -> int:
    """Return a mark id never returned before."""
    with _mark_lock:
        return next(_mark_ids)


class Sequence:
    """Runs a fixed chain of executables, then continues with the outer chain."""

    def __init__(self, executables: Iterable[Executable]) -> None:
        self._chain = build_chain(executables)

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        await exec_chain(qctx, self._chain)
        await exec_chain(qctx, next_node)


class Return:
    """Stops the chain it stands in."""

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        return None