"""Drops A or AAAA answers when the domain also has the preferred family."""

from __future__ import annotations

import asyncio
import enum
import logging

import dns.message
import dns.rcode
import dns.rdatatype
import dns.rrset

from dnspipe.chain import ChainNode, QueryContext, exec_chain

logger = logging.getLogger(__name__)

_DEFAULT_WAIT_TIMEOUT = 0.25
_SUB_ROUTINE_TIMEOUT = 5.0


class Mode(enum.IntEnum):
    PREFER_IPV4 = 0
    PREFER_IPV6 = 1


def msg_answer_has_type(msg: dns.message.Message | None, rdtype: int) -> bool:
    """Tell whether ``msg`` has an answer record of type ``rdtype``."""
    if msg is None:
        return False
    return any(rrset.rdtype == rdtype and len(rrset) > 0 for rrset in msg.answer)


def _empty_reply(q: dns.message.Message) -> dns.message.Message:
    r = dns.message.make_response(q)
    r.set_rcode(dns.rcode.NOERROR)
    return r


def _drain(task: asyncio.Task) -> None:
    if not task.done():
        task.cancel()
    elif not task.cancelled():
        task.exception()


class DualSelector:
    """Answers the non-preferred address query with an empty reply when the
    domain turns out to have addresses of the preferred family.

    The query of the other family is sent alongside the original one. If its
    answer has records, the original query is blocked. If the original answer
    comes first, the other answer is awaited for at most ``wait_timeout_ms``.
    """

    def __init__(self, mode: int = Mode.PREFER_IPV4, wait_timeout_ms: int = 0) -> None:
        self.mode = Mode(mode)
        self.wait_timeout_ms = wait_timeout_ms

    @property
    def wait_timeout(self) -> float:
        if self.wait_timeout_ms <= 0:
            return _DEFAULT_WAIT_TIMEOUT
        return self.wait_timeout_ms / 1000

    def _skip(self, qtype: int) -> bool:
        if qtype == dns.rdatatype.A:
            return self.mode == Mode.PREFER_IPV4
        if qtype == dns.rdatatype.AAAA:
            return self.mode == Mode.PREFER_IPV6
        return True

    async def exec(self, qctx: QueryContext, next_node: ChainNode | None) -> None:
        q = qctx.query
        if len(q.question) != 1:
            await exec_chain(qctx, next_node)
            return
        question = q.question[0]
        qtype = question.rdtype
        if self._skip(qtype):
            await exec_chain(qctx, next_node)
            return

        ref_type = dns.rdatatype.AAAA if qtype == dns.rdatatype.A else dns.rdatatype.A
        ref = qctx.copy()
        ref.query.question = [dns.rrset.RRset(question.name, question.rdclass, ref_type)]
        sub = qctx.copy()

        ref_task = asyncio.create_task(self._reference(ref, next_node, ref_type))
        sub_task = asyncio.create_task(
            asyncio.wait_for(exec_chain(sub, next_node), _SUB_ROUTINE_TIMEOUT)
        )
        try:
            done, _ = await asyncio.wait(
                {ref_task, sub_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if ref_task in done and ref_task.result():
                qctx.set_response(_empty_reply(q))
                return
            if not sub_task.done():
                await asyncio.wait({sub_task})
            if not ref_task.done():
                await asyncio.wait({ref_task}, timeout=self.wait_timeout)
            if ref_task.done() and ref_task.result():
                qctx.set_response(_empty_reply(q))
                return
            vars(qctx).update(vars(sub))
            sub_task.result()
        finally:
            _drain(ref_task)
            _drain(sub_task)

    @staticmethod
    async def _reference(ref: QueryContext, next_node: ChainNode | None, ref_type: int) -> bool:
        """Run the reference query; return True if the original should be blocked."""
        try:
            await asyncio.wait_for(exec_chain(ref, next_node), _SUB_ROUTINE_TIMEOUT)
        except Exception as exc:  # noqa: BLE001 - any failure means "let it pass"
            logger.warning("reference query routine err %r: %s", ref, exc)
            return False
        return msg_answer_has_type(ref.response, ref_type)