import asyncio

import dns.message
import dns.rcode
import dns.rdatatype
import dns.rrset
import pytest

from dnspipe.chain import QueryContext, build_chain
from dnspipe.plugins.dual_selector import DualSelector, Mode, msg_answer_has_type


class DummyNext:
    def __init__(self, return_a=False, latency_a=0.0, return_aaaa=False, latency_aaaa=0.0):
        self.return_a = return_a
        self.latency_a = latency_a
        self.return_aaaa = return_aaaa
        self.latency_aaaa = latency_aaaa
        self.calls = 0

    async def exec(self, qctx, next_node):
        self.calls += 1
        q = qctx.query
        r = dns.message.make_response(q)
        question = q.question[0]
        if question.rdtype == dns.rdatatype.A and self.return_a:
            r.answer.append(
                dns.rrset.from_text(question.name, 0, question.rdclass, question.rdtype, "1.2.3.4")
            )
            await asyncio.sleep(self.latency_a)
        if question.rdtype == dns.rdatatype.AAAA and self.return_aaaa:
            r.answer.append(
                dns.rrset.from_text(
                    question.name, 0, question.rdclass, question.rdtype, "::ffff:1.2.3.4"
                )
            )
            await asyncio.sleep(self.latency_aaaa)
        qctx.set_response(r)


class FailingNext:
    async def exec(self, qctx, next_node):
        raise RuntimeError("upstream failed")


def _chain(**kwargs):
    return build_chain([DummyNext(**kwargs)])


CASES = [
    ("prefer v4: no A record", Mode.PREFER_IPV4, "AAAA", dict(return_aaaa=True), True),
    (
        "prefer v4: A reply late",
        Mode.PREFER_IPV4,
        "AAAA",
        dict(return_a=True, latency_a=0.1, return_aaaa=True),
        True,
    ),
    ("prefer v4: has A", Mode.PREFER_IPV4, "AAAA", dict(return_a=True, return_aaaa=True), False),
    ("prefer v6: no AAAA record", Mode.PREFER_IPV6, "A", dict(return_a=True), True),
    (
        "prefer v6: AAAA reply late",
        Mode.PREFER_IPV6,
        "A",
        dict(return_a=True, return_aaaa=True, latency_aaaa=0.1),
        True,
    ),
    ("prefer v6: has AAAA", Mode.PREFER_IPV6, "A", dict(return_a=True, return_aaaa=True), False),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("name,mode,qtype,next_args,want_reply", CASES, ids=[c[0] for c in CASES])
async def test_selector_exec(name, mode, qtype, next_args, want_reply):
    s = DualSelector(mode=mode, wait_timeout_ms=20)
    q = dns.message.make_query("example.", qtype)
    qctx = QueryContext(q)
    await s.exec(qctx, _chain(**next_args))
    rdtype = dns.rdatatype.from_text(qtype)
    assert msg_answer_has_type(qctx.response, rdtype) == want_reply


@pytest.mark.asyncio
async def test_blocked_reply_is_empty_noerror():
    s = DualSelector(mode=Mode.PREFER_IPV4, wait_timeout_ms=20)
    q = dns.message.make_query("example.", "AAAA")
    qctx = QueryContext(q)
    await s.exec(qctx, _chain(return_a=True, return_aaaa=True))
    assert qctx.response.rcode() == dns.rcode.NOERROR
    assert qctx.response.answer == []
    assert qctx.response.id == q.id


@pytest.mark.asyncio
async def test_preferred_type_passes_straight_through():
    dummy = DummyNext(return_a=True, return_aaaa=True)
    s = DualSelector(mode=Mode.PREFER_IPV4)
    qctx = QueryContext(dns.message.make_query("example.", "A"))
    await s.exec(qctx, build_chain([dummy]))
    assert dummy.calls == 1
    assert msg_answer_has_type(qctx.response, dns.rdatatype.A)


@pytest.mark.asyncio
async def test_unrelated_type_passes_straight_through():
    dummy = DummyNext(return_a=True)
    s = DualSelector(mode=Mode.PREFER_IPV6)
    qctx = QueryContext(dns.message.make_query("example.", "MX"))
    await s.exec(qctx, build_chain([dummy]))
    assert dummy.calls == 1
    assert qctx.response is not None


@pytest.mark.asyncio
async def test_original_query_is_not_changed_by_reference():
    s = DualSelector(mode=Mode.PREFER_IPV4, wait_timeout_ms=20)
    qctx = QueryContext(dns.message.make_query("example.", "AAAA"))
    await s.exec(qctx, _chain(return_aaaa=True))
    assert qctx.query.question[0].rdtype == dns.rdatatype.AAAA


@pytest.mark.asyncio
async def test_error_of_original_query_is_raised():
    s = DualSelector(mode=Mode.PREFER_IPV4, wait_timeout_ms=20)
    qctx = QueryContext(dns.message.make_query("example.", "AAAA"))
    with pytest.raises(RuntimeError, match="upstream failed"):
        await s.exec(qctx, build_chain([FailingNext()]))


def test_msg_answer_has_type():
    q = dns.message.make_query("example.", "A")
    r = dns.message.make_response(q)
    assert not msg_answer_has_type(None, dns.rdatatype.A)
    assert not msg_answer_has_type(r, dns.rdatatype.A)
    r.answer.append(dns.rrset.from_text("example.", 0, "IN", "A", "1.2.3.4"))
    assert msg_answer_has_type(r, dns.rdatatype.A)
    assert not msg_answer_has_type(r, dns.rdatatype.AAAA)


def test_invalid_mode_rejected():
    with pytest.raises(ValueError):
        DualSelector(mode=7)