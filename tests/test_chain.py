import dns.message
import pytest

from dnspipe.chain import (
    ChainNode,
    QueryContext,
    Return,
    Sequence,
    allocate_mark,
    build_chain,
    exec_chain,
)


class Recorder:
    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    async def exec(self, qctx, next_node):
        self.calls.append(self.name)
        await exec_chain(qctx, next_node)


def make_ctx():
    return QueryContext(dns.message.make_query("example.com.", "A"))


def test_build_chain_empty():
    assert build_chain([]) is None


def test_build_chain_links_in_order():
    a, b = Recorder("a", []), Recorder("b", [])
    head = build_chain([a, b])
    assert isinstance(head, ChainNode)
    assert head.executable is a
    assert head.next.executable is b
    assert head.next.next is None


@pytest.mark.asyncio
async def test_exec_chain_runs_all_in_order():
    calls = []
    chain = build_chain([Recorder("a", calls), Recorder("b", calls), Recorder("c", calls)])
    await exec_chain(make_ctx(), chain)
    assert calls == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_exec_chain_none_leaves_context():
    qctx = make_ctx()
    await exec_chain(qctx, None)
    assert qctx.response is None


@pytest.mark.asyncio
async def test_return_stops_chain():
    calls = []
    chain = build_chain([Recorder("a", calls), Return(), Recorder("b", calls)])
    await exec_chain(make_ctx(), chain)
    assert calls == ["a"]


@pytest.mark.asyncio
async def test_sequence_runs_inner_then_next():
    calls = []
    seq = Sequence([Recorder("inner", calls), Return(), Recorder("skipped", calls)])
    chain = build_chain([seq, Recorder("outer", calls)])
    await exec_chain(make_ctx(), chain)
    assert calls == ["inner", "outer"]


def test_set_response():
    qctx = make_ctx()
    r = dns.message.make_response(qctx.query)
    qctx.set_response(r)
    assert qctx.response is r
    qctx.set_response(None)
    assert qctx.response is None


def test_copy_is_independent():
    qctx = make_ctx()
    qctx.set_response(dns.message.make_response(qctx.query))
    mark = allocate_mark()
    dup = qctx.copy()
    dup.query.id = (qctx.query.id + 1) % 65536
    dup.response.set_rcode(2)
    dup.add_mark(mark)
    assert qctx.query.id != dup.query.id
    assert qctx.response.rcode() == 0
    assert not qctx.has_mark(mark)
    assert dup.has_mark(mark)
    assert dup.id == qctx.id


def test_original_query_kept():
    qctx = make_ctx()
    original_id = qctx.query.id
    qctx.query.id = (original_id + 1) % 65536
    assert qctx.original_query.id == original_id


def test_context_ids_unique():
    ids = {make_ctx().id for _ in range(5)}
    assert len(ids) == 5


def test_marks():
    qctx = make_ctx()
    a, b = allocate_mark(), allocate_mark()
    assert a != b
    qctx.add_mark(a)
    assert qctx.has_mark(a)
    assert not qctx.has_mark(b)