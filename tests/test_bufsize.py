import dns.edns
import dns.flags
import dns.message
import pytest

from dnspipe.chain import QueryContext
from dnspipe.plugins.bufsize import BufSize


def make_ctx(payload=None, want_dnssec=False):
    q = dns.message.make_query("example.com.", "A")
    if payload is not None:
        q.use_edns(0, payload=payload)
        if want_dnssec:
            q.want_dnssec(True)
    return QueryContext(q)


@pytest.mark.asyncio
async def test_caps_to_upper_limit():
    qctx = make_ctx(payload=8192)
    await BufSize(8192).exec(qctx, None)
    assert qctx.query.payload == 4096


@pytest.mark.asyncio
async def test_zero_size_means_minimum():
    qctx = make_ctx(payload=4096)
    await BufSize().exec(qctx, None)
    assert qctx.query.payload == 512


@pytest.mark.asyncio
async def test_caps_to_configured_size():
    qctx = make_ctx(payload=1232)
    await BufSize(1000).exec(qctx, None)
    assert qctx.query.payload == 1000


@pytest.mark.asyncio
async def test_smaller_payload_untouched():
    qctx = make_ctx(payload=600)
    await BufSize(1000).exec(qctx, None)
    assert qctx.query.payload == 600


@pytest.mark.asyncio
async def test_no_edns_stays_without_edns():
    qctx = make_ctx()
    await BufSize(1000).exec(qctx, None)
    assert qctx.query.edns == -1


@pytest.mark.asyncio
async def test_dnssec_flag_kept():
    qctx = make_ctx(payload=8192, want_dnssec=True)
    await BufSize(1000).exec(qctx, None)
    assert qctx.query.ednsflags & dns.flags.DO
    assert qctx.query.payload == 1000


@pytest.mark.asyncio
async def test_options_kept():
    q = dns.message.make_query("example.com.", "A")
    opt = dns.edns.GenericOption(65001, b"\x01")
    q.use_edns(0, payload=8192, options=[opt])
    qctx = QueryContext(q)
    await BufSize(1000).exec(qctx, None)
    assert [o.otype for o in qctx.query.options] == [opt.otype]