import asyncio
import time

import dns.message
import pytest

from dnspipe.chain import QueryContext, build_chain, exec_chain
from dnspipe.plugins.sleep import Sleep


class Responder:
    async def exec(self, qctx, next_node):
        qctx.set_response(dns.message.make_response(qctx.query))
        await exec_chain(qctx, next_node)


def make_ctx():
    return QueryContext(dns.message.make_query("example.com.", "A"))


@pytest.mark.asyncio
async def test_zero_duration_passes_on():
    qctx = make_ctx()
    await exec_chain(qctx, build_chain([Sleep(0), Responder()]))
    assert qctx.response.id == qctx.query.id


@pytest.mark.asyncio
async def test_sleeps_at_least_duration():
    qctx = make_ctx()
    start = time.monotonic()
    await exec_chain(qctx, build_chain([Sleep(50), Responder()]))
    assert time.monotonic() - start >= 0.045
    assert qctx.response.id == qctx.query.id


@pytest.mark.asyncio
async def test_cancelled_wait_skips_next():
    qctx = make_ctx()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(exec_chain(qctx, build_chain([Sleep(5000), Responder()])), 0.05)
    assert qctx.response is None


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        Sleep(-1)