import asyncio

import pytest
from _fakes import AsyncScriptedTransport, error, ok, quota

from quotarelay import (
    AsyncDispatcher,
    CredentialPool,
    KeyConfig,
    KeyStatus,
    PoolExhausted,
    UpstreamError,
)


def _pool(*tokens):
    return CredentialPool([KeyConfig(t, t) for t in tokens])


@pytest.mark.asyncio
async def test_async_failover():
    pool = _pool("K1", "K2")
    transport = AsyncScriptedTransport({"K1": quota(), "K2": ok({"items": [1, 2]})})
    async with AsyncDispatcher(pool, transport=transport) as api:
        body = await api.dispatch("search", {"q": "lofi"})
    assert body == {"items": [1, 2]}
    assert pool.get("K1").status is KeyStatus.EXHAUSTED
    assert transport.closed is False


@pytest.mark.asyncio
async def test_async_bounded_retries():
    pool = _pool("A", "B")
    transport = AsyncScriptedTransport({"A": quota(), "B": quota()})
    with pytest.raises(PoolExhausted):
        await AsyncDispatcher(pool, transport=transport).dispatch("videos")
    assert len(transport.calls) == 2  # noqa: PLR2004


@pytest.mark.asyncio
async def test_async_generic_error_fails_fast():
    pool = _pool("A", "B")
    transport = AsyncScriptedTransport({"A": error(400, "Invalid filter"), "B": ok()})
    with pytest.raises(UpstreamError):
        await AsyncDispatcher(pool, transport=transport).dispatch("videos")
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_concurrent_dispatches_share_pool():
    pool = _pool("A", "B", "C")
    transport = AsyncScriptedTransport({"A": quota(), "B": ok(), "C": ok()})
    api = AsyncDispatcher(pool, transport=transport)

    results = await asyncio.gather(*(api.dispatch("videos") for _ in range(12)))

    assert results == [{"items": []}] * 12
    assert pool.get("A").status is KeyStatus.EXHAUSTED
    assert pool.get("B").successes + pool.get("C").successes == 12  # noqa: PLR2004
