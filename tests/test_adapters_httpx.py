import httpx
import pytest

from quotarelay import (
    AsyncDispatcher,
    AsyncHttpxTransport,
    CredentialPool,
    Dispatcher,
    HttpxTransport,
    KeyConfig,
    KeyStatus,
    RequestTimeout,
    TransportError,
)

QUOTA_BODY = {"error": {"message": "quota", "errors": [{"reason": "quotaExceeded"}]}}


def _handler(request):
    if request.url.params["key"] == "K1":
        return httpx.Response(403, json=QUOTA_BODY)
    return httpx.Response(200, json={"items": [request.url.params["id"]]})


def test_httpx_sync_dispatch_end_to_end():
    pool = CredentialPool([KeyConfig("k1", "K1"), KeyConfig("k2", "K2")])
    with httpx.Client(transport=httpx.MockTransport(_handler)) as client:
        api = Dispatcher(pool, transport=HttpxTransport(client))
        body = api.dispatch("videos", {"id": "abc"})
    assert body == {"items": ["abc"]}
    assert pool.get("k1").status is KeyStatus.EXHAUSTED


def test_httpx_request_url():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={})

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        HttpxTransport(client).send(
            "https://www.googleapis.com/youtube/v3/search", [("q", "cats"), ("key", "T")], {}, 5.0
        )
    assert seen == ["https://www.googleapis.com/youtube/v3/search?q=cats&key=T"]


def test_httpx_timeout_and_connect_errors():
    def slow(request):
        raise httpx.ReadTimeout("slow", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(slow)) as client:
        with pytest.raises(RequestTimeout):
            HttpxTransport(client).send("https://example.com", [], {}, 0.5)
    with httpx.Client(transport=httpx.MockTransport(refused)) as client:
        with pytest.raises(TransportError) as info:
            HttpxTransport(client).send("https://example.com", [], {}, 0.5)
        assert not isinstance(info.value, RequestTimeout)


@pytest.mark.asyncio
async def test_httpx_async_dispatch_end_to_end():
    pool = CredentialPool([KeyConfig("k1", "K1"), KeyConfig("k2", "K2")])
    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        async with AsyncDispatcher(pool, transport=AsyncHttpxTransport(client)) as api:
            body = await api.dispatch("videos", {"id": "xyz"})
        assert not client.is_closed
    assert body == {"items": ["xyz"]}


@pytest.mark.asyncio
async def test_httpx_async_timeout():
    def slow(request):
        raise httpx.ConnectTimeout("slow", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(slow)) as client:
        with pytest.raises(RequestTimeout):
            await AsyncHttpxTransport(client).send("https://example.com", [], {}, 0.5)
