import asyncio
from typing import Protocol

from .errors import RequestTimeout, TransportError
from .types import RawResponse

Params = list[tuple[str, str]]


class Transport(Protocol):
    def send(
        self, url: str, params: Params, headers: dict[str, str], timeout: float
    ) -> RawResponse: ...

    def close(self) -> None: ...


class AsyncTransport(Protocol):
    async def send(
        self, url: str, params: Params, headers: dict[str, str], timeout: float
    ) -> RawResponse: ...

    async def aclose(self) -> None: ...


# ---------- requests (sync) ----------
class RequestsTransport:
    def __init__(self, session=None):
        if session is None:
            import requests  # noqa: PLC0415

            self.session = requests.Session()
            self._own_session = True
        else:
            self.session = session
            self._own_session = False

    def send(self, url, params, headers, timeout):
        import requests  # noqa: PLC0415

        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=timeout)
        except requests.Timeout as e:
            raise RequestTimeout(timeout, e) from e
        except requests.RequestException as e:
            raise TransportError(e) from e
        return RawResponse(resp.status_code, resp.text, dict(resp.headers))

    def close(self):
        if self._own_session:
            self.session.close()


# ---------- httpx (sync) ----------
class HttpxTransport:
    def __init__(self, client=None):
        if client is None:
            import httpx  # noqa: PLC0415

            self.client = httpx.Client()
            self._own_client = True
        else:
            self.client = client
            self._own_client = False

    def send(self, url, params, headers, timeout):
        import httpx  # noqa: PLC0415

        try:
            resp = self.client.get(url, params=params, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            raise RequestTimeout(timeout, e) from e
        except httpx.HTTPError as e:
            raise TransportError(e) from e
        return RawResponse(resp.status_code, resp.text, dict(resp.headers))

    def close(self):
        if self._own_client:
            self.client.close()


# ---------- httpx (async) ----------
class AsyncHttpxTransport:
    def __init__(self, client=None):
        self.client = client
        self._own_client = client is None

    async def send(self, url, params, headers, timeout):
        import httpx  # noqa: PLC0415

        if self.client is None:
            self.client = httpx.AsyncClient()
        try:
            resp = await self.client.get(url, params=params, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            raise RequestTimeout(timeout, e) from e
        except httpx.HTTPError as e:
            raise TransportError(e) from e
        return RawResponse(resp.status_code, resp.text, dict(resp.headers))

    async def aclose(self):
        if self._own_client and self.client is not None:
            await self.client.aclose()
            self.client = None


# ---------- aiohttp (async) ----------
class AiohttpTransport:
    def __init__(self, session=None):
        self.session = session
        self._own_session = session is None

    async def send(self, url, params, headers, timeout):
        import aiohttp  # noqa: PLC0415

        if self.session is None:
            self.session = aiohttp.ClientSession()
        try:
            async with self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                text = await resp.text(errors="replace")
                return RawResponse(resp.status, text, dict(resp.headers))
        except asyncio.TimeoutError as e:
            raise RequestTimeout(timeout, e) from e
        except aiohttp.ClientError as e:
            raise TransportError(e) from e

    async def aclose(self):
        if self._own_session and self.session is not None:
            await self.session.close()
            self.session = None
