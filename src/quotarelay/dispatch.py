import contextlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .adapters import AsyncHttpxTransport, Params, RequestsTransport
from .classifier import Failure, Outcome, QuotaExceeded, Success, classify_response
from .errors import PoolExhausted, TransportError
from .pool import CredentialPool
from .state import KeyState
from .types import RawResponse, ServiceConfig

# cheapest request the service answers; used to check a single key
PROBE_ENDPOINT = "videos"
PROBE_PARAMS = {"part": "snippet", "chart": "mostPopular", "maxResults": "1"}


@dataclass(frozen=True)
class ProbeResult:
    name: str
    ok: bool
    status: Union[int, None] = None
    quota_exceeded: bool = False
    message: Union[str, None] = None
    body: Union[dict[str, Any], None] = None


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ---------- shared logic (I/O handled by subclasses) ----------


class _BaseDispatcher:
    def __init__(
        self,
        pool: CredentialPool,
        config: Union[ServiceConfig, None] = None,
        log_level: Union[int, None] = None,
    ):
        self.pool = pool
        self.config = config or ServiceConfig()
        self._logger = logging.getLogger("quotarelay")
        if log_level is not None:
            with contextlib.suppress(Exception):
                self._logger.setLevel(log_level)

    def _url(self, endpoint: str) -> str:
        path = (endpoint or "").strip().strip("/")
        if not path:
            raise ValueError("endpoint must be a non-empty path segment")
        return f"{self.config.base_url.rstrip('/')}/{path}"

    def _query(self, params: Union[Mapping[str, Any], None]) -> Params:
        query: Params = []
        for name, value in (params or {}).items():
            if name == self.config.key_param:
                raise ValueError(
                    f"'{name}' is reserved for the pool credential and cannot be passed"
                )
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                query.extend((name, _encode(v)) for v in value if v is not None)
            else:
                query.append((name, _encode(value)))
        return query

    def _with_key(self, query: Params, key: KeyState) -> Params:
        return [*query, (self.config.key_param, key.token)]

    def _timeout(self, timeout: Union[float, None]) -> float:
        return self.config.timeout if timeout is None else timeout

    def _settle(self, endpoint: str, key: KeyState, attempt: int, outcome: Outcome) -> Outcome:
        """Apply one attempt's outcome to the pool; raise when it is terminal."""
        if isinstance(outcome, Success):
            self.pool.mark_success(key)
            return outcome
        if isinstance(outcome, QuotaExceeded):
            self.pool.mark_exhausted(key)
            self._logger.info(
                f"quota exceeded on endpoint={endpoint} key={key.name} "
                f"attempt={attempt}/{len(self.pool)}; rotating"
            )
            return outcome
        if isinstance(outcome, Failure):
            raise outcome.error
        raise TypeError(f"unexpected outcome {outcome!r}")

    def _exhausted(self, attempts: int, last: Union[Outcome, None]) -> PoolExhausted:
        message = last.info.message if isinstance(last, QuotaExceeded) else None
        return PoolExhausted(attempts, message)

    def _probe_result(self, key: KeyState, resp: RawResponse) -> ProbeResult:
        outcome = classify_response(resp)
        if isinstance(outcome, Success):
            return ProbeResult(key.name, True, resp.status, body=outcome.body)
        if isinstance(outcome, QuotaExceeded):
            return ProbeResult(key.name, False, resp.status, True, outcome.info.message)
        return ProbeResult(key.name, False, resp.status, message=str(outcome.error))


# ---------- sync dispatcher ----------


class Dispatcher(_BaseDispatcher):
    """Issue GET requests through a CredentialPool, rotating keys on quota errors.

    Usage:
        with Dispatcher(CredentialPool.from_env(prefix="YOUTUBE_API_KEY")) as api:
            data = api.dispatch("videos", {"part": "snippet", "id": video_id})
    """

    def __init__(
        self,
        pool: CredentialPool,
        transport=None,
        config: Union[ServiceConfig, None] = None,
        log_level: Union[int, None] = None,
    ):
        super().__init__(pool, config, log_level)
        self._own_transport = transport is None
        self.transport = transport if transport is not None else RequestsTransport()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self._own_transport:
            self.transport.close()

    def _send(self, endpoint, key, url, query, timeout) -> RawResponse:
        self._logger.debug(f"req start endpoint={endpoint} key={key.name}")
        try:
            resp = self.transport.send(url, query, dict(self.config.headers), timeout)
        except TransportError as e:
            self._logger.warning(f"request error on endpoint={endpoint} key={key.name}: {e}")
            raise
        self._logger.debug(f"req done endpoint={endpoint} key={key.name} status={resp.status}")
        return resp

    def dispatch(
        self,
        endpoint: str,
        params: Union[Mapping[str, Any], None] = None,
        timeout: Union[float, None] = None,
    ) -> dict[str, Any]:
        url = self._url(endpoint)
        query = self._query(params)
        timeout = self._timeout(timeout)
        attempts = len(self.pool)
        last = None
        for attempt in range(1, attempts + 1):
            key = self.pool.select()
            resp = self._send(endpoint, key, url, self._with_key(query, key), timeout)
            last = self._settle(endpoint, key, attempt, classify_response(resp))
            if isinstance(last, Success):
                return last.body
        raise self._exhausted(attempts, last)

    def probe(
        self,
        name: str,
        endpoint: str = PROBE_ENDPOINT,
        params: Union[Mapping[str, Any], None] = None,
        timeout: Union[float, None] = None,
    ) -> ProbeResult:
        """Check one key with a single request; pool state is left untouched."""
        key = self.pool.get(name)
        url = self._url(endpoint)
        query = self._with_key(self._query(PROBE_PARAMS if params is None else params), key)
        try:
            resp = self._send(endpoint, key, url, query, self._timeout(timeout))
        except TransportError as e:
            return ProbeResult(key.name, False, message=str(e))
        return self._probe_result(key, resp)


# ---------- async dispatcher ----------


class AsyncDispatcher(_BaseDispatcher):
    def __init__(
        self,
        pool: CredentialPool,
        transport=None,
        config: Union[ServiceConfig, None] = None,
        log_level: Union[int, None] = None,
    ):
        super().__init__(pool, config, log_level)
        self._own_transport = transport is None
        self.transport = transport if transport is not None else AsyncHttpxTransport()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def aclose(self):
        if self._own_transport:
            await self.transport.aclose()

    async def _send(self, endpoint, key, url, query, timeout) -> RawResponse:
        self._logger.debug(f"req start endpoint={endpoint} key={key.name}")
        try:
            resp = await self.transport.send(url, query, dict(self.config.headers), timeout)
        except TransportError as e:
            self._logger.warning(f"request error on endpoint={endpoint} key={key.name}: {e}")
            raise
        self._logger.debug(f"req done endpoint={endpoint} key={key.name} status={resp.status}")
        return resp

    async def dispatch(
        self,
        endpoint: str,
        params: Union[Mapping[str, Any], None] = None,
        timeout: Union[float, None] = None,
    ) -> dict[str, Any]:
        url = self._url(endpoint)
        query = self._query(params)
        timeout = self._timeout(timeout)
        attempts = len(self.pool)
        last = None
        for attempt in range(1, attempts + 1):
            key = self.pool.select()
            resp = await self._send(endpoint, key, url, self._with_key(query, key), timeout)
            last = self._settle(endpoint, key, attempt, classify_response(resp))
            if isinstance(last, Success):
                return last.body
        raise self._exhausted(attempts, last)

    async def probe(
        self,
        name: str,
        endpoint: str = PROBE_ENDPOINT,
        params: Union[Mapping[str, Any], None] = None,
        timeout: Union[float, None] = None,
    ) -> ProbeResult:
        key = self.pool.get(name)
        url = self._url(endpoint)
        query = self._with_key(self._query(PROBE_PARAMS if params is None else params), key)
        try:
            resp = await self._send(endpoint, key, url, query, self._timeout(timeout))
        except TransportError as e:
            return ProbeResult(key.name, False, message=str(e))
        return self._probe_result(key, resp)
