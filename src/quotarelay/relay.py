"""Translate a proxied query string into a dispatch and an HTTP-shaped reply.

The front end calls ``/api/youtube?endpoint=videos&part=snippet&id=...&_t=...``;
``relay`` turns that mapping into ``(status, payload)`` for whatever web layer
serves it.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Union

from .errors import QuotaRelayError

ENDPOINT_PARAM = "endpoint"
# Cache-buster appended by the front end; meaningless upstream
DROPPED_PARAMS = frozenset({"_t"})


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def split_query(
    query: Mapping[str, Any], key_param: str = "key"
) -> tuple[Union[str, None], dict[str, Any]]:
    endpoint = query.get(ENDPOINT_PARAM)
    if isinstance(endpoint, (list, tuple)):
        endpoint = endpoint[0] if endpoint else None
    if isinstance(endpoint, str):
        endpoint = endpoint.strip().strip("/").strip()
    params = {
        k: v
        for k, v in query.items()
        if k != ENDPOINT_PARAM and k != key_param and k not in DROPPED_PARAMS
    }
    return (endpoint or None), params


def _error_reply(err: QuotaRelayError) -> tuple[int, dict[str, Any]]:
    payload = err.to_payload()
    payload["timestamp"] = _timestamp()
    return err.http_status, payload


def _missing_endpoint() -> tuple[int, dict[str, Any]]:
    return 400, {"error": "Missing endpoint parameter", "timestamp": _timestamp()}


def relay(dispatcher, query: Mapping[str, Any]) -> tuple[int, dict[str, Any]]:
    endpoint, params = split_query(query, dispatcher.config.key_param)
    if not endpoint:
        return _missing_endpoint()
    try:
        return 200, dispatcher.dispatch(endpoint, params)
    except QuotaRelayError as e:
        return _error_reply(e)


async def arelay(dispatcher, query: Mapping[str, Any]) -> tuple[int, dict[str, Any]]:
    endpoint, params = split_query(query, dispatcher.config.key_param)
    if not endpoint:
        return _missing_endpoint()
    try:
        return 200, await dispatcher.dispatch(endpoint, params)
    except QuotaRelayError as e:
        return _error_reply(e)
