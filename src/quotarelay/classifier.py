import json
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import MalformedResponse, QuotaRelayError, UpstreamError
from .types import RawResponse

QUOTA_MARKER = "quota"


@dataclass(frozen=True)
class ErrorInfo:
    message: Union[str, None] = None
    reasons: tuple[str, ...] = ()


# ---------- tagged attempt outcomes ----------


@dataclass(frozen=True)
class Success:
    body: dict[str, Any]


@dataclass(frozen=True)
class QuotaExceeded:
    status: int
    info: ErrorInfo = field(default_factory=ErrorInfo)


@dataclass(frozen=True)
class Failure:
    error: QuotaRelayError


Outcome = Union[Success, QuotaExceeded, Failure]


def parse_error_body(text: Union[str, None]) -> ErrorInfo:
    """Read a Google-style error envelope; anything else yields an empty ErrorInfo.

    Expected shape: {"error": {"message": str, "errors": [{"reason": str}, ...]}}
    """
    if not text:
        return ErrorInfo()
    try:
        data = json.loads(text)
    except ValueError:
        return ErrorInfo()
    if not isinstance(data, dict):
        return ErrorInfo()
    err = data.get("error")
    if isinstance(err, str):
        return ErrorInfo(message=err)
    if not isinstance(err, dict):
        return ErrorInfo()
    message = err.get("message")
    if not isinstance(message, str):
        message = None
    reasons = []
    details = err.get("errors")
    if isinstance(details, list):
        for item in details:
            if isinstance(item, dict) and isinstance(item.get("reason"), str):
                reasons.append(item["reason"])
    return ErrorInfo(message=message, reasons=tuple(reasons))


def is_quota_exceeded(status: Union[int, None], info: Union[ErrorInfo, None]) -> bool:
    """True when the failure belongs to this key's quota, so another key may succeed."""
    if info is None:
        return False
    texts = [info.message or "", *info.reasons]
    return any(QUOTA_MARKER in t.lower() for t in texts)


def classify_response(resp: RawResponse) -> Outcome:
    if resp.ok:
        if not resp.text or not resp.text.strip():
            return Failure(MalformedResponse(resp.status, "", "empty response body"))
        try:
            body = json.loads(resp.text)
        except ValueError:
            return Failure(MalformedResponse(resp.status, resp.text))
        if not isinstance(body, dict):
            return Failure(
                MalformedResponse(resp.status, resp.text, "body is not a JSON object")
            )
        return Success(body)

    info = parse_error_body(resp.text)
    if is_quota_exceeded(resp.status, info):
        return QuotaExceeded(resp.status, info)
    return Failure(UpstreamError(resp.status, info.message, info.reasons))
