"""Errors surfaced to callers of a dispatcher.

Quota exhaustion of a single key is never raised; the dispatcher handles it by
rotating. Everything here is terminal for one dispatch and nothing else.
"""

from typing import Any, Union


class QuotaRelayError(Exception):
    """Base class for all request-scoped failures."""

    http_status = 500

    def to_payload(self) -> dict[str, Any]:
        return {"error": str(self)}


class PoolExhausted(QuotaRelayError):
    """Every key in the pool reported quota exhaustion."""

    http_status = 429

    def __init__(self, attempts: int, last_message: Union[str, None] = None):
        self.attempts = attempts
        self.last_message = last_message
        super().__init__(f"all API keys have exceeded their quota ({attempts} attempts)")

    def to_payload(self):
        return {
            "error": "API quota exceeded. Please try again later.",
            "details": {"attempts": self.attempts, "message": self.last_message},
        }


class UpstreamError(QuotaRelayError):
    """The remote service rejected the request for a reason other than quota."""

    def __init__(
        self,
        status: int,
        message: Union[str, None] = None,
        reasons: tuple[str, ...] = (),
    ):
        self.status = status
        self.message = message
        self.reasons = tuple(reasons)
        detail = message or "no error message"
        super().__init__(f"upstream request failed with status {status}: {detail}")

    @property
    def http_status(self) -> int:
        return self.status

    def to_payload(self):
        return {
            "error": str(self),
            "details": {
                "status": self.status,
                "message": self.message,
                "reasons": list(self.reasons),
            },
        }


class TransportError(QuotaRelayError):
    """The request never produced an HTTP response."""

    http_status = 502

    def __init__(
        self, cause: Union[BaseException, str, None] = None, message: Union[str, None] = None
    ):
        self.cause = cause
        if message is None:
            message = f"transport error: {cause}" if cause else "transport error"
        super().__init__(message)


class RequestTimeout(TransportError):
    http_status = 504

    def __init__(self, timeout: Union[float, None], cause: Union[BaseException, None] = None):
        self.timeout = timeout
        super().__init__(cause, f"request timed out after {timeout}s")

    def to_payload(self):
        return {
            "error": "Request timed out. Please try again.",
            "details": {"timeout": self.timeout},
        }


class MalformedResponse(QuotaRelayError):
    """A 2xx response whose body is not a JSON object."""

    http_status = 502

    def __init__(self, status: int, snippet: str = "", reason: str = "body is not valid JSON"):
        self.status = status
        self.snippet = snippet[:200]
        self.reason = reason
        super().__init__(f"malformed response (status {status}): {reason}")
