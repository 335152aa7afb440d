from .adapters import AiohttpTransport, AsyncHttpxTransport, HttpxTransport, RequestsTransport
from .classifier import (
    ErrorInfo,
    Failure,
    QuotaExceeded,
    Success,
    classify_response,
    is_quota_exceeded,
    parse_error_body,
)
from .dispatch import AsyncDispatcher, Dispatcher, ProbeResult
from .env import load_keyconfigs_from_env, load_service_config_from_env
from .errors import (
    MalformedResponse,
    PoolExhausted,
    QuotaRelayError,
    RequestTimeout,
    TransportError,
    UpstreamError,
)
from .policies import (
    DailyQuotaPolicy,
    ExhaustionPolicy,
    FixedCooldownPolicy,
    PoolResetPolicy,
    coerce_policy,
)
from .pool import CredentialPool
from .relay import arelay, relay
from .state import KeyState, KeyStatus
from .types import KeyConfig, RawResponse, ServiceConfig

__all__ = [
    "KeyConfig",
    "ServiceConfig",
    "RawResponse",
    "KeyState",
    "KeyStatus",
    "CredentialPool",
    "ExhaustionPolicy",
    "PoolResetPolicy",
    "FixedCooldownPolicy",
    "DailyQuotaPolicy",
    "coerce_policy",
    "ErrorInfo",
    "Success",
    "QuotaExceeded",
    "Failure",
    "parse_error_body",
    "is_quota_exceeded",
    "classify_response",
    "Dispatcher",
    "AsyncDispatcher",
    "ProbeResult",
    "RequestsTransport",
    "HttpxTransport",
    "AsyncHttpxTransport",
    "AiohttpTransport",
    "QuotaRelayError",
    "PoolExhausted",
    "UpstreamError",
    "TransportError",
    "RequestTimeout",
    "MalformedResponse",
    "relay",
    "arelay",
    "load_keyconfigs_from_env",
    "load_service_config_from_env",
]
