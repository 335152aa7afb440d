import inspect
from datetime import datetime, timedelta
from typing import Callable, Union
from zoneinfo import ZoneInfo

# The remote service rolls daily quotas over at midnight Pacific time
QUOTA_DAY_TIMEZONE = "America/Los_Angeles"

DEFAULT_CALLABLE_ARGC = 1  # revive_fn(exhausted_at)


def _count_positional_args(fn, default: int) -> int:
    """Return count of positional params for fn; fall back to default on failure."""
    try:
        sig = inspect.signature(fn)
        return len(
            [
                p
                for p in sig.parameters.values()
                if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
            ]
        )
    except (TypeError, ValueError):
        return default


class ExhaustionPolicy:
    """Decides when an exhausted key becomes available again on its own.

    Returning None keeps the key exhausted until the next full-pool reset.
    """

    def available_at(self, exhausted_at: float) -> Union[float, None]:
        return None


class PoolResetPolicy(ExhaustionPolicy):
    pass


class FixedCooldownPolicy(ExhaustionPolicy):
    def __init__(self, seconds: float):
        if seconds <= 0:
            raise ValueError("cooldown seconds must be positive")
        self.seconds = float(seconds)

    def available_at(self, exhausted_at: float) -> float:
        return exhausted_at + self.seconds


class DailyQuotaPolicy(ExhaustionPolicy):
    """Keep a key exhausted until the next quota-day boundary."""

    def __init__(self, timezone: str = QUOTA_DAY_TIMEZONE):
        self.tz = ZoneInfo(timezone)

    def available_at(self, exhausted_at: float) -> float:
        local = datetime.fromtimestamp(exhausted_at, self.tz)
        midnight = (local + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight.timestamp()


class FunctionalPolicy(ExhaustionPolicy):
    """Wrap a user-supplied function ``revive_fn(exhausted_at) -> float | None``."""

    def __init__(self, revive_fn: Callable):
        if _count_positional_args(revive_fn, DEFAULT_CALLABLE_ARGC) < 1:
            raise TypeError("exhaustion function must accept the exhausted_at timestamp")
        self.revive_fn = revive_fn

    def available_at(self, exhausted_at):
        when = self.revive_fn(exhausted_at)
        if when is not None and not isinstance(when, (int, float)):
            raise TypeError("exhaustion function must return a timestamp or None")
        return when


def coerce_policy(policy: Union[object, None]) -> ExhaustionPolicy:
    """Turn None | str | number | ExhaustionPolicy | callable into an ExhaustionPolicy.

    Accepted inputs:
      - None      -> PoolResetPolicy
      - "reset"   -> PoolResetPolicy
      - "daily"   -> DailyQuotaPolicy
      - number    -> FixedCooldownPolicy(seconds)
      - ExhaustionPolicy instance (returned as-is)
      - callable taking the exhausted_at timestamp -> FunctionalPolicy
    """
    if policy is None:
        return PoolResetPolicy()
    if isinstance(policy, ExhaustionPolicy):
        return policy
    if isinstance(policy, str):
        name = policy.lower()
        if name == "reset":
            return PoolResetPolicy()
        if name == "daily":
            return DailyQuotaPolicy()
        raise ValueError(
            "Unknown policy string. Use 'reset' or 'daily', or pass seconds/a callable."
        )
    if isinstance(policy, bool):
        raise TypeError("policy must not be a bool")
    if isinstance(policy, (int, float)):
        return FixedCooldownPolicy(policy)
    if callable(policy):
        return FunctionalPolicy(policy)
    raise TypeError(
        "policy must be None, 'reset'|'daily', seconds, ExhaustionPolicy, or a callable"
    )
