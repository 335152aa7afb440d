import contextlib
import logging
import threading
import time
from collections.abc import Iterable
from typing import Any, Callable, Union

from .env import load_keyconfigs_from_env
from .policies import ExhaustionPolicy, coerce_policy
from .state import KeyState, KeyStatus
from .types import KeyConfig


class CredentialPool:
    """Ordered pool of interchangeable API keys with quota-exhaustion tracking.

    All state reads and writes go through one lock. Critical sections never do
    I/O, so a single pool can be shared by threads and asyncio tasks alike.
    """

    def __init__(
        self,
        keys: list[KeyConfig],
        policy: Union[object, None] = None,
        clock: Union[Callable[[], float], None] = None,
        log_level: Union[int, None] = None,
    ):
        """Initialize a CredentialPool.

        Args:
            keys (list[KeyConfig]): non-empty list of KeyConfig objects
            policy (object | None): exhaustion policy, see policies.coerce_policy
            clock (Callable[[], float] | None): time source, defaults to time.time
            log_level (int | None): log level for the "quotarelay" logger

        Raises:
            ValueError: if keys is empty or contains blank/duplicate tokens or names
        """
        if not keys:
            raise ValueError("CredentialPool needs at least one key")
        tokens: set[str] = set()
        names: set[str] = set()
        for k in keys:
            if not k.token:
                raise ValueError(f"key {k.name!r} has an empty token")
            if k.token in tokens:
                raise ValueError(f"duplicate token for key {k.name!r}")
            if k.name in names:
                raise ValueError(f"duplicate key name {k.name!r}")
            tokens.add(k.token)
            names.add(k.name)

        self._keys: list[KeyState] = [KeyState(name=k.name, token=k.token) for k in keys]
        self._policy: ExhaustionPolicy = coerce_policy(policy)
        self._clock = clock or time.time
        self._cursor = 0
        self._resets = 0
        self._lock = threading.Lock()
        self._logger = logging.getLogger("quotarelay")
        if log_level is not None:
            with contextlib.suppress(Exception):
                self._logger.setLevel(log_level)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self):
        return iter(list(self._keys))

    @property
    def keys(self) -> list[KeyState]:
        return list(self._keys)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def resets(self) -> int:
        return self._resets

    @property
    def policy(self) -> ExhaustionPolicy:
        return self._policy

    def _now(self) -> float:
        return self._clock()

    # ---------- constructors ----------
    @classmethod
    def from_tokens(cls, tokens: Iterable[str], **kwargs):
        keys = [KeyConfig(name=f"key_{idx + 1}", token=t) for idx, t in enumerate(tokens)]
        return cls(keys, **kwargs)

    @classmethod
    def from_env(
        cls,
        names=None,
        prefix: Union[str, None] = None,
        env_path: Union[str, None] = None,
        **kwargs,
    ):
        """Create a pool from environment variables.

        kwargs keywords forwarded to the loader:
        to_lower_names, split_commas, strip_prefix
        Everything else is passed to the CredentialPool constructor.
        """
        loader_keys = {
            k: kwargs.pop(k)
            for k in list(kwargs.keys())
            if k in {"to_lower_names", "split_commas", "strip_prefix"}
        }
        keys = load_keyconfigs_from_env(
            names=names, prefix=prefix, env_path=env_path, **loader_keys
        )
        return cls(keys, **kwargs)

    # ---------- state machine (callers hold the lock) ----------
    def _revive_due(self, now: float) -> None:
        for k in self._keys:
            if k.due(now):
                k.restore()
                self._logger.info(f"key={k.name} cooldown elapsed; available again")

    def _reset(self) -> None:
        for k in self._keys:
            k.restore()
        self._resets += 1
        self._logger.warning(f"all {len(self._keys)} keys exhausted; resetting pool")

    def _select(self) -> KeyState:
        self._revive_due(self._now())
        n = len(self._keys)
        for offset in range(n):
            idx = (self._cursor + offset) % n
            k = self._keys[idx]
            if k.available:
                self._cursor = (idx + 1) % n
                return k
        self._reset()
        k = self._keys[self._cursor]
        self._cursor = (self._cursor + 1) % n
        return k

    # ---------- public API ----------
    def select(self) -> KeyState:
        """Return the next key to try in round-robin order; never returns None."""
        with self._lock:
            return self._select()

    def mark_exhausted(self, key: KeyState) -> None:
        with self._lock:
            now = self._now()
            was_available = key.available
            # an already exhausted key keeps its first timestamps
            key.exhaust(now, self._policy.available_at(now))
        if was_available:
            self._logger.info(f"key={key.name} quota exceeded; marked exhausted")

    def mark_success(self, key: KeyState) -> None:
        with self._lock:
            key.successes += 1

    def reset(self) -> None:
        with self._lock:
            self._reset()

    def get(self, name: str) -> KeyState:
        for k in self._keys:
            if k.name == name:
                return k
        raise KeyError(name)

    def available_count(self) -> int:
        with self._lock:
            self._revive_due(self._now())
            return sum(1 for k in self._keys if k.available)

    def snapshot(self) -> list[dict[str, Any]]:
        """Per-key state without tokens, safe to log or serve."""
        with self._lock:
            return [
                {
                    "name": k.name,
                    "status": k.status.value,
                    "exhausted_at": k.exhausted_at,
                    "available_at": k.available_at,
                    "successes": k.successes,
                    "quota_hits": k.quota_hits,
                }
                for k in self._keys
            ]

    def statuses(self) -> dict[str, KeyStatus]:
        with self._lock:
            return {k.name: k.status for k in self._keys}
