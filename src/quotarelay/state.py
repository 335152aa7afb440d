import enum
from dataclasses import dataclass


class KeyStatus(str, enum.Enum):
    AVAILABLE = "available"
    EXHAUSTED = "exhausted"


@dataclass
class KeyState:
    name: str
    token: str
    status: KeyStatus = KeyStatus.AVAILABLE
    exhausted_at: float | None = None
    # When the exhaustion policy revives the key; None means only a pool reset does
    available_at: float | None = None
    successes: int = 0
    quota_hits: int = 0

    @property
    def available(self) -> bool:
        return self.status is KeyStatus.AVAILABLE

    def exhaust(self, now: float, available_at: float | None) -> None:
        self.quota_hits += 1
        if self.status is KeyStatus.EXHAUSTED:
            return
        self.status = KeyStatus.EXHAUSTED
        self.exhausted_at = now
        self.available_at = available_at

    def restore(self) -> None:
        self.status = KeyStatus.AVAILABLE
        self.exhausted_at = None
        self.available_at = None

    def due(self, now: float) -> bool:
        """True when an exhausted key's cooldown has elapsed."""
        return (
            self.status is KeyStatus.EXHAUSTED
            and self.available_at is not None
            and now >= self.available_at
        )
