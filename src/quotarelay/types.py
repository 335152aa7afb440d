from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"
DEFAULT_TIMEOUT = 10.0


@dataclass
class KeyConfig:
    name: str
    token: str


@dataclass(frozen=True)
class ServiceConfig:
    base_url: str = DEFAULT_BASE_URL
    # Credential is always sent as a query parameter
    key_param: str = "key"
    # Per-request timeout in seconds
    timeout: float = DEFAULT_TIMEOUT
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResponse:
    status: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300  # noqa: PLR2004
