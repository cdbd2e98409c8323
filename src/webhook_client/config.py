from dataclasses import dataclass

from src.webhook_client.encoding import Mode

__version__ = "0.1.0"

DEFAULT_USER_AGENT = f"webhook-client/{__version__}"
DEFAULT_ORIGIN = "hoist.ketch.com"
DEFAULT_TRUSTED_ORIGIN = "gangplank.ketch.com"
WILDCARD_ORIGIN = "*"

REQUEST_ORIGIN_HEADER = "WebHook-Request-Origin"
REQUEST_RATE_HEADER = "WebHook-Request-Rate"
ALLOWED_ORIGIN_HEADER = "WebHook-Allowed-Origin"
ALLOWED_RATE_HEADER = "WebHook-Allowed-Rate"
ALLOW_HEADER = "Allow"


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one webhook endpoint relationship.

    Secrets and TLS material arrive already resolved: ``secret`` is the raw
    signing key (empty disables signing), ``authorization`` the full
    Authorization header value, ``verify``/``cert`` are handed to requests.
    ``pool_maxsize`` caps the connections kept per host for concurrent calls.
    """

    url: str
    max_rate: int
    mode: Mode = Mode.BINARY
    origin: str = DEFAULT_ORIGIN
    trusted_origin: str = DEFAULT_TRUSTED_ORIGIN
    authorization: str | None = None
    secret: bytes = b""
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 30
    pool_maxsize: int = 10
    verify: bool | str = True
    cert: str | tuple[str, str] | None = None

    def __post_init__(self):
        if not self.url:
            raise ValueError("url must not be empty")
        if isinstance(self.max_rate, bool) or not isinstance(self.max_rate, int) or self.max_rate < 0:
            raise ValueError(f"max_rate must be a non-negative integer, got {self.max_rate!r}")
        if self.pool_maxsize < 1:
            raise ValueError(f"pool_maxsize must be at least 1, got {self.pool_maxsize!r}")
        if isinstance(self.secret, str):
            object.__setattr__(self, "secret", self.secret.encode("utf-8"))

    @property
    def accepted_origins(self) -> frozenset[str]:
        """Values of WebHook-Allowed-Origin that whitelist this publisher."""
        return frozenset({self.origin, WILDCARD_ORIGIN, self.trusted_origin})
