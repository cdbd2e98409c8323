import threading

import requests
from cloudevents.http import CloudEvent
from requests.structures import CaseInsensitiveDict

from src.models.outcome import Outcome
from src.webhook_client.config import REQUEST_ORIGIN_HEADER, REQUEST_RATE_HEADER, ClientConfig
from src.webhook_client.logger import DeliveryLogger
from src.webhook_client.sender import WebhookSender
from src.webhook_client.transport import mount_adapter
from src.webhook_client.validator import WebhookValidator


class WebhookClient:
    """Client for one webhook endpoint.

    Everything but the negotiated rate is fixed at construction. The rate
    starts at ``config.max_rate`` and can only be lowered, atomically, by
    validation.

    ``send`` and ``validate`` may run concurrently from several threads.
    requests makes no thread-safety promise for Session as a whole, so the
    client only prepares and sends through it and never changes its state
    after construction. Connections come from the mounted adapter's urllib3
    pool, which is thread-safe and sized by ``config.pool_maxsize``. Do not
    mutate a session passed in (headers, cookies, adapters) while calls are
    in flight.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: requests.Session | None = None,
        attempt_log: DeliveryLogger | None = None,
    ):
        self.config = config
        if session is None:
            session = requests.Session()
            session.verify = config.verify
            session.cert = config.cert
        self.adapter = mount_adapter(session, config.pool_maxsize)
        self.session = session
        self.attempt_log = attempt_log

        self._headers = self._build_headers(config)
        self._max_rate = config.max_rate
        self._rate_lock = threading.Lock()

        self._sender = WebhookSender(self, attempt_log)
        self._validator = WebhookValidator(self, attempt_log)

    @staticmethod
    def _build_headers(config: ClientConfig) -> CaseInsensitiveDict:
        headers = CaseInsensitiveDict()
        headers["User-Agent"] = config.user_agent
        headers["Origin"] = config.origin
        headers[REQUEST_ORIGIN_HEADER] = config.origin
        headers[REQUEST_RATE_HEADER] = str(config.max_rate)
        headers["Cache-Control"] = "no-store"
        if config.authorization:
            headers["Authorization"] = config.authorization
        return headers

    @property
    def headers(self) -> CaseInsensitiveDict:
        """A copy of the headers sent with every request."""
        return self._headers.copy()

    @property
    def max_rate(self) -> int:
        with self._rate_lock:
            return self._max_rate

    def lower_max_rate(self, rate: int) -> int:
        """Lower the negotiated rate to ``rate`` if that is lower. Returns the resulting rate."""
        with self._rate_lock:
            if rate < self._max_rate:
                self._max_rate = rate
            return self._max_rate

    def send(self, event: CloudEvent, timeout: float | None = None) -> Outcome:
        return self._sender.send(event, timeout=timeout)

    def validate(self, timeout: float | None = None) -> Outcome:
        return self._validator.validate(timeout=timeout)

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
