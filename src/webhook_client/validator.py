import logging
import re
import time

from src.models.outcome import Outcome
from src.webhook_client.classifier import classify_status
from src.webhook_client.config import ALLOW_HEADER, ALLOWED_ORIGIN_HEADER, ALLOWED_RATE_HEADER
from src.webhook_client.errors import (
    InvalidRateError,
    MethodNotAllowedError,
    OriginNotAllowedError,
    WebhookError,
)
from src.webhook_client.logger import DeliveryLogger
from src.webhook_client.transport import (
    DELIVERY_METHOD,
    DISCOVERY_METHOD,
    exchange,
    prepare_request,
)

logger = logging.getLogger(__name__)

MAX_RATE = 2**64 - 1

_RATE_PATTERN = re.compile(r"[0-9]+")
_METHOD_SEPARATORS = re.compile(r"[,\s]+")


def parse_rate(value: str) -> int | None:
    """Parse a non-negative decimal rate. Returns None if malformed."""
    if not _RATE_PATTERN.fullmatch(value):
        return None
    rate = int(value)
    if rate > MAX_RATE:
        return None
    return rate


def allows_method(allow: str, method: str) -> bool:
    """Check whether an Allow header value lists ``method``."""
    return method.upper() in {m.upper() for m in _METHOD_SEPARATORS.split(allow) if m}


class WebhookValidator:
    """Runs the OPTIONS handshake that tells us whether an endpoint accepts our events.

    The endpoint must whitelist our origin (WebHook-Allowed-Origin), may
    declare a lower acceptable rate (WebHook-Allowed-Rate) and must allow
    POST (Allow). A declared rate can only lower the client's rate.
    """

    def __init__(self, client, attempt_log: DeliveryLogger | None = None):
        self.client = client
        self.attempt_log = attempt_log

    def validate(self, timeout: float | None = None) -> Outcome:
        start = time.monotonic()
        outcome = self._validate(timeout)

        if outcome.ok:
            logger.debug(
                "webhook %s validated, negotiated rate %s", self.client.config.url, outcome.negotiated_rate
            )
        else:
            logger.warning(
                "webhook %s failed validation (%s): %s",
                self.client.config.url, outcome.kind.value, outcome.reason,
            )

        if self.attempt_log is not None:
            self.attempt_log.record(self.client.config.url, DISCOVERY_METHOD, outcome, start)
        return outcome

    def _validate(self, timeout: float | None) -> Outcome:
        try:
            prepared = prepare_request(self.client, DISCOVERY_METHOD)
            response = exchange(self.client, prepared, timeout)
        except WebhookError as e:
            return Outcome.failure(e)

        outcome = classify_status(response.status_code, response.reason or "", accepted_is_success=True)
        if not outcome.ok:
            return outcome
        return self._check_handshake(response.headers, response.status_code)

    def _check_handshake(self, headers, status_code: int) -> Outcome:
        allowed_origin = headers.get(ALLOWED_ORIGIN_HEADER, "")
        if not allowed_origin or allowed_origin not in self.client.config.accepted_origins:
            return Outcome.failure(OriginNotAllowedError(), status_code)

        allowed_rate = headers.get(ALLOWED_RATE_HEADER, "")
        if allowed_rate:
            rate = parse_rate(allowed_rate)
            if rate is None:
                return Outcome.failure(InvalidRateError(), status_code)
            self.client.lower_max_rate(rate)

        if not allows_method(headers.get(ALLOW_HEADER, ""), DELIVERY_METHOD):
            return Outcome.failure(MethodNotAllowedError(), status_code)

        return Outcome.success(status_code, negotiated_rate=self.client.max_rate)
