import logging
import time

from cloudevents.exceptions import GenericException
from cloudevents.http import CloudEvent

from src.models.outcome import Outcome
from src.webhook_client.classifier import classify_status
from src.webhook_client.encoding import encode
from src.webhook_client.errors import PermanentWebhookError, WebhookError
from src.webhook_client.logger import DeliveryLogger
from src.webhook_client.signer import WebhookSigner
from src.webhook_client.transport import DELIVERY_METHOD, exchange, prepare_request

logger = logging.getLogger(__name__)


class WebhookSender:
    """Delivers events to the client's endpoint and classifies the response."""

    def __init__(self, client, attempt_log: DeliveryLogger | None = None):
        self.client = client
        self.attempt_log = attempt_log
        self.signer = WebhookSigner(client.config.secret) if client.config.secret else None

    def send(self, event: CloudEvent, timeout: float | None = None) -> Outcome:
        """Deliver a single event. Never retries; the outcome says whether a retry may help."""
        start = time.monotonic()
        event_id = event.get("id")
        outcome = self._send(event, timeout)

        if outcome.ok:
            logger.debug("event %s delivered to %s: %s", event_id, self.client.config.url, outcome.kind.value)
        else:
            logger.warning(
                "event %s not delivered to %s (%s): %s",
                event_id, self.client.config.url, outcome.kind.value, outcome.reason,
            )

        if self.attempt_log is not None:
            self.attempt_log.record(
                self.client.config.url, DELIVERY_METHOD, outcome, start, event_id=event_id
            )
        return outcome

    def _send(self, event: CloudEvent, timeout: float | None) -> Outcome:
        try:
            encoded = encode(self.client.config.mode, event)
        except (ValueError, TypeError, GenericException) as e:
            return Outcome.failure(PermanentWebhookError("failed to marshal event", cause=e))

        headers = dict(encoded.headers)
        if encoded.content_type:
            headers["Content-Type"] = encoded.content_type
        if self.signer is not None:
            headers.update(self.signer.signature_headers(encoded.body))

        try:
            prepared = prepare_request(self.client, DELIVERY_METHOD, encoded.body, headers)
            response = exchange(self.client, prepared, timeout)
        except WebhookError as e:
            return Outcome.failure(e)

        return classify_status(response.status_code, response.reason or "")
