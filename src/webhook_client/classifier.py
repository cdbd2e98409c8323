from src.models.outcome import Outcome
from src.webhook_client.errors import (
    BackoffError,
    GoneError,
    NotAllowedError,
    PermanentWebhookError,
    RetryableWebhookError,
    UnsupportedMediaError,
)

SUCCESS_CODES = frozenset({200, 204})
ACCEPTED_CODES = frozenset({201, 202})

# Status codes with a dedicated error type
NAMED_ERRORS = {
    405: NotAllowedError,
    410: GoneError,
    415: UnsupportedMediaError,
    429: BackoffError,
}


def classify_status(status_code: int, reason: str = "", accepted_is_success: bool = False) -> Outcome:
    """Map an HTTP response status to an Outcome.

    Args:
        status_code: The numeric response status.
        reason: The response reason phrase, used in diagnostics for unmapped codes.
        accepted_is_success: Treat 201/202 as plain success rather than ACCEPTED
            (the validation handshake does this).
    """
    if status_code in SUCCESS_CODES:
        return Outcome.success(status_code)

    if status_code in ACCEPTED_CODES:
        if accepted_is_success:
            return Outcome.success(status_code)
        return Outcome.accepted(status_code)

    error_cls = NAMED_ERRORS.get(status_code)
    if error_cls is not None:
        return Outcome.failure(error_cls(), status_code)

    message = f"bad response {status_code} {reason}".rstrip()
    if status_code >= 500:
        return Outcome.failure(RetryableWebhookError(message), status_code)
    return Outcome.failure(PermanentWebhookError(message), status_code)
