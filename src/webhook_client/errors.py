class WebhookError(Exception):
    """Base error for webhook delivery and validation failures.

    ``retryable`` tells the caller whether repeating the identical request
    could plausibly succeed. The underlying cause, if any, is chained as
    ``__cause__``.
    """

    retryable = False
    default_message = "webhook error"

    def __init__(self, message: str | None = None, cause: BaseException | None = None):
        super().__init__(message or self.default_message)
        self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class RetryableWebhookError(WebhookError):
    retryable = True


class PermanentWebhookError(WebhookError):
    retryable = False


class BackoffError(RetryableWebhookError):
    default_message = "too many requests"


class NotAllowedError(PermanentWebhookError):
    default_message = "not allowed"


class GoneError(PermanentWebhookError):
    default_message = "webhook no longer exists"


class UnsupportedMediaError(PermanentWebhookError):
    default_message = "webhook does not support this content type"


class OriginNotAllowedError(PermanentWebhookError):
    default_message = "blocked because WebHook-Allowed-Origin header did not include our origin"


class InvalidRateError(PermanentWebhookError):
    default_message = "blocked because WebHook-Allowed-Rate header could not be parsed"


class MethodNotAllowedError(PermanentWebhookError):
    default_message = "blocked because Allow header did not include POST method"


def is_retryable(exc: BaseException) -> bool:
    """Return True only for webhook errors flagged as retryable."""
    return isinstance(exc, WebhookError) and exc.retryable
