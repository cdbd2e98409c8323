from .client import WebhookClient
from .config import ClientConfig
from .encoding import Mode
from .errors import (
    BackoffError,
    GoneError,
    InvalidRateError,
    MethodNotAllowedError,
    NotAllowedError,
    OriginNotAllowedError,
    PermanentWebhookError,
    RetryableWebhookError,
    UnsupportedMediaError,
    WebhookError,
    is_retryable,
)
from .logger import DeliveryLogger
from .sender import WebhookSender
from .signer import WebhookSigner
from .validator import WebhookValidator

__all__ = [
    "WebhookClient",
    "ClientConfig",
    "Mode",
    "WebhookSender",
    "WebhookValidator",
    "WebhookSigner",
    "DeliveryLogger",
    "WebhookError",
    "RetryableWebhookError",
    "PermanentWebhookError",
    "BackoffError",
    "NotAllowedError",
    "GoneError",
    "UnsupportedMediaError",
    "OriginNotAllowedError",
    "InvalidRateError",
    "MethodNotAllowedError",
    "is_retryable",
]
