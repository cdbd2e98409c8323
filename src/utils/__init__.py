from .crypto import generate_signature, verify_signature
from .factories import CloudEventFactory

__all__ = [
    "generate_signature", "verify_signature",
    "CloudEventFactory",
]
