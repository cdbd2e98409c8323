from .event import CloudEvent, create_event, format_timestamp
from .outcome import Outcome, OutcomeKind
from .delivery import DeliveryAttempt

__all__ = [
    "CloudEvent", "create_event", "format_timestamp",
    "Outcome", "OutcomeKind",
    "DeliveryAttempt",
]
