from dataclasses import dataclass
from datetime import datetime

from src.models.outcome import Outcome


@dataclass
class DeliveryAttempt:
    attempt_id: str
    event_id: str | None  # None for validation requests
    url: str
    method: str
    status_code: int | None
    timestamp: datetime
    response_time_ms: float
    outcome: Outcome
