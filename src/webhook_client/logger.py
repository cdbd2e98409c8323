import threading
import time
import uuid
from datetime import datetime, timezone

from src.models.delivery import DeliveryAttempt
from src.models.outcome import Outcome


class DeliveryLogger:
    """Thread-safe log of webhook delivery and validation attempts."""

    def __init__(self):
        self._attempts: list[DeliveryAttempt] = []
        self._lock = threading.Lock()

    def log(self, attempt: DeliveryAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def record(
        self,
        url: str,
        method: str,
        outcome: Outcome,
        started: float,
        event_id: str | None = None,
    ) -> DeliveryAttempt:
        """Build and log an attempt. ``started`` is a time.monotonic() reading."""
        attempt = DeliveryAttempt(
            attempt_id=f"att_{uuid.uuid4().hex[:16]}",
            event_id=event_id,
            url=url,
            method=method,
            status_code=outcome.status_code,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=(time.monotonic() - started) * 1000,
            outcome=outcome,
        )
        self.log(attempt)
        return attempt

    def get_attempts(self, event_id: str | None = None) -> list[DeliveryAttempt]:
        with self._lock:
            if event_id is None:
                return list(self._attempts)
            return [a for a in self._attempts if a.event_id == event_id]

    def get_failed_attempts(self) -> list[DeliveryAttempt]:
        with self._lock:
            return [a for a in self._attempts if not a.outcome.ok]

    def get_retryable_attempts(self) -> list[DeliveryAttempt]:
        with self._lock:
            return [a for a in self._attempts if a.outcome.retryable]

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
