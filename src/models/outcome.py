from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.webhook_client.errors import WebhookError


class OutcomeKind(Enum):
    SUCCESS = "SUCCESS"
    ACCEPTED = "ACCEPTED"
    RETRYABLE = "RETRYABLE"
    PERMANENT = "PERMANENT"


@dataclass(frozen=True)
class Outcome:
    """Classified result of one Send or Validate call."""

    kind: OutcomeKind
    status_code: int | None = None
    error: "WebhookError | None" = None
    negotiated_rate: int | None = None

    @classmethod
    def success(cls, status_code: int | None = None, negotiated_rate: int | None = None) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, status_code=status_code, negotiated_rate=negotiated_rate)

    @classmethod
    def accepted(cls, status_code: int | None = None) -> "Outcome":
        return cls(OutcomeKind.ACCEPTED, status_code=status_code)

    @classmethod
    def failure(cls, error: "WebhookError", status_code: int | None = None) -> "Outcome":
        kind = OutcomeKind.RETRYABLE if error.retryable else OutcomeKind.PERMANENT
        return cls(kind, status_code=status_code, error=error)

    @property
    def ok(self) -> bool:
        return self.kind in (OutcomeKind.SUCCESS, OutcomeKind.ACCEPTED)

    @property
    def retryable(self) -> bool:
        return self.kind is OutcomeKind.RETRYABLE

    @property
    def permanent(self) -> bool:
        return self.kind is OutcomeKind.PERMANENT

    @property
    def reason(self) -> str:
        return str(self.error) if self.error is not None else ""

    def raise_for_outcome(self) -> None:
        """Raise the carried error if this outcome is a failure."""
        if self.error is not None:
            raise self.error
