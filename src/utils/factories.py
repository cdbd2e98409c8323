import json
import uuid
from datetime import datetime, timezone

from src.models.event import CloudEvent, create_event


class CloudEventFactory:
    """Factory for creating CloudEvent instances with sensible defaults."""

    @staticmethod
    def create_event(event_type: str = "com.ketch.consent.updated", **overrides) -> CloudEvent:
        data = overrides.pop("data", None)
        if data is None:
            data = {"subject_id": f"sub_{uuid.uuid4().hex[:8]}", "status": "granted"}
        if isinstance(data, dict):
            data = json.dumps(data).encode("utf-8")

        defaults = {
            "event_id": f"evt_{uuid.uuid4().hex[:16]}",
            "source": "/ketch/hoist",
            "subject": "consent",
            "time": datetime.now(timezone.utc),
            "datacontenttype": "application/json",
            "extensions": {},
        }
        defaults.update(overrides)
        source = defaults.pop("source")
        return create_event(event_type, source, data, **defaults)
