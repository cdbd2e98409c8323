from datetime import datetime, timezone

from cloudevents.http import CloudEvent


def format_timestamp(value: datetime, timespec: str = "auto") -> str:
    """Format a datetime as RFC 3339. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec=timespec)
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def create_event(
    event_type: str,
    source: str,
    data: bytes | None = None,
    *,
    event_id: str | None = None,
    subject: str | None = None,
    time: datetime | None = None,
    dataschema: str | None = None,
    datacontenttype: str | None = "application/json",
    extensions: dict | None = None,
) -> CloudEvent:
    """Build a CloudEvent carrying ``data`` as raw bytes.

    Unset ``event_id`` and ``time`` are filled in by the SDK (a UUID and the
    current time). Datetimes, including extension values, are stored as
    RFC 3339 strings so both wire encodings carry the same text.
    """
    attributes = {"type": event_type, "source": source}
    if event_id:
        attributes["id"] = event_id
    if subject:
        attributes["subject"] = subject
    if time is not None:
        attributes["time"] = format_timestamp(time)
    if dataschema:
        attributes["dataschema"] = dataschema
    if datacontenttype:
        attributes["datacontenttype"] = datacontenttype

    for name, value in (extensions or {}).items():
        if name in attributes:
            raise ValueError(f"extension {name!r} collides with an event attribute")
        if isinstance(value, datetime):
            value = format_timestamp(value)
        attributes[name] = value

    return CloudEvent(attributes, data or None)
