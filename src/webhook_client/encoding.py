"""Wire encodings for CloudEvents over HTTP.

Both modes go through the CloudEvents SDK. Binary mode sends the event data
verbatim as the request body and projects every metadata attribute into a
``ce-`` prefixed header. Structured mode serializes the whole event as a
single JSON document.
"""

import functools
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cloudevents.conversion import to_binary, to_structured
from cloudevents.http import CloudEvent

from src.models.event import format_timestamp

STRUCTURED_CONTENT_TYPE = "application/cloudevents+json"
HEADER_PREFIX = "ce-"


class Mode(Enum):
    BINARY = "binary"
    STRUCTURED = "structured"


@dataclass
class EncodedEvent:
    body: bytes
    content_type: str
    headers: dict[str, bytes] = field(default_factory=dict)


def format_header_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in ("application/json", "text/json") or media_type.endswith("+json")


def _binary_data(data) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    return json.dumps(data, allow_nan=False).encode("utf-8")


def _structured_data(content_type: str, data):
    # Bytes come back as bytes only for opaque media types; the SDK puts those in data_base64.
    if not isinstance(data, (bytes, bytearray)):
        return data
    if _is_json(content_type):
        return json.loads(data)
    if content_type.lower().startswith("text/"):
        return data.decode("utf-8")
    return bytes(data)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def encode_binary(event: CloudEvent) -> EncodedEvent:
    """Project the event into ``ce-`` headers and a raw body.

    Header values are UTF-8 bytes, so metadata outside Latin-1 goes on the
    wire as-is instead of failing in http.client.
    """
    sdk_headers, body = to_binary(event, data_marshaller=_binary_data)

    content_type = ""
    headers = {}
    for name, value in sdk_headers.items():
        name = name.lower()
        if name in ("content-type", f"{HEADER_PREFIX}datacontenttype"):
            content_type = content_type or value
        elif value is not None:
            headers[name] = format_header_value(value).encode("utf-8")

    return EncodedEvent(body=body or b"", content_type=content_type, headers=headers)


def encode_structured(event: CloudEvent) -> EncodedEvent:
    """Serialize the event as a CloudEvents JSON document.

    Raises:
        ValueError: If the data is declared as JSON but does not parse, or the
            document would contain NaN or Infinity.
        TypeError: If an attribute cannot be serialized.
        cloudevents.exceptions.GenericException: If the SDK rejects the event.
    """
    marshaller = functools.partial(_structured_data, event.get("datacontenttype") or "")
    sdk_headers, body = to_structured(event, data_marshaller=marshaller)
    json.loads(body, parse_constant=_reject_constant)

    content_type = next(
        (value for name, value in sdk_headers.items() if name.lower() == "content-type"),
        STRUCTURED_CONTENT_TYPE,
    )
    return EncodedEvent(body=body, content_type=content_type)


ENCODERS = {
    Mode.BINARY: encode_binary,
    Mode.STRUCTURED: encode_structured,
}


def encode(mode: Mode, event: CloudEvent) -> EncodedEvent:
    return ENCODERS[mode](event)
