"""
Transport envelope decoding.

A queue message body is a JSON encoded notification whose `Message` field is
itself the JSON encoded event payload:

    {"Body": "{\"Message\": \"{\\\"sessionId\\\": ...}\"}"}

Kafka consumers hand over the body directly (str or bytes).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Union

from audit_shared.exceptions import MalformedEnvelopeError

RawEnvelope = Union[Mapping[str, Any], str, bytes, bytearray]

_BODY_KEYS = ("Body", "body")


def _extract_body(raw: RawEnvelope) -> Union[str, bytes, bytearray]:
    if isinstance(raw, (str, bytes, bytearray)):
        return raw
    if isinstance(raw, Mapping):
        for key in _BODY_KEYS:
            if key in raw:
                body = raw[key]
                if isinstance(body, (str, bytes, bytearray)):
                    return body
                raise MalformedEnvelopeError("body is not a string", layer="envelope")
        raise MalformedEnvelopeError("envelope has no body", layer="envelope")
    raise MalformedEnvelopeError(f"unsupported envelope type {type(raw).__name__}", layer="envelope")


def _parse_json_object(text: Union[str, bytes, bytearray], *, layer: str) -> Dict[str, Any]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEnvelopeError(f"{layer} is not valid JSON ({e})", layer=layer) from e
    if not isinstance(value, dict):
        raise MalformedEnvelopeError(f"{layer} is not a JSON object", layer=layer)
    return value


def decode_envelope(raw: RawEnvelope) -> Dict[str, Any]:
    """
    Unwrap both encoded layers of a transport envelope.

    Raises:
        MalformedEnvelopeError: body missing, either layer unparseable, or the
            payload is not a JSON object
    """
    message = _parse_json_object(_extract_body(raw), layer="message")

    payload = message.get("Message")
    if not isinstance(payload, str):
        raise MalformedEnvelopeError("message has no string Message field", layer="message")

    return _parse_json_object(payload, layer="payload")
