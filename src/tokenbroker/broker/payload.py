"""Response body interpretation as a tagged variant.

A token endpoint reply is either :class:`Structured` (a JSON object) or
:class:`Opaque` (anything else: plain text, HTML error pages, empty bodies,
JSON arrays, broken JSON). :func:`parse_payload` never raises; the outcome
classifier consumes both variants uniformly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

TOKEN_KEYS = ("access-token", "access_token", "accessToken")
"""Keys searched for the bearer token, in order of preference."""


@dataclass(frozen=True)
class Structured:
    """A body that decoded to a JSON object."""

    payload: dict[str, Any]


@dataclass(frozen=True)
class Opaque:
    """A body kept as text because it is not a JSON object."""

    text: str


ParsedPayload = Union[Structured, Opaque]


def declares_json(content_type: str) -> bool:
    """Return ``True`` for ``application/json`` and ``+json`` media types."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def looks_like_json_object(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("{") and stripped.endswith("}")


def parse_payload(content_type: str, text: str) -> ParsedPayload:
    """Interpret *text* according to *content_type*.

    The body is decoded when the content type declares JSON or when the
    body is structurally a JSON object (some endpoints send JSON as
    ``text/plain``). Decode failures and non-object JSON degrade to
    :class:`Opaque`.
    """
    if not (declares_json(content_type) or looks_like_json_object(text)):
        return Opaque(text)
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return Opaque(text)
    if not isinstance(decoded, dict):
        return Opaque(text)
    return Structured(decoded)


def find_access_token(payload: dict[str, Any]) -> Optional[str]:
    """Return the first non-empty string token under :data:`TOKEN_KEYS`."""
    for key in TOKEN_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def coerce_expires_in(value: Any) -> Optional[int]:
    """Normalise an ``expires_in`` value to whole seconds.

    Integers, integral floats and digit strings are accepted; anything else,
    booleans included, yields ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
