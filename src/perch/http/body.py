"""JSON request body decoding.

Bodies decode into a plain value tree — dicts, lists, str, bool, None
and numbers. Integers stay ``int``; numbers with a fraction or exponent
become ``Decimal`` so both integer and float extraction stay exact.
"""

import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from typing import Any

from perch.errors import NoJsonBody

JSON_CONTENT_TYPE = "application/json"


def decode_json(data: bytes | str) -> Any:
    """Decode JSON text into a value tree.

    Raises ``ValueError`` (``json.JSONDecodeError`` or ``UnicodeDecodeError``)
    on malformed input.
    """
    return json.loads(data, parse_float=Decimal)


def has_json_body(body: bytes, content_type: str | None) -> bool:
    """True when *body* is non-empty and declared as JSON."""
    return bool(body) and JSON_CONTENT_TYPE in (content_type or "").lower()


def decode_json_body(body: bytes, content_type: str | None) -> Any:
    """Decode a request body declared as JSON.

    Raises ``NoJsonBody`` when the body is empty or not JSON-typed.
    """
    if not has_json_body(body, content_type):
        raise NoJsonBody("no json body")
    return decode_json(body)


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback for values the finder hands out."""
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
