"""Strict scalar parsing for path segments and form values.

``int()``/``float()`` accept whitespace, underscores and other forms a
URL segment or form field should not. These parsers accept only the
plain decimal grammar and the int64 range.
"""

import re

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_DIGITS = len(str(INT64_MAX))
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIALS = frozenset({"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity", "nan"})

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def in_int64_range(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def parse_int64(text: str) -> int | None:
    """Parse a signed decimal int64, or return ``None``."""
    if not _INT_RE.fullmatch(text):
        return None
    sign = "-" if text[0] == "-" else ""
    digits = text.lstrip("+-").lstrip("0") or "0"
    # Longer digit runs are out of range and may exceed int()'s digit limit
    if len(digits) > _INT64_DIGITS:
        return None
    value = int(sign + digits)
    if not in_int64_range(value):
        return None
    return value


def parse_float64(text: str) -> float | None:
    """Parse a decimal float (or inf/nan spelling), or return ``None``."""
    if _FLOAT_RE.fullmatch(text):
        value = float(text)
        if value in (float("inf"), float("-inf")):
            # Finite literal that overflowed
            return None
        return value
    if text.lower() in _FLOAT_SPECIALS:
        return float(text)
    return None


def parse_bool(text: str) -> bool | None:
    """Parse ``1/t/true/0/f/false`` (in their usual casings), or return ``None``."""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None
