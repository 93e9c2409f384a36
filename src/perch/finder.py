"""Finder — typed, validated access to request parameters.

A ``Finder`` is an immutable cursor over a decoded JSON value tree,
optionally backed by a flat form/query source. It gives one interface to
parameters whether they arrive in the query string, a form body or a
JSON body. Form and query values take precedence over the JSON body.

Path elements are ``str`` (a key in a JSON object, or a form field when
it is the only element) and ``int`` (an index in a JSON array)::

    # body: {"photo": [{"name": "abc"}, {"id": 200}]}
    finder.find_string("photo", 0, "name")      # Found("abc")
    finder.require_positive_int("photo", 1, "id")  # 200

Two families of accessors:

- ``find_*`` return a ``Found(value, error)`` and never raise for bad
  data; the caller decides what to do with ``error``.
- ``require_*`` return the bare value or raise ``RequestError`` with a
  client-facing message such as ``"nameInvalid"``, which aborts the
  current request only.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from perch._internal.numbers import in_int64_range, parse_bool, parse_float64, parse_int64
from perch.errors import RequestError
from perch.http.body import decode_json

type PathElement = str | int

INVALID_FORMAT = "{}Invalid"
NOT_POSITIVE_FORMAT = "{}NotPositive"
TOO_SHORT_FORMAT = "{}TooShort"
TOO_LONG_FORMAT = "{}TooLong"
MALFORMED_JSON_BODY = "MalformedJsonBody"


class FindError(Enum):
    """Why a lookup failed. Returned as a value, never raised."""

    WRONG_TYPE = "wrong type"
    INDEX_OUT_OF_BOUND = "index out of bound"
    ENTRY_NOT_EXISTS = "entry not exists"
    NULL_VALUE = "null value"
    EMPTY_STRING = "empty string"
    EMPTY_SLICE = "empty slice"
    EMPTY_MAP = "empty map"
    TOO_SHORT = "string too short"
    TOO_LONG = "string too long"
    NOT_POSITIVE = "not positive"
    DOES_NOT_MATCH = "does not match"


# Errors an optional lookup replaces with its default
_ABSENT = frozenset(
    {
        FindError.EMPTY_STRING,
        FindError.EMPTY_SLICE,
        FindError.EMPTY_MAP,
        FindError.ENTRY_NOT_EXISTS,
        FindError.NULL_VALUE,
    }
)


@dataclass(frozen=True, slots=True)
class Found[T]:
    """The outcome of a ``find_*`` lookup.

    Falsy when the lookup failed, and unpackable like a pair::

        name, err = finder.find_string("name")
        if err is FindError.ENTRY_NOT_EXISTS:
            ...

        if found := finder.find_int("page"):
            page = found.value

    ``value`` may still carry the offending value alongside an error
    (e.g. the too-short string for ``TOO_SHORT``).
    """

    value: T
    error: FindError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.value
        yield self.error


@dataclass(frozen=True, slots=True)
class Finder:
    """An immutable cursor positioned at one node of a value tree.

    ``child()`` returns a new cursor and never mutates this one, so a base
    finder can be reused for any number of independent lookups.

    Attributes:
        value: The node this cursor points at (``None`` for JSON null or
            no body at all).
        error: Set once navigation has failed; further navigation keeps it.
        form: Flat form/query source, consulted first for single-key lookups.
    """

    value: Any = None
    error: FindError | None = None
    form: Mapping[str, str] | None = None

    @classmethod
    def from_bytes(cls, data: bytes | str, form: Mapping[str, str] | None = None) -> Finder:
        """Build a finder over JSON text.

        Raises ``ValueError`` if *data* is not valid JSON.
        """
        return cls(value=decode_json(data), form=form)

    # -- Navigation --

    def child(self, *path: PathElement) -> Finder:
        """Navigate to the node at *path*.

        The returned cursor carries ``WRONG_TYPE``, ``INDEX_OUT_OF_BOUND``,
        ``ENTRY_NOT_EXISTS`` or ``NULL_VALUE`` when navigation fails;
        navigation stops at the first failure.

        Raises ``TypeError`` for path elements that are neither ``str`` nor ``int``.
        """
        finder = replace(self, form=None)
        if finder.error is not None:
            return finder
        if finder.value is None:
            return replace(finder, error=FindError.NULL_VALUE)
        for element in path:
            if isinstance(element, str):
                finder = finder._child_in_map(element)
            elif isinstance(element, int) and not isinstance(element, bool):
                finder = finder._child_in_slice(element)
            else:
                msg = f"path elements must be str or int, got {type(element).__name__}"
                raise TypeError(msg)
            if finder.error is not None:
                return finder
        return finder

    def _child_in_map(self, key: str) -> Finder:
        if not isinstance(self.value, Mapping):
            return replace(self, error=FindError.WRONG_TYPE)
        if key not in self.value:
            return replace(self, value=None, error=FindError.ENTRY_NOT_EXISTS)
        value = self.value[key]
        if value is None:
            return replace(self, value=None, error=FindError.NULL_VALUE)
        return replace(self, value=value)

    def _child_in_slice(self, index: int) -> Finder:
        if not _is_sequence(self.value):
            return replace(self, error=FindError.WRONG_TYPE)
        if index < 0 or index >= len(self.value):
            return replace(self, error=FindError.INDEX_OUT_OF_BOUND)
        value = self.value[index]
        if value is None:
            return replace(self, value=None, error=FindError.NULL_VALUE)
        return replace(self, value=value)

    def _form_string(self, path: tuple[PathElement, ...]) -> str:
        """The form value for a single string key, or ``""``."""
        if self.form is not None and len(path) == 1 and isinstance(path[0], str):
            return self.form.get(path[0]) or ""
        return ""

    def length(self, *path: PathElement) -> int:
        """Number of elements of the array or object at *path*, else ``-1``."""
        finder = self.child(*path)
        if finder.error is not None:
            return -1
        if _is_sequence(finder.value) or isinstance(finder.value, Mapping):
            return len(finder.value)
        return -1

    # -- Typed lookups --

    def find(self, *path: PathElement) -> Found[Any]:
        """The raw value at *path*, whatever its type."""
        finder = self.child(*path)
        return Found(finder.value, finder.error)

    def find_string(self, *path: PathElement) -> Found[str]:
        if s := self._form_string(path):
            return Found(s)
        finder = self.child(*path)
        if finder.error is not None:
            return Found("", finder.error)
        if isinstance(finder.value, str):
            if not finder.value:
                return Found("", FindError.EMPTY_STRING)
            return Found(finder.value)
        return Found("", FindError.WRONG_TYPE)

    def find_int(self, *path: PathElement) -> Found[int]:
        if s := self._form_string(path):
            number = parse_int64(s)
            if number is None:
                return Found(0, FindError.WRONG_TYPE)
            return Found(number)
        finder = self.child(*path)
        if finder.error is not None:
            return Found(0, finder.error)
        value = finder.value
        if isinstance(value, int) and not isinstance(value, bool) and in_int64_range(value):
            return Found(value)
        return Found(0, FindError.WRONG_TYPE)

    def find_float(self, *path: PathElement) -> Found[float]:
        if s := self._form_string(path):
            number = parse_float64(s)
            if number is None:
                return Found(0.0, FindError.WRONG_TYPE)
            return Found(number)
        finder = self.child(*path)
        if finder.error is not None:
            return Found(0.0, finder.error)
        value = finder.value
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            return Found(0.0, FindError.WRONG_TYPE)
        try:
            number = float(value)
        except OverflowError:
            return Found(0.0, FindError.WRONG_TYPE)
        if number in (float("inf"), float("-inf")) and not _is_infinite(value):
            return Found(0.0, FindError.WRONG_TYPE)
        return Found(number)

    def find_bool(self, *path: PathElement) -> Found[bool]:
        if s := self._form_string(path):
            flag = parse_bool(s)
            if flag is None:
                return Found(False, FindError.WRONG_TYPE)
            return Found(flag)
        finder = self.child(*path)
        if finder.error is not None:
            return Found(False, finder.error)
        if isinstance(finder.value, bool):
            return Found(finder.value)
        return Found(False, FindError.WRONG_TYPE)

    def find_slice(self, *path: PathElement) -> Found[list[Any]]:
        """The JSON array at *path*. Body only; form values are never arrays."""
        finder = self.child(*path)
        if finder.error is not None:
            return Found([], finder.error)
        if _is_sequence(finder.value):
            items = list(finder.value)
            if not items:
                return Found(items, FindError.EMPTY_SLICE)
            return Found(items)
        return Found([], FindError.WRONG_TYPE)

    def find_map(self, *path: PathElement) -> Found[dict[str, Any]]:
        """The JSON object at *path*. Body only."""
        finder = self.child(*path)
        if finder.error is not None:
            return Found({}, finder.error)
        if isinstance(finder.value, Mapping):
            mapping = dict(finder.value)
            if not mapping:
                return Found(mapping, FindError.EMPTY_MAP)
            return Found(mapping)
        return Found({}, FindError.WRONG_TYPE)

    # -- Validating lookups --

    def find_string_len(self, min_len: int, max_len: int, *path: PathElement) -> Found[str]:
        """String whose UTF-8 byte length is in ``[min_len, max_len)``."""
        found = self.find_string(*path)
        if not found:
            return found
        return _check_length(found.value, len(found.value.encode("utf-8")), min_len, max_len)

    def find_string_rune_len(self, min_len: int, max_len: int, *path: PathElement) -> Found[str]:
        """String whose character count is in ``[min_len, max_len)``."""
        found = self.find_string(*path)
        if not found:
            return found
        return _check_length(found.value, len(found.value), min_len, max_len)

    def find_string_match(self, pattern: re.Pattern[str] | str, *path: PathElement) -> Found[str]:
        """String in which *pattern* matches somewhere (unanchored search)."""
        found = self.find_string(*path)
        if not found:
            return found
        if re.search(pattern, found.value) is None:
            return Found(found.value, FindError.DOES_NOT_MATCH)
        return found

    def find_positive_int(self, *path: PathElement) -> Found[int]:
        """Integer strictly greater than zero."""
        found = self.find_int(*path)
        if found and found.value <= 0:
            return Found(found.value, FindError.NOT_POSITIVE)
        return found

    def find_positive_float(self, *path: PathElement) -> Found[float]:
        """Float that is not negative. Zero passes, unlike ``find_positive_int``."""
        found = self.find_float(*path)
        if found and found.value < 0:
            return Found(found.value, FindError.NOT_POSITIVE)
        return found

    # -- Optional lookups --

    def find_optional_string(self, default: str, *path: PathElement) -> Found[str]:
        """``find_string`` with *default* for absent, null or empty values."""
        return _or_default(self.find_string(*path), default)

    def find_optional_int(self, default: int, *path: PathElement) -> Found[int]:
        return _or_default(self.find_int(*path), default)

    def find_optional_float(self, default: float, *path: PathElement) -> Found[float]:
        return _or_default(self.find_float(*path), default)

    def find_optional_bool(self, default: bool, *path: PathElement) -> Found[bool]:
        return _or_default(self.find_bool(*path), default)

    # -- Required lookups --

    def require_string(self, *path: PathElement) -> str:
        return _required(self.find_string(*path), path)

    def require_string_len(self, min_len: int, max_len: int, *path: PathElement) -> str:
        """Raises ``<key>TooShort`` / ``<key>TooLong`` on UTF-8 byte length."""
        s = self.require_string(*path)
        _require_length(len(s.encode("utf-8")), min_len, max_len, path)
        return s

    def require_string_rune_len(self, min_len: int, max_len: int, *path: PathElement) -> str:
        """Raises ``<key>TooShort`` / ``<key>TooLong`` on character count."""
        s = self.require_string(*path)
        _require_length(len(s), min_len, max_len, path)
        return s

    def require_string_match(self, pattern: re.Pattern[str] | str, *path: PathElement) -> str:
        s = self.require_string(*path)
        if re.search(pattern, s) is None:
            abort(INVALID_FORMAT, path)
        return s

    def require_int(self, *path: PathElement) -> int:
        return _required(self.find_int(*path), path)

    def require_positive_int(self, *path: PathElement) -> int:
        i = self.require_int(*path)
        if i <= 0:
            abort(NOT_POSITIVE_FORMAT, path)
        return i

    def require_float(self, *path: PathElement) -> float:
        return _required(self.find_float(*path), path)

    def require_positive_float(self, *path: PathElement) -> float:
        # Rejects only negatives; zero is accepted
        f = self.require_float(*path)
        if f < 0:
            abort(NOT_POSITIVE_FORMAT, path)
        return f

    def require_bool(self, *path: PathElement) -> bool:
        return _required(self.find_bool(*path), path)

    def require_slice(self, *path: PathElement) -> list[Any]:
        return _required(self.find_slice(*path), path)

    def require_map(self, *path: PathElement) -> dict[str, Any]:
        return _required(self.find_map(*path), path)


def error_key(path: Sequence[PathElement]) -> str:
    """The name used in ``require_*`` messages: the last string element, else ``"value"``."""
    if path and isinstance(path[-1], str):
        return path[-1]
    return "value"


def abort(message_format: str, path: Sequence[PathElement]) -> None:
    """Raise the ``RequestError`` for a failed ``require_*`` lookup."""
    raise RequestError(message_format.format(error_key(path)))


def _required[T](found: Found[T], path: Sequence[PathElement]) -> T:
    if not found:
        abort(INVALID_FORMAT, path)
    return found.value


def _require_length(length: int, min_len: int, max_len: int, path: Sequence[PathElement]) -> None:
    if length < min_len:
        abort(TOO_SHORT_FORMAT, path)
    if length >= max_len:
        abort(TOO_LONG_FORMAT, path)


def _check_length(s: str, length: int, min_len: int, max_len: int) -> Found[str]:
    if length < min_len:
        return Found(s, FindError.TOO_SHORT)
    if length >= max_len:
        return Found(s, FindError.TOO_LONG)
    return Found(s)


def _or_default[T](found: Found[T], default: T) -> Found[T]:
    if found.error in _ABSENT:
        return Found(default)
    return found


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_infinite(value: int | float | Decimal) -> bool:
    if isinstance(value, Decimal):
        return value.is_infinite()
    return value in (float("inf"), float("-inf"))
