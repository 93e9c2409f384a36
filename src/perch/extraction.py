"""Typed binding of decoded JSON bodies to dataclasses.

Used by ``Context.unmarshal`` when automatic body decoding is disabled.
Each dataclass field is looked up by name in the decoded object and
converted to its annotated type; nested dataclass fields bind
recursively.

Supported field types: ``str``, ``int``, ``float``, ``bool``,
``Decimal``, dataclasses, and ``X | None`` of any of those. Missing keys
use the dataclass field default. Values that do not convert are kept as decoded.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping
from decimal import Decimal
from typing import Any


def is_extractable_dataclass(annotation: Any) -> bool:
    """Return True if *annotation* is a user-defined dataclass type.

    Excludes perch's own dataclass types (``Request``, ``Response``, etc.).
    """
    if not isinstance(annotation, type) or not dataclasses.is_dataclass(annotation):
        return False
    module = getattr(annotation, "__module__", "") or ""
    return not module.startswith("perch.")


def extract_dataclass[T](cls: type[T], data: Mapping[str, Any]) -> T:
    """Create a dataclass instance from a decoded JSON object.

    Raises:
        TypeError: If *data* is not a mapping, or a required field is missing.
    """
    if not isinstance(data, Mapping):
        msg = f"cannot bind {type(data).__name__} to {cls.__name__}"
        raise TypeError(msg)

    hints = _type_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        if not f.init or f.name not in data:
            continue
        kwargs[f.name] = _convert(data[f.name], hints.get(f.name, f.type))

    return cls(**kwargs)


def _convert(value: Any, target_type: Any) -> Any:
    """Convert *value* to *target_type*, returning *value* unchanged on failure."""
    if value is None:
        return None

    target_type = _unwrap_optional(target_type)

    if is_extractable_dataclass(target_type) and isinstance(value, Mapping):
        return extract_dataclass(target_type, value)

    if target_type is str:
        return value if isinstance(value, str) else str(value)

    if target_type is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, Decimal) and value == value.to_integral_value():
            return int(value)
        return value

    if target_type is float:
        if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
            return float(value)
        return value

    if target_type is Decimal:
        if isinstance(value, int) and not isinstance(value, bool):
            return Decimal(value)
        return value

    # bool and unknown types: keep the decoded value
    return value


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def _unwrap_optional(annotation: Any) -> Any:
    """``X | None`` becomes ``X``; other annotations are returned as-is."""
    if typing.get_origin(annotation) not in (typing.Union, types.UnionType):
        return annotation
    args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
    return args[0] if len(args) == 1 else annotation
