"""Flat, multi-valued request parameters: query string, form body, and both merged.

All three are ``Mapping[str, str]`` with an extra ``get_list``. ``Params``
is the flat source the finder consults before the JSON body: form body
values first, then query string values, the same
precedence an HTML form posted to a URL with a query string expects.

Blank values are kept, so ``?name=`` is present-but-empty rather than
absent.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class _MultiValueParams(Mapping[str, str]):
    """Read-only ``field name -> [values]`` mapping.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        object.__setattr__(self, "_data", data or {})

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))


class QueryParams(_MultiValueParams):
    """Immutable query string parameters, parsed from the raw ASGI bytes."""

    __slots__ = ("_raw",)

    _raw: bytes

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qs(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw


class Params(_MultiValueParams):
    """Form body and query string values merged into one flat source.

    For each key, form values come before query values, so ``get`` and
    ``__getitem__`` prefer the body::

        params = Params(form, query)
        params.get("name")       # form value if posted, else query value
        params.get_list("tag")   # form tags, then query tags
    """

    __slots__ = ()

    def __init__(self, *sources: Mapping[str, str]) -> None:
        merged: dict[str, list[str]] = {}
        for source in sources:
            for key in source:
                values = _values_of(source, key)
                merged.setdefault(key, []).extend(values)
        super().__init__(merged)


def _values_of(source: Mapping[str, str], key: str) -> list[str]:
    get_list = getattr(source, "get_list", None)
    if get_list is not None:
        return list(get_list(key))
    return [source[key]]
