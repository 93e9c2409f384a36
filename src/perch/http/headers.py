"""Request headers (read-only) and response headers (built up per request).

``Headers`` is a ``Mapping[str, str]`` plus ``get_list`` over the raw
byte pairs of the ASGI scope.

``MutableHeaders`` is the per-request response header set a handler or
hook writes to before the response is sent.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers from the ASGI scope, looked up case-insensitively.

    Names are lowercased and values decoded once, when the request is
    built. Indexing gives the first value for a name; ``get_list`` gives
    every value in arrival order.
    """

    __slots__ = ("_raw", "_values")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in raw:
            values.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._raw = raw
        self._values = values

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._values.get(key.lower())
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        return list(self._values.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The undecoded ``(name, value)`` pairs."""
        return self._raw


class MutableHeaders:
    """Case-insensitive response headers, built up during one request.

    ``set`` replaces every value for a name, ``add`` appends another one.
    Insertion order is preserved for the wire.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items: list[tuple[str, str]] = list((items or {}).items())

    def set(self, name: str, value: str) -> None:
        self.delete(name)
        self._items.append((name, value))

    def add(self, name: str, value: str) -> None:
        self._items.append((name, value))

    def delete(self, name: str) -> None:
        lower = name.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != lower]

    def get(self, name: str, default: str | None = None) -> str | None:
        lower = name.lower()
        for n, v in self._items:
            if n.lower() == lower:
                return v
        return default

    def get_list(self, name: str) -> list[str]:
        lower = name.lower()
        return [v for n, v in self._items if n.lower() == lower]

    def items(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"
