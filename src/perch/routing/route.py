"""Route keys, descriptors and resolved routes as frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

ID_PLACEHOLDER = ":id"


class Verb(StrEnum):
    """HTTP verbs an operation can be routed under."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True, slots=True)
class RouteKey:
    """A route's canonical table key.

    ``template`` is a ``/``-joined sequence of literal words and the
    ``:id`` placeholder, always starting with ``/``.
    """

    verb: Verb
    template: str

    def __str__(self) -> str:
        return f"{self.verb} {self.template}"


@dataclass(frozen=True, slots=True)
class OperationDescriptor:
    """One operation of a resource: its declared name and its handler."""

    name: str
    handler: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    """A resource as the compiler sees it.

    ``gap`` is an optional ``/``-separated run of literal tokens placed
    between the resource name and its operations, e.g. ``":username"``.
    It is ignored when the name marks an id-resource (``UsersId``).
    """

    name: str
    operations: tuple[OperationDescriptor, ...] = ()
    gap: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedRoute:
    """Result of resolving one request path. Lives for one request only.

    ``id`` is 0 when the path carried no identifier segment.
    """

    key: RouteKey
    id: int = 0
    segments: tuple[str, ...] = ()
    gaps: tuple[str, ...] = ()

    def path_segment(self, index: int) -> str:
        """Raw path segment at *index* (0 is the resource), or ``""``."""
        if 0 <= index < len(self.segments):
            return self.segments[index]
        return ""

    def gap_segment(self, key: str = "") -> str:
        """Raw segment matched by gap token *key*.

        For gap ``":domain/:language"`` use ``":domain"`` or
        ``":language"``. The empty key returns the first gap segment.
        """
        for i, token in enumerate(self.gaps):
            if key == "" or key == token:
                return self.path_segment(i + 1)
        return ""
