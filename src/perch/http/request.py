"""The incoming request as the pipeline, hooks and operations see it.

Metadata comes straight from the ASGI scope and never changes. The body
is pulled from ``receive`` on first access and memoized, so the
pipeline can read it before the operation runs and every later reader
gets the same bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from perch._internal.asgi import Receive, Scope
from perch.http.body import decode_json
from perch.http.forms import FormData, is_form, parse_form_data
from perch.http.headers import Headers
from perch.http.params import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """One incoming HTTP request.

    ``body()``, ``json()`` and ``form()`` are coroutines. Each reads the
    ASGI body at most once.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    _receive: Receive
    # Lazily filled with the body bytes and the parsed form
    _memo: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        host = scope.get("server")
        peer = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=(host[0], host[1]) if host else None,
            client=(peer[0], peer[1]) if peer else None,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Declared body size, or ``None`` when missing or not a number."""
        declared = self.headers.get("content-length")
        if declared is None or not declared.isdigit():
            return None
        return int(declared)

    @property
    def url(self) -> str:
        """Path plus query string, as it appears in a request line."""
        raw = self.query.raw
        return f"{self.path}?{raw.decode('latin-1')}" if raw else self.path

    async def body(self) -> bytes:
        """The whole request body."""
        if "body" not in self._memo:
            parts: list[bytes] = []
            more = True
            while more:
                message = await self._receive()
                parts.append(message.get("body", b""))
                more = message.get("more_body", False)
            self._memo["body"] = b"".join(parts)
        return self._memo["body"]

    async def json(self) -> Any:
        """The body decoded as JSON, fractional numbers as ``Decimal``."""
        return decode_json(await self.body())

    async def form(self) -> FormData:
        """Form fields, or an empty ``FormData`` for non-form bodies.

        Raises ``ValueError`` when a form body does not parse.
        """
        if "form" not in self._memo:
            raw = await self.body()
            content_type = self.content_type
            if raw and content_type and is_form(content_type):
                self._memo["form"] = parse_form_data(raw, content_type)
            else:
                self._memo["form"] = FormData()
        return self._memo["form"]
