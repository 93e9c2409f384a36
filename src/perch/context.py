"""Dispatch context — everything one request's operation works with.

A ``Context`` is created by the request pipeline after the route is
resolved and the body is read. The operation reads parameters through
``ctx.finder``, sets ``ctx.data`` (or raises), and the pipeline writes
``{"data": ctx.data, "error": ...}`` once it returns.

The current context is also available through ``get_context()`` for
helpers that do not receive it as an argument.

Thread safety:
    A Context is never shared between requests. ``ContextVar`` is
    task-local under asyncio, so concurrent requests each see their own.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import replace
from typing import Any

from perch.config import AppConfig
from perch.errors import HTTPError, NoJsonBody, RequestError
from perch.extraction import extract_dataclass, is_extractable_dataclass
from perch.finder import MALFORMED_JSON_BODY, Finder
from perch.http.body import decode_json, has_json_body
from perch.http.headers import MutableHeaders
from perch.http.request import Request
from perch.http.response import SetCookie
from perch.routing.resolver import resolve_path
from perch.routing.route import ResolvedRoute


class Context:
    """State for a single request.

    Attributes:
        request: The incoming request.
        finder: Parameter accessor over form, query and JSON body values.
        id: The identifier parsed from the path, 0 when there is none.
        user_id: Set by ``AppConfig.parse_user_id``; logged with errors.
        status: Response status, 200 unless an error overrides it.
        data: Written as the ``data`` field of the response.
        error: The error that aborted the operation, if any.
        callback: JSONP callback name. When set, the envelope is wrapped.
        extra: Free slot for hooks (``before_serve`` etc.) to share data.
        response_headers: Headers sent with the response.
        written: Number of body bytes sent.
    """

    __slots__ = (
        "_body",
        "_route",
        "callback",
        "config",
        "data",
        "error",
        "extra",
        "finder",
        "id",
        "request",
        "response_headers",
        "status",
        "user_id",
        "written",
    )

    def __init__(
        self,
        request: Request,
        *,
        route: ResolvedRoute | None = None,
        finder: Finder | None = None,
        body: bytes = b"",
        config: AppConfig | None = None,
    ) -> None:
        if route is None:
            route = resolve_path(request.method, request.path.lstrip("/"), {})
        self.request = request
        self.finder = finder or Finder()
        self.id = route.id
        self.user_id = 0
        self.status = 200
        self.data: Any = None
        self.error: HTTPError | None = None
        self.callback = ""
        self.extra: Any = None
        self.response_headers = MutableHeaders()
        self.written = 0
        self.config = config or AppConfig()
        self._route = route
        self._body = body

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path} id={self.id}>"

    @property
    def route(self) -> ResolvedRoute:
        """The resolved route this request was dispatched on."""
        return self._route

    # -- Path access --

    def path_segment(self, index: int) -> str:
        """Raw path segment at *index*, counted from the resource segment.

        Returns ``""`` past the end.
        """
        return self._route.path_segment(index)

    def gap_segment(self, key: str = "") -> str:
        """Raw path segment matched by gap token *key*.

        For gap ``":domain/:language"`` use key ``":domain"`` for the
        first segment and ``":language"`` for the second. The empty key
        is shorthand for the first gap segment.
        """
        return self._route.gap_segment(key)

    # -- Auth --

    def require_user_id(self) -> int:
        """Return ``user_id``, or abort with ``Unauthorized`` if it is not positive."""
        if self.user_id <= 0:
            raise RequestError("Unauthorized", status=self.config.unauthorized_status)
        return self.user_id

    # -- Response --

    def set_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> None:
        """Add a ``Set-Cookie`` response header."""
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        self.response_headers.add("set-cookie", cookie.to_header_value())

    # -- Body --

    def unmarshal[T](self, cls: type[T] | None = None) -> T | Any:
        """Decode the JSON body, binding it to dataclass *cls* if given.

        Only available when ``AppConfig.auto_unmarshal`` is off.

        Raises:
            RuntimeError: If automatic body decoding is on.
            NoJsonBody: If the request has no JSON body.
            ValueError: If the body is not valid JSON.
        """
        if self.config.auto_unmarshal:
            msg = "unmarshal() requires AppConfig(auto_unmarshal=False)"
            raise RuntimeError(msg)
        if not has_json_body(self._body, self.request.content_type):
            raise NoJsonBody("no json body")
        value = decode_json(self._body)
        if cls is not None and is_extractable_dataclass(cls):
            return extract_dataclass(cls, value)
        return value

    def unmarshal_in_finder(self) -> None:
        """Decode the JSON body into ``finder`` so body parameters can be found.

        Runs automatically unless ``auto_unmarshal`` is off. Does nothing
        without a JSON body or when the finder already holds one.

        Raises:
            RequestError: ``MalformedJsonBody`` if the body is not valid JSON.
        """
        if self.finder.value is not None:
            return
        if not has_json_body(self._body, self.request.content_type):
            return
        try:
            value = decode_json(self._body)
        except ValueError:
            raise RequestError(MALFORMED_JSON_BODY) from None
        self.finder = replace(self.finder, value=value)


# -- Current context --

context_var: ContextVar[Context] = ContextVar("perch_context")
"""The current request's context. Set by the request pipeline."""


def get_context() -> Context:
    """Return the current request's context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
