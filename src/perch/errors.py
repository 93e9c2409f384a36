"""Perch exception hierarchy.

Shared across the router, the request pipeline and handlers so every
module raises and catches the same types.

Handlers abort a request by raising an ``HTTPError`` subclass. The
request pipeline catches it at a single recovery point, writes
``error.message`` to the client with ``error.status``, then calls
``error.log(ctx)``. Anything that is not an ``HTTPError`` is wrapped in
``InternalError`` there.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.context import Context

request_logger = logging.getLogger("perch.request")
server_logger = logging.getLogger("perch.server")

REQUEST_ERROR_STATUS = 400
UNAUTHORIZED_STATUS = 401
NOT_FOUND_STATUS = 404
INTERNAL_ERROR_STATUS = 500

# One stack frame in an internal error log line
STACK_FORMAT = "{filename}:{lineno}({name});"

_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when app configuration or a resource declaration is invalid."""


class NoJsonBody(PerchError):  # noqa: N818
    """The request carries no JSON body to decode."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, hooks, or handlers. ``message`` is what the
    client sees in the ``error`` field of the response envelope.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def message(self) -> str:
        """The short, client-facing error message."""
        return self.detail or str(self.status)

    def log(self, ctx: Context) -> None:
        """Log this error after the response was written. No-op by default."""


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found", status: int = NOT_FOUND_STATUS) -> None:
        super().__init__(status=status, detail=detail)


class RequestError(HTTPError):
    """A client error whose log text and client message are the same string.

    ``require_*`` parameter accessors raise it with messages such as
    ``"nameInvalid"`` or ``"passwordTooShort"``.
    """

    def __init__(self, message: str, status: int = REQUEST_ERROR_STATUS) -> None:
        super().__init__(status=status, detail=message)

    def __str__(self) -> str:
        return self.detail

    def log(self, ctx: Context) -> None:
        if ctx.config.log_request_errors:
            request_logger.info(format_log_line(ctx, self, "-"))


@dataclass(frozen=True, slots=True)
class InternalError(HTTPError):
    """An unexpected failure, reported to the client as ``"InternalError"``.

    The wrapped ``cause`` and its stack are logged but never sent.
    """

    cause: BaseException | None = None

    @classmethod
    def wrap(cls, cause: BaseException, status: int = INTERNAL_ERROR_STATUS) -> InternalError:
        return cls(status=status, detail="InternalError", cause=cause)

    def __str__(self) -> str:
        if self.cause is None:
            return self.detail
        return f"{type(self.cause).__name__}: {self.cause}"

    @property
    def message(self) -> str:
        return "InternalError"

    def log(self, ctx: Context) -> None:
        if ctx.config.log_internal_errors:
            server_logger.error(format_log_line(ctx, self, format_stack(self.cause)))


def format_stack(exc: BaseException | None) -> str:
    """Compact one-line stack of *exc*'s traceback, innermost frame last."""
    if exc is None or exc.__traceback__ is None:
        return "-"
    frames = traceback.extract_tb(exc.__traceback__)
    return "".join(
        STACK_FORMAT.format(filename=frame.filename, lineno=frame.lineno, name=frame.name)
        for frame in frames
    )


def format_log_line(ctx: Context, error: BaseException, stack: str) -> str:
    """Common-Log-like line describing a failed request."""
    request = ctx.request
    remote = request.client[0] if request.client else "-"
    error_text = str(error).replace("\n", ";")
    timestamp = datetime.now().astimezone().strftime(_TIME_FORMAT)
    return (
        f'{remote} - {ctx.user_id} [{timestamp}] '
        f'"{request.method} {request.url} HTTP/{request.http_version}" '
        f'{ctx.status} {ctx.written} "{error_text}" "{stack}"'
    )
