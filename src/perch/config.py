"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, threaded
explicitly into the router, resolver and request pipeline. No module
level mutable settings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from perch.errors import (
    INTERNAL_ERROR_STATUS,
    NOT_FOUND_STATUS,
    UNAUTHORIZED_STATUS,
    ConfigurationError,
)

if TYPE_CHECKING:
    from perch.context import Context
    from perch.errors import HTTPError
    from perch.http.headers import MutableHeaders
    from perch.http.request import Request
    from perch.http.response import Response


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(base_path="/v1/", allow_integer_gap=True)
    """

    # Routing
    base_path: str = "/"  # Must start and end with "/", e.g. "/api/v1/"
    word_separator: str = "_"
    allow_integer_gap: bool = False  # Let gaps match integer segments (shadows id resources)

    # Request body
    auto_unmarshal: bool = True  # Decode JSON bodies into ctx.finder before the handler runs

    # Logging
    log_request_errors: bool = False
    log_internal_errors: bool = True

    # Status codes
    unauthorized_status: int = UNAUTHORIZED_STATUS
    not_found_status: int = NOT_FOUND_STATUS
    internal_error_status: int = INTERNAL_ERROR_STATUS

    # Hooks
    handle_cors: Callable[[Request, MutableHeaders], bool] | None = None
    before_serve: Callable[[Context], Any] | None = None
    after_serve: Callable[[Context], Any] | None = None
    on_app_error: Callable[[HTTPError, Context], Any] | None = None
    parse_user_id: Callable[[Request], int] | None = None
    on_not_found: Callable[[Request], Response] | None = None
    hijack_write: Callable[[Context], str | bytes] | None = None

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.base_path.startswith("/") or not self.base_path.endswith("/"):
            msg = f"base_path must start and end with '/', got {self.base_path!r}"
            raise ConfigurationError(msg)
        if not self.word_separator:
            msg = "word_separator must not be empty"
            raise ConfigurationError(msg)
