"""ASGI handler — translates ASGI scope/messages to perch types.

The only component that touches raw ASGI directly. Resolves the route,
reads the body, builds the ``Context``, runs hooks and the operation,
then writes the ``{"data": ..., "error": ...}`` envelope.

Any exception raised by hooks or the operation is caught in one place,
``_serve``, and becomes ``ctx.error``. It is logged and passed to
``on_app_error`` only after the response has been sent.
"""

import logging
from collections.abc import Callable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.config import AppConfig
from perch.context import Context, context_var
from perch.errors import NotFound
from perch.finder import Finder
from perch.http.forms import FormData
from perch.http.params import Params
from perch.http.request import Request
from perch.http.response import (
    JSON_CONTENT_TYPE,
    JSONP_CONTENT_TYPE,
    Response,
    render_envelope,
    render_jsonp,
)
from perch.routing.router import Router
from perch.server.errors import as_app_error, not_found_response
from perch.server.sender import send_response

logger = logging.getLogger("perch.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    config: AppConfig,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        handler, route = router.match(request.method, request.path)
    except NotFound:
        await send_response(await not_found_response(request, config), send)
        return

    body = await request.body()
    form = await _read_form(request)

    ctx = Context(
        request,
        route=route,
        finder=Finder(form=Params(form, request.query)),
        body=body,
        config=config,
    )
    token = context_var.set(ctx)
    try:
        if not await _serve(ctx, handler):
            # CORS hook declined: headers only
            await send_response(_to_response(ctx, b""), send)
            return
        response = _render(ctx)
        ctx.written = await send_response(response, send)
        if ctx.error is not None:
            await _report(ctx)
    finally:
        context_var.reset(token)


async def _read_form(request: Request) -> FormData:
    """Form body fields, or an empty ``FormData`` if the body does not parse."""
    try:
        return await request.form()
    except ValueError:
        logger.debug("Ignoring malformed form body: %s %s", request.method, request.path)
        return FormData()


async def _serve(ctx: Context, handler: Callable[..., Any]) -> bool:
    """Run hooks and the operation. Returns False if the CORS hook stopped the request."""
    config = ctx.config
    try:
        if config.auto_unmarshal:
            ctx.unmarshal_in_finder()
        if config.handle_cors is not None and not await invoke(
            config.handle_cors, ctx.request, ctx.response_headers
        ):
            return False
        if config.parse_user_id is not None:
            ctx.user_id = await invoke(config.parse_user_id, ctx.request)
        ctx.response_headers.set("Cache-Control", "no-cache")
        ctx.response_headers.set("Content-Type", JSON_CONTENT_TYPE)
        if config.before_serve is not None:
            await invoke(config.before_serve, ctx)
        await invoke(handler, ctx)
        if config.after_serve is not None:
            await invoke(config.after_serve, ctx)
    except Exception as exc:
        ctx.error = as_app_error(exc, config)
    return True


def _render(ctx: Context) -> Response:
    """Build the final response from the context's data, error and headers."""
    if "content-type" not in ctx.response_headers:
        # Aborted before the defaults were set
        ctx.response_headers.set("Content-Type", JSON_CONTENT_TYPE)
    message = None
    if ctx.error is not None:
        ctx.status = ctx.error.status
        message = ctx.error.message
        for name, value in ctx.error.headers:
            ctx.response_headers.set(name, value)

    try:
        body = _render_body(ctx, message)
    except Exception as exc:
        # Data that cannot be written is an internal error, reported like any other
        ctx.error = as_app_error(exc, ctx.config)
        ctx.status = ctx.error.status
        ctx.data = None
        ctx.response_headers.set("Content-Type", JSON_CONTENT_TYPE)
        body = render_envelope(None, ctx.error.message)

    return _to_response(ctx, body)


def _render_body(ctx: Context, message: str | None) -> bytes:
    hijack_write = ctx.config.hijack_write
    if hijack_write is not None:
        written = hijack_write(ctx)
        return written.encode("utf-8") if isinstance(written, str) else written

    envelope = render_envelope(ctx.data, message)
    if ctx.callback:
        ctx.response_headers.set("Content-Type", JSONP_CONTENT_TYPE)
        return render_jsonp(ctx.callback, envelope)
    return envelope


def _to_response(ctx: Context, body: bytes) -> Response:
    """Split the content type out of the response headers."""
    headers = ctx.response_headers
    return Response(
        body=body,
        status=ctx.status,
        content_type=headers.get("content-type") or "",
        headers=tuple((n, v) for n, v in headers.items() if n.lower() != "content-type"),
    )


async def _report(ctx: Context) -> None:
    """Log the error and run ``on_app_error``. Never raises."""
    assert ctx.error is not None
    ctx.error.log(ctx)
    on_app_error = ctx.config.on_app_error
    if on_app_error is None:
        return
    try:
        await invoke(on_app_error, ctx.error, ctx)
    except Exception:
        logger.exception(
            "on_app_error failed: %s %s", ctx.request.method, ctx.request.path
        )
