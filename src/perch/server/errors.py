"""Error responses for the request pipeline.

Maps unmatched paths to the not-found response and unexpected failures
to ``InternalError``. Nothing here raises: the pipeline calls these from
its single recovery point.
"""

import logging

from perch._internal.invoke import invoke
from perch.config import AppConfig
from perch.errors import HTTPError, InternalError
from perch.http.request import Request
from perch.http.response import Response, render_envelope

logger = logging.getLogger("perch.server")

NOT_FOUND_MESSAGE = "Not Found"


def default_not_found(status: int) -> Response:
    """``{"data":null,"error":"Not Found"}`` with ``Connection: close``."""
    body = render_envelope(None, NOT_FOUND_MESSAGE)
    return Response(body=body, status=status).with_header("Connection", "close")


async def not_found_response(request: Request, config: AppConfig) -> Response:
    """The response for a request no route matches."""
    logger.debug("%d %s %s", config.not_found_status, request.method, request.path)
    if config.on_not_found is not None:
        return await invoke(config.on_not_found, request)
    return default_not_found(config.not_found_status)


def as_app_error(exc: Exception, config: AppConfig) -> HTTPError:
    """Keep ``HTTPError``s as they are; wrap anything else in ``InternalError``."""
    if isinstance(exc, HTTPError):
        return exc
    return InternalError.wrap(exc, status=config.internal_error_status)
