"""Error handling for apisrv requests.

Maps HTTPError exceptions and unexpected failures to canonical JSON
error responses and writes them through the request's sink.
"""

import logging

from apisrv.errors import HTTPError
from apisrv.http.response import error_response
from apisrv.server.sender import ResponseSink

logger = logging.getLogger("apisrv.server")


async def handle_http_error(exc: HTTPError, sink: ResponseSink, method: str, path: str) -> None:
    """Write the JSON error body for a framework-detected error."""
    if exc.status >= 500:
        logger.error("%d %s %s — %s", exc.status, method, path, exc.detail)
    else:
        logger.debug("%d %s %s — %s", exc.status, method, path, exc.detail)
    await sink.send(error_response(exc.status, exc.detail, exc.headers))


async def handle_internal_error(exc: Exception, sink: ResponseSink, method: str, path: str) -> None:
    """Handle an exception escaping the handler (or auth) as a 500.

    If the handler already wrote its response, only the log remains.
    """
    logger.exception("500 %s %s", method, path, exc_info=exc)
    await sink.send(error_response(500, "Request handler fails to execute"))
