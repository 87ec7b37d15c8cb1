"""ASGI response sending.

``send_response`` translates a Response into ASGI messages;
``ResponseSink`` guards it so a request gets at most one response no
matter how many terminal events race to produce one.
"""

import logging

from apisrv._internal.asgi import Send
from apisrv.http.response import Response

logger = logging.getLogger("apisrv.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    body = response.body_bytes if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


class ResponseSink:
    """Write-once wrapper around the ASGI ``send`` callable.

    The completed flag flips before the first await, so a second writer
    racing the first is turned away even while the first is in flight.
    """

    __slots__ = ("_send", "completed", "status")

    def __init__(self, send: Send) -> None:
        self._send = send
        self.completed = False
        self.status: int | None = None

    async def send(self, response: Response) -> bool:
        """Send *response* unless one was already sent. Returns whether it was."""
        if self.completed:
            logger.debug(
                "Dropping %d response: a %s response was already written",
                response.status,
                self.status,
            )
            return False
        self.completed = True
        self.status = response.status
        await send_response(response, self._send)
        return True
