"""Request body accumulation under size and time limits.

``BodyReader`` is a two-state machine, READING -> COMPLETED. Whatever
gets there first (end of stream, an over-long chunk, a disconnect, or
the read timeout) decides the outcome; every later event is ignored.

Header guards run before a single byte is read::

    Transfer-Encoding and Content-Length both present  -> 400
    Content-Length not a non-negative integer          -> 400
    Content-Length above max_body_size                 -> 413 (body never read)

While reading::

    more bytes than Content-Length declared             -> 400
    more bytes than max_body_size                       -> 413
    client disconnected                                 -> 400
    timeout fired                                       -> 408
    end of stream, length differs from Content-Length   -> 400

Errors that leave unread bytes on the wire carry ``Connection: close``,
the ASGI way of dropping the transport.
"""

import re
from enum import Enum

import anyio

from apisrv._internal.asgi import Receive
from apisrv.errors import BadRequest, HTTPError, PayloadTooLarge, RequestTimeout
from apisrv.http.headers import Headers

_CONTENT_LENGTH_RE = re.compile(r"[0-9]+")


class ReadState(Enum):
    READING = "reading"
    COMPLETED = "completed"


def declared_length(headers: Headers, max_body_size: int) -> int | None:
    """Apply the header guards. Returns the declared Content-Length, if any."""
    if "transfer-encoding" in headers and "content-length" in headers:
        raise BadRequest("Both Transfer-Encoding and Content-Length defined")

    # An empty value counts as no header at all
    stripped = {value.strip() for value in headers.get_list("content-length")} - {""}
    if not stripped:
        return None
    if len(stripped) != 1:
        raise BadRequest("Bad Content-Length header")
    value = stripped.pop()
    if not _CONTENT_LENGTH_RE.fullmatch(value):
        raise BadRequest("Bad Content-Length header")

    length = int(value)
    if max_body_size and length > max_body_size:
        raise PayloadTooLarge()
    return length


class BodyReader:
    """Accumulates one request body. Single use."""

    __slots__ = (
        "_chunks",
        "_declared",
        "_error",
        "_max_body_size",
        "_receive",
        "_size",
        "_state",
        "_timeout",
    )

    def __init__(
        self,
        receive: Receive,
        headers: Headers,
        *,
        max_body_size: int,
        timeout: float,
    ) -> None:
        self._receive = receive
        self._max_body_size = max_body_size
        self._timeout = timeout
        self._declared = declared_length(headers, max_body_size)
        self._chunks: list[bytes] = []
        self._size = 0
        self._state = ReadState.READING
        self._error: HTTPError | None = None

    @property
    def state(self) -> ReadState:
        return self._state

    @property
    def size(self) -> int:
        """Bytes received so far, including any rejected chunk."""
        return self._size

    async def read(self) -> bytes:
        """Read the whole body, or raise the HTTPError that ended the read."""
        if self._state is ReadState.READING:
            with anyio.move_on_after(self._timeout):
                while self._state is ReadState.READING:
                    self._on_message(await self._receive())
            # Only takes effect if the deadline beat every other outcome
            self._complete(RequestTimeout())

        if self._error is not None:
            raise self._error
        return b"".join(self._chunks)

    def _on_message(self, message: dict) -> None:
        if message["type"] == "http.disconnect":
            self._complete(BadRequest("Error occurred while reading the request data", close=True))
            return

        chunk = message.get("body", b"")
        self._size += len(chunk)
        if self._declared is not None and self._size > self._declared:
            self._complete(BadRequest("Request body longer than Content-Length", close=True))
            return
        if self._max_body_size and self._size > self._max_body_size:
            self._complete(PayloadTooLarge())
            return
        if chunk:
            self._chunks.append(chunk)

        if not message.get("more_body", False):
            if self._declared is not None and self._size != self._declared:
                self._complete(BadRequest("Request body length does not match Content-Length"))
            else:
                self._complete(None)

    def _complete(self, error: HTTPError | None) -> bool:
        """The one terminal transition. Returns False if already completed."""
        if self._state is ReadState.COMPLETED:
            return False
        self._state = ReadState.COMPLETED
        self._error = error
        if error is not None:
            self._chunks.clear()
        return True


async def read_body(
    receive: Receive,
    headers: Headers,
    *,
    max_body_size: int,
    timeout: float,
) -> bytes:
    """Guard the headers, then read the full body within *timeout* seconds."""
    reader = BodyReader(receive, headers, max_body_size=max_body_size, timeout=timeout)
    return await reader.read()
