"""Typed ASGI definitions.

Raw ASGI aliases plus a typed view of the HTTP/websocket scope for
internal use. Users never see these.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, TypeAlias

# Raw ASGI 3.0 types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class HTTPScope:
    """Typed HTTP scope parsed from raw ASGI scope dict.

    Internal only -- handlers interact with RequestContext, not this.
    """

    type: str
    method: str
    path: str
    raw_path: bytes
    query_string: bytes
    headers: tuple[tuple[bytes, bytes], ...]
    client: tuple[str, int] | None

    @classmethod
    def from_scope(cls, scope: Scope) -> "HTTPScope":
        """Parse raw ASGI scope into typed object."""
        client = scope.get("client")
        return cls(
            type=scope["type"],
            method=scope.get("method", "GET").upper(),
            path=scope["path"],
            raw_path=scope.get("raw_path") or b"",
            query_string=scope.get("query_string", b""),
            headers=tuple(scope.get("headers", ())),
            client=tuple(client) if client else None,
        )

    @property
    def request_path(self) -> str:
        """The path as the client sent it, still percent-encoded.

        ``path`` is already decoded by the server, so an encoded ``/``
        would split a segment. Falls back to ``path`` when the server
        does not provide ``raw_path``.
        """
        if self.raw_path:
            return self.raw_path.decode("latin-1")
        return self.path

    @property
    def raw_url(self) -> str:
        """Request path plus ``?query`` when the request carried a query marker."""
        if self.query_string:
            return f"{self.request_path}?{self.query_string.decode('latin-1')}"
        return self.request_path
