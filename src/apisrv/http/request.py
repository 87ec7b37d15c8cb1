"""Per-request context.

Unlike the frozen request metadata of a pure-ASGI framework, the context
is filled in stage by stage as the pipeline runs: ``path_params``, then
``url_params``, then ``body_params``, then the merged ``params``. Each of
them is ``None`` until its stage has run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from apisrv.http.headers import Headers
from apisrv.http.response import Response, error_response, json_response

if TYPE_CHECKING:
    from apisrv.server.sender import ResponseSink


class ParamSource(Enum):
    """Where a parameter came from. Later sources win when merging."""

    BODY = "body"
    QUERY = "query"
    PATH = "path"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    ParamSource.BODY: "request body",
    ParamSource.QUERY: "query string",
    ParamSource.PATH: "path template",
}


@dataclass(frozen=True, slots=True)
class ParamCollision:
    """A parameter supplied by more than one source.

    ``sources`` lists every source that supplied ``name``, in merge order;
    the last one won.
    """

    name: str
    sources: tuple[ParamSource, ...]


@dataclass(slots=True)
class RequestContext:
    """Everything a handler needs about one request.

    Handlers either write through the context (``await r.json_response(...)``)
    or return a ``Response`` for the pipeline to send. At most one response
    is ever written per request.
    """

    method: str
    url: str
    headers: Headers
    query_string: str = ""
    client: tuple[str, int] | None = None

    body_params: dict[str, Any] | None = None
    url_params: dict[str, Any] | None = None
    path_params: dict[str, Any] | None = None
    params: dict[str, Any] | None = None
    param_sources: dict[str, ParamSource] = field(default_factory=dict)
    collisions: dict[str, ParamCollision] = field(default_factory=dict)

    # Free-form storage for auth callbacks and handlers (e.g. the user)
    state: dict[str, Any] = field(default_factory=dict)

    _sink: ResponseSink | None = field(default=None, repr=False, compare=False)
    _pretty: bool = field(default=False, repr=False, compare=False)

    @property
    def raw_url(self) -> str:
        """Request path plus query string, as received."""
        if self.query_string:
            return f"{self.url}?{self.query_string}"
        return self.url

    @property
    def responded(self) -> bool:
        """True once a response has been written for this request."""
        return self._sink is not None and self._sink.completed

    # -- Response writing --

    async def send(self, response: Response) -> bool:
        """Write *response*. Returns False if a response was already written."""
        if self._sink is None:
            msg = "RequestContext has no response sink"
            raise RuntimeError(msg)
        return await self._sink.send(response)

    async def json_response(
        self,
        data: Any,
        status: int = 200,
        *,
        exclude_no_cache_headers: bool = False,
    ) -> bool:
        """Write *data* as JSON, pretty-printed when the app is configured so."""
        return await self.send(
            json_response(data, status, pretty=self._pretty, no_cache=not exclude_no_cache_headers)
        )

    async def error(self, status: int, detail: str = "") -> bool:
        """Write a canonical ``{"code", "message"}`` error body."""
        return await self.send(error_response(status, detail))
