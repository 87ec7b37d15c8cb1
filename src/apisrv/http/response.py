"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Also home of the JSON
builders used for success bodies and for every framework-generated
error body.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Canonical reason phrases used in framework-generated error bodies
STATUS_MESSAGES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    408: "Request Timeout",
    409: "Conflict",
    413: "Payload Too Large",
    415: "Unsupported Media Type",
    429: "Too Many Requests",
    500: "Internal Server Error",
    501: "Not Implemented",
    503: "Service Unavailable",
}

NO_CACHE_HEADERS: tuple[tuple[str, str], ...] = (
    ("Cache-Control", "no-store, no-cache, must-revalidate, post-check=0, pre-check=0"),
    ("Expires", "Wed, 01 Jan 2020 12:00:00 GMT"),
    ("Pragma", "no-cache"),
)


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str] | tuple[tuple[str, str], ...]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items()) if isinstance(headers, Mapping) else tuple(headers)
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body_bytes)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        lower = name.lower()
        for key, value in self.headers:
            if key.lower() == lower:
                return value
        return None


def dump_json(data: Any, *, pretty: bool = False) -> str:
    """Serialize *data* compactly, or indented with a trailing newline."""
    if pretty:
        return json_module.dumps(data, indent=2, ensure_ascii=False) + "\n"
    return json_module.dumps(data, separators=(",", ":"), ensure_ascii=False)


def json_response(
    data: Any,
    status: int = 200,
    *,
    pretty: bool = False,
    no_cache: bool = True,
) -> Response:
    """Build a JSON success response.

    Cache-suppression headers are included unless *no_cache* is false.
    """
    return Response(
        body=dump_json(data, pretty=pretty),
        status=status,
        headers=NO_CACHE_HEADERS if no_cache else (),
    )


def error_message(status: int, detail: str = "") -> str:
    """Canonical message for *status*.

    Only 400 responses carry the detail, as ``"Bad Request (<detail>)"``
    with trailing periods dropped.
    """
    canonical = STATUS_MESSAGES.get(status, "Error")
    detail = detail.strip().rstrip(".") if detail else ""
    if status == 400 and detail:
        return f"{canonical} ({detail})"
    return canonical


def error_response(
    status: int,
    detail: str = "",
    headers: tuple[tuple[str, str], ...] = (),
) -> Response:
    """Build the canonical ``{"code": ..., "message": ...}`` error body."""
    return Response(
        body=dump_json({"code": status, "message": error_message(status, detail)}),
        status=status,
        headers=headers,
    )


def oauth_error_response(status: int, error: str, description: str = "") -> Response:
    """Build an OAuth 2.0 (RFC 6749 section 5.2) error response.

    The status is 400 for everything except 401; the original status is
    reported inside ``error_description``.
    """
    suffix = f"HTTP code {status}"
    return Response(
        body=dump_json(
            {
                "error": error,
                "error_description": f"{description} ({suffix})" if description else suffix,
            },
            pretty=True,
        ),
        status=401 if status == 401 else 400,
    )
