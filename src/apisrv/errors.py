"""apisrv exception hierarchy.

Shared across the registry, the request pipeline, and the app so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class ApiSrvError(Exception):
    """Base for all apisrv-specific errors."""


class ConfigurationError(ApiSrvError):
    """Raised when app configuration or handler registration is invalid."""


class TemplateError(ConfigurationError):
    """Raised when a path template cannot be compiled."""


class ValidationError(ApiSrvError):
    """Convenience error for parameter validators.

    Any exception raised by a validator is reported as a 400 with the
    exception message as detail. This class exists so validators have
    something explicit to raise.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(ApiSrvError):
    """An error that maps directly to an HTTP status code.

    Raised by pipeline stages. The request handler catches these and
    turns them into a canonical JSON error body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """400 — malformed headers, bad content type, length mismatches."""

    def __init__(self, detail: str = "", *, close: bool = False) -> None:
        super().__init__(
            status=400,
            detail=detail,
            headers=(("Connection", "close"),) if close else (),
        )


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no handler matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — the path is handled, but not for this HTTP method.

    Includes an ``Allow`` header when the allowed methods are known.
    """

    def __init__(self, allowed: frozenset[str] = frozenset(), detail: str = "Method Not Allowed") -> None:
        headers = (("Allow", ", ".join(sorted(allowed))),) if allowed else ()
        super().__init__(status=405, detail=detail, headers=headers)


class RequestTimeout(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """408 — the body was not fully read in time."""

    def __init__(self, detail: str = "Timeout occurred while reading the request data") -> None:
        super().__init__(status=408, detail=detail, headers=(("Connection", "close"),))


class PayloadTooLarge(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """413 — the body exceeds the configured maximum.

    Always asks the server to drop the connection: the rest of the body
    is never read.
    """

    def __init__(self, detail: str = "Request body too large") -> None:
        super().__init__(status=413, detail=detail, headers=(("Connection", "close"),))


class InternalServerError(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """500 — a validator misbehaved or a handler failed."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status=500, detail=detail)
