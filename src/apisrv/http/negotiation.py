"""Content negotiation — Content-Type parsing and parameter decoding.

GET and DELETE carry their parameters in the query string and must have
an empty body. POST and PUT carry them in a JSON object or a
form-urlencoded body and must not have a query string.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from apisrv.errors import BadRequest, MethodNotAllowed
from apisrv.http.query import parse_query

QUERY_METHODS: frozenset[str] = frozenset({"GET", "DELETE"})
BODY_METHODS: frozenset[str] = frozenset({"POST", "PUT"})

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPES: frozenset[str] = frozenset({
    "application/x-www-form-urlencoded",
    # Legacy alias still sent by some clients
    "application/www-form-urlencoded",
})

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf"\s*({_TOKEN}/{_TOKEN})\s*")
_SEPARATOR_RE = re.compile(r"\s*;\s*")
_PARAM_RE = re.compile(rf'({_TOKEN})=("(?:[^"\\]|\\.)*"|[^\s;"]+)\s*')
_QUOTED_PAIR_RE = re.compile(r"\\(.)")


@dataclass(frozen=True, slots=True)
class ContentType:
    """A parsed Content-Type header. Type and parameters are lower-cased."""

    media_type: str
    params: dict[str, str] = field(default_factory=dict)

    @property
    def charset(self) -> str | None:
        return self.params.get("charset")


def parse_content_type(header: str | None) -> ContentType | None:
    """Parse a Content-Type header value.

    Returns ``None`` when the header is absent or empty. Raises
    ``BadRequest`` when it is malformed::

        parse_content_type('application/json; charset="UTF-8"')
        # ContentType("application/json", {"charset": "utf-8"})
    """
    if not header:
        return None

    match = _MEDIA_TYPE_RE.match(header)
    if match is None:
        raise BadRequest("Unable to parse content-type")
    media_type = match.group(1).lower()
    params: dict[str, str] = {}
    pos = match.end()

    while pos < len(header):
        sep = _SEPARATOR_RE.match(header, pos)
        if sep is None or sep.end() == pos:
            raise BadRequest("Unable to parse content-type")
        pos = sep.end()
        if pos == len(header) or header[pos] == ";":
            # Empty parameter (e.g. a trailing ';'), tolerated
            continue
        param = _PARAM_RE.match(header, pos)
        if param is None:
            raise BadRequest("Unable to parse content-type")
        name, value = param.groups()
        if value.startswith('"'):
            value = _QUOTED_PAIR_RE.sub(r"\1", value[1:-1])
        params[name.lower()] = value.lower()
        pos = param.end()

    return ContentType(media_type, params)


def require_supported_method(method: str) -> None:
    """Raise ``MethodNotAllowed`` for anything but GET, POST, PUT and DELETE."""
    if method not in QUERY_METHODS and method not in BODY_METHODS:
        raise MethodNotAllowed(
            QUERY_METHODS | BODY_METHODS,
            detail="Only GET, POST, PUT, and DELETE are allowed",
        )


def decode_url_params(method: str, query_string: str | bytes, *, parse: bool = True) -> dict[str, Any]:
    """Decode query parameters for *method*.

    POST and PUT must not carry a query string at all; that check applies
    even when *parse* is false.
    """
    if method in BODY_METHODS:
        if query_string:
            raise BadRequest("URL for POST or PUT must not contain query parameters")
        return {}
    if not parse:
        return {}
    return parse_query(query_string)


def decode_body_params(method: str, content_type: ContentType | None, body: bytes) -> dict[str, Any]:
    """Decode body parameters for *method* according to *content_type*."""
    if method in QUERY_METHODS:
        if body:
            raise BadRequest(f"Empty body required for {method} requests")
        return {}

    media_type = content_type.media_type if content_type is not None else None

    if media_type in FORM_MEDIA_TYPES:
        return parse_query(body.decode("utf-8", errors="replace"))

    if content_type is not None and content_type.media_type == JSON_MEDIA_TYPE:
        if content_type.charset is not None and content_type.charset != "utf-8":
            raise BadRequest("Bad charset for JSON content type")
        try:
            data = json.loads(body.decode("utf-8"), parse_constant=_reject_constant)
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            data = None
        if not isinstance(data, dict):
            raise BadRequest("Unable to parse JSON query parameters")
        return data

    # multipart/form-data included: parameters belong in JSON or urlencoded bodies
    raise BadRequest("POST or PUT body must be in JSON or www-form-urlencoded format")


def _reject_constant(name: str) -> Any:
    """Refuse ``NaN``/``Infinity``, which are not JSON."""
    msg = f"Invalid JSON constant: {name}"
    raise ValueError(msg)
