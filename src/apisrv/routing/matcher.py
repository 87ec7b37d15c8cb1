"""Path matching against compiled templates.

Literal and ``{param}`` segments consume exactly one request segment.
A ``[splat]`` consumes a run of segments; when several run lengths
would work, the shortest one that still lets the rest of the template
match wins.

Splat matching does not recurse. A feasibility table is filled right to
left (template index x request index -> chosen run length), then a
single left-to-right walk reads the bindings off the table. Work is
bounded by ``len(template) * len(path) * max_items`` regardless of how
many splats a template has.
"""

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from apisrv.routing.template import Literal, Param, PathTemplate, Splat

# A '%' that is not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class RequestPath:
    """A request path split into raw (still percent-encoded) segments."""

    segments: tuple[str, ...]
    has_trailing_slash: bool


def split_request_path(path: str) -> RequestPath:
    """Decompose a request path.

    One trailing slash is trimmed (and remembered) when the path is longer
    than ``/``; the remainder is split on ``/``.

    Raises ``ValueError`` if *path* does not start with ``/``.
    """
    if not isinstance(path, str) or not path.startswith("/"):
        msg = f"Bad request path: {path!r}"
        raise ValueError(msg)
    if path == "/":
        return RequestPath((), False)
    has_trailing_slash = path.endswith("/")
    trimmed = path[:-1] if has_trailing_slash else path
    if trimmed == "/":
        return RequestPath((), has_trailing_slash)
    return RequestPath(tuple(trimmed[1:].split("/")), has_trailing_slash)


def decode_segment(segment: str) -> str | None:
    """Percent-decode one path segment as UTF-8.

    Returns ``None`` for malformed escapes or invalid UTF-8 so callers can
    treat the segment as non-matching.
    """
    if "%" not in segment:
        return segment
    if _BAD_ESCAPE.search(segment):
        return None
    try:
        return unquote(segment, errors="strict")
    except UnicodeDecodeError:
        return None


def match_template(template: PathTemplate, path: RequestPath) -> dict[str, Any] | None:
    """Match *path* against *template*.

    Returns a fresh dict of capture name to decoded value (``str`` for
    ``{param}``, ``list[str]`` for ``[splat]``), or ``None`` when the path
    does not match. Nothing is bound on failure.
    """
    if template.has_trailing_slash and not path.has_trailing_slash:
        return None
    parts = path.segments
    if len(parts) < template.min_segments:
        return None
    if not template.has_splat:
        if len(parts) != len(template.segments):
            return None
        return _match_fixed(template, parts)
    return _match_with_splats(template, parts)


def _match_fixed(template: PathTemplate, parts: tuple[str, ...]) -> dict[str, Any] | None:
    """One-to-one walk for templates without splats."""
    params: dict[str, Any] = {}
    for seg, part in zip(template.segments, parts, strict=True):
        if isinstance(seg, Literal):
            if seg.value != part:
                return None
        else:
            value = decode_segment(part)
            if value is None:
                return None
            params[seg.name] = value
    return params


def _match_with_splats(template: PathTemplate, parts: tuple[str, ...]) -> dict[str, Any] | None:
    segments = template.segments
    seg_count = len(segments)
    n = len(parts)
    decoded = [decode_segment(part) for part in parts]

    # undecodable[i] = number of undecodable parts in parts[:i]
    undecodable = [0] * (n + 1)
    for i, value in enumerate(decoded):
        undecodable[i + 1] = undecodable[i] + (value is None)

    # taken[t][r]: how many request segments segments[t] consumes when the
    # match of segments[t:] starts at parts[r], or None if it cannot match.
    taken: list[list[int | None]] = [[None] * (n + 1) for _ in range(seg_count + 1)]
    taken[seg_count][n] = 0

    for t in range(seg_count - 1, -1, -1):
        seg = segments[t]
        row = taken[t]
        rest = taken[t + 1]
        if isinstance(seg, Splat):
            tail = template.min_segments_from[t + 1]
            for r in range(n):
                row[r] = _first_splat_length(seg, r, n - r - tail, undecodable, rest)
        elif isinstance(seg, Param):
            for r in range(n):
                if decoded[r] is not None and rest[r + 1] is not None:
                    row[r] = 1
        else:
            for r in range(n):
                if parts[r] == seg.value and rest[r + 1] is not None:
                    row[r] = 1

    if taken[0][0] is None:
        return None

    params: dict[str, Any] = {}
    r = 0
    for t, seg in enumerate(segments):
        length = taken[t][r]
        if length is None:
            return None
        if isinstance(seg, Splat):
            params[seg.name] = decoded[r : r + length]
        elif isinstance(seg, Param):
            params[seg.name] = decoded[r]
        r += length
    return params


def _first_splat_length(
    seg: Splat,
    start: int,
    available: int,
    undecodable: list[int],
    rest: list[int | None],
) -> int | None:
    """Shortest run length for *seg* at *start* that lets the rest match."""
    upper = min(seg.max_items, available)
    for length in range(seg.min_items, upper + 1):
        end = start + length
        if undecodable[end] - undecodable[start]:
            # Every longer run contains the same bad segment
            return None
        if rest[end] is not None:
            return length
    return None
