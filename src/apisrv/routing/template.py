"""Path template compilation.

Turns a template string into an immutable ``PathTemplate``::

    "/users"                -> [Literal("users")]
    "/users/{id}"           -> [Literal("users"), Param("id")]
    "/files/[parts]"        -> [Literal("files"), Splat("parts", 1, 32)]
    "/files/[parts:2]"      -> [Literal("files"), Splat("parts", 2, 2)]
    "/files/[parts:2:5]/x"  -> [Literal("files"), Splat("parts", 2, 5), Literal("x")]

A trailing slash in the template is significant: ``/dir/`` only matches
requests that end in a slash, while ``/dir`` matches both forms.
"""

import re
from dataclasses import dataclass

from apisrv.errors import TemplateError

SPLAT_MIN_ITEMS = 1
SPLAT_MAX_ITEMS = 32

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
_PARAM_RE = re.compile(rf"^\{{({_IDENTIFIER})\}}$")
_SPLAT_RE = re.compile(rf"^\[({_IDENTIFIER})(?::(\d+)(?::(\d+))?)?\]$")


@dataclass(frozen=True, slots=True)
class Literal:
    """A segment that must equal the request segment exactly."""

    value: str


@dataclass(frozen=True, slots=True)
class Param:
    """``{name}`` — captures exactly one request segment."""

    name: str


@dataclass(frozen=True, slots=True)
class Splat:
    """``[name:min:max]`` — captures a contiguous run of request segments."""

    name: str
    min_items: int = SPLAT_MIN_ITEMS
    max_items: int = SPLAT_MAX_ITEMS


type Segment = Literal | Param | Splat


@dataclass(frozen=True, slots=True)
class PathTemplate:
    """A compiled path template. Immutable after compilation.

    ``min_segments_from[i]`` is the minimum number of request segments
    needed to satisfy ``segments[i:]``; the last element is always 0.
    """

    template: str
    segments: tuple[Segment, ...]
    has_trailing_slash: bool
    min_segments_from: tuple[int, ...]

    @property
    def is_exact(self) -> bool:
        """True when the template has no captures."""
        return all(isinstance(seg, Literal) for seg in self.segments)

    @property
    def has_splat(self) -> bool:
        return any(isinstance(seg, Splat) for seg in self.segments)

    @property
    def min_segments(self) -> int:
        return self.min_segments_from[0]

    @property
    def capture_names(self) -> tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if not isinstance(seg, Literal))


def _parse_segment(part: str, template: str) -> Segment:
    """Parse one template segment into a Literal, Param, or Splat."""
    if match := _PARAM_RE.match(part):
        return Param(match.group(1))

    if match := _SPLAT_RE.match(part):
        name, low, high = match.groups()
        if low is None:
            return Splat(name)
        min_items = int(low)
        max_items = int(high) if high is not None else min_items
        if min_items < 1 or max_items < min_items:
            msg = (
                f"Bad splat bounds in path template {template!r}: "
                f"[{name}:{low}{':' + high if high else ''}] needs 1 <= min <= max"
            )
            raise TemplateError(msg)
        return Splat(name, min_items, max_items)

    if part.startswith(("{", "[")) or part.endswith(("}", "]")):
        msg = (
            f"Malformed capture {part!r} in path template {template!r}. "
            "Use {name}, [name], [name:N] or [name:N:M] with names "
            "matching [A-Za-z_][A-Za-z0-9_]*."
        )
        raise TemplateError(msg)

    return Literal(part)


def compile_template(template: str) -> PathTemplate:
    """Compile a template string into a ``PathTemplate``.

    Raises ``TemplateError`` if the template does not start with ``/``,
    contains a malformed capture, repeats a capture name, or declares
    splat bounds outside ``1 <= min <= max``.
    """
    if not isinstance(template, str) or not template.startswith("/"):
        msg = f"Bad request handler path: {template!r}"
        raise TemplateError(msg)

    if template == "/":
        return PathTemplate(
            template=template,
            segments=(),
            has_trailing_slash=False,
            min_segments_from=(0,),
        )

    has_trailing_slash = template.endswith("/")
    trimmed = template[:-1] if has_trailing_slash else template
    segments = tuple(_parse_segment(part, template) for part in trimmed[1:].split("/"))

    names = [seg.name for seg in segments if not isinstance(seg, Literal)]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        msg = f"Duplicate capture name(s) {', '.join(duplicates)} in path template {template!r}"
        raise TemplateError(msg)

    # Suffix sums, right to left
    min_from = [0] * (len(segments) + 1)
    for i in range(len(segments) - 1, -1, -1):
        seg = segments[i]
        min_from[i] = min_from[i + 1] + (seg.min_items if isinstance(seg, Splat) else 1)

    return PathTemplate(
        template=template,
        segments=segments,
        has_trailing_slash=has_trailing_slash,
        min_segments_from=tuple(min_from),
    )
