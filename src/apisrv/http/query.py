"""Query string and form-urlencoded parsing.

Both sources produce the same shape: a plain dict where a key seen once
maps to a string and a repeated key maps to a list of strings in order
of appearance::

    parse_query("a=1&b=2&a=3")  # {"a": ["1", "3"], "b": "2"}
"""

from typing import Any
from urllib.parse import parse_qsl


def parse_query(query_string: str | bytes) -> dict[str, Any]:
    """Parse a query string into a dict.

    ``+`` decodes to a space, blank values are kept, and invalid UTF-8 is
    replaced rather than rejected.
    """
    if isinstance(query_string, bytes):
        query_string = query_string.decode("latin-1")
    params: dict[str, Any] = {}
    if not query_string:
        return params
    for key, value in parse_qsl(query_string, keep_blank_values=True, errors="replace"):
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params
