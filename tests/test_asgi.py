"""Tests for apisrv._internal.asgi — typed ASGI scope view."""

from apisrv._internal.asgi import HTTPScope


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope dict."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


class TestHTTPScope:
    def test_from_scope_basic(self) -> None:
        parsed = HTTPScope.from_scope(_make_scope(method="post", path="/users/42"))

        assert parsed.type == "http"
        assert parsed.method == "POST"
        assert parsed.path == "/users/42"
        assert parsed.client == ("127.0.0.1", 54321)

    def test_headers_become_tuple(self) -> None:
        raw_headers = [(b"content-type", b"application/json"), (b"accept", b"*/*")]
        parsed = HTTPScope.from_scope(_make_scope(headers=raw_headers))

        assert isinstance(parsed.headers, tuple)
        assert parsed.headers[0] == (b"content-type", b"application/json")

    def test_websocket_scope_has_no_method(self) -> None:
        parsed = HTTPScope.from_scope({"type": "websocket", "path": "/ws"})

        assert parsed.method == "GET"
        assert parsed.query_string == b""
        assert parsed.client is None

    def test_raw_url(self) -> None:
        assert HTTPScope.from_scope(_make_scope(path="/a")).raw_url == "/a"
        assert HTTPScope.from_scope(_make_scope(path="/a", query_string=b"x=1")).raw_url == "/a?x=1"

    def test_request_path_prefers_raw_path(self) -> None:
        parsed = HTTPScope.from_scope(_make_scope(path="/item/a/b", raw_path=b"/item/a%2Fb"))

        assert parsed.path == "/item/a/b"
        assert parsed.request_path == "/item/a%2Fb"
        assert parsed.raw_url == "/item/a%2Fb"

    def test_request_path_without_raw_path(self) -> None:
        parsed = HTTPScope.from_scope({"type": "http", "path": "/plain"})

        assert parsed.raw_path == b""
        assert parsed.request_path == "/plain"
