"""Tests for apisrv.http.response — Response and JSON body builders."""

import json

import pytest

from apisrv.http.response import (
    JSON_CONTENT_TYPE,
    NO_CACHE_HEADERS,
    Response,
    dump_json,
    error_message,
    error_response,
    json_response,
    oauth_error_response,
)


class TestResponse:
    def test_defaults(self) -> None:
        r = Response()
        assert r.status == 200
        assert r.content_type == JSON_CONTENT_TYPE
        assert r.headers == ()

    def test_with_status_returns_new(self) -> None:
        r = Response("x")
        r2 = r.with_status(201)
        assert r.status == 200
        assert r2.status == 201

    def test_with_headers(self) -> None:
        r = Response().with_header("X-A", "1").with_headers({"X-B": "2"})
        assert r.headers == (("X-A", "1"), ("X-B", "2"))

    def test_header_lookup_case_insensitive(self) -> None:
        r = Response().with_header("Content-Language", "en")
        assert r.header("content-language") == "en"
        assert r.header("x-missing") is None

    def test_body_conversions(self) -> None:
        assert Response("héllo").body_bytes == "héllo".encode()
        assert Response(b"abc").text == "abc"
        assert Response('{"a": 1}').json() == {"a": 1}


class TestDumpJson:
    def test_compact(self) -> None:
        assert dump_json({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_pretty_has_trailing_newline(self) -> None:
        assert dump_json({"a": 1}, pretty=True) == '{\n  "a": 1\n}\n'

    def test_non_ascii_kept(self) -> None:
        assert dump_json({"name": "café"}) == '{"name":"café"}'


class TestJsonResponse:
    def test_body_and_no_cache(self) -> None:
        r = json_response({"ok": True})
        assert r.status == 200
        assert r.json() == {"ok": True}
        assert r.headers == NO_CACHE_HEADERS
        assert r.header("Cache-Control") == "no-store, no-cache, must-revalidate, post-check=0, pre-check=0"
        assert r.header("Expires") == "Wed, 01 Jan 2020 12:00:00 GMT"
        assert r.header("Pragma") == "no-cache"

    def test_without_no_cache(self) -> None:
        assert json_response([], 201, no_cache=False).headers == ()

    def test_pretty(self) -> None:
        assert json_response({"a": 1}, pretty=True).text.endswith("}\n")


class TestErrorMessage:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, "Unauthorized"),
            (403, "Forbidden"),
            (404, "Not Found"),
            (405, "Method Not Allowed"),
            (408, "Request Timeout"),
            (413, "Payload Too Large"),
            (500, "Internal Server Error"),
            (503, "Service Unavailable"),
            (418, "Error"),
        ],
    )
    def test_canonical(self, status: int, expected: str) -> None:
        assert error_message(status, "ignored detail") == expected

    def test_400_appends_detail(self) -> None:
        assert error_message(400, "Bad Content-Length header") == "Bad Request (Bad Content-Length header)"

    def test_400_strips_trailing_periods(self) -> None:
        assert error_message(400, "id must be numeric...") == "Bad Request (id must be numeric)"

    def test_400_without_detail(self) -> None:
        assert error_message(400) == "Bad Request"


class TestErrorResponse:
    def test_body(self) -> None:
        r = error_response(404)
        assert r.status == 404
        assert r.content_type == JSON_CONTENT_TYPE
        assert json.loads(r.body_bytes) == {"code": 404, "message": "Not Found"}

    def test_headers_carried(self) -> None:
        r = error_response(413, headers=(("Connection", "close"),))
        assert r.header("Connection") == "close"


class TestOAuthErrorResponse:
    def test_401_kept(self) -> None:
        r = oauth_error_response(401, "invalid_token", "Token expired")
        assert r.status == 401
        assert r.json() == {"error": "invalid_token", "error_description": "Token expired (HTTP code 401)"}
        assert r.text.endswith("\n")

    def test_other_codes_become_400(self) -> None:
        r = oauth_error_response(403, "insufficient_scope")
        assert r.status == 400
        assert r.json()["error_description"] == "HTTP code 403"
