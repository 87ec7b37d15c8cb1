"""Tests for apisrv.testing — assertions and the test client."""

import pytest

from apisrv.app import App
from apisrv.http.response import Response, error_response, json_response
from apisrv.testing import (
    TestClient,
    assert_closes_connection,
    assert_json,
    assert_json_error,
    assert_no_cache,
)


class TestAssertions:
    def test_assert_json(self) -> None:
        assert_json(json_response({"a": 1}), {"a": 1})

    def test_assert_json_wrong_status(self) -> None:
        with pytest.raises(AssertionError, match="Expected status 201"):
            assert_json(json_response({}), {}, status=201)

    def test_assert_json_error_with_detail(self) -> None:
        assert_json_error(error_response(400, "Bad thing."), 400, "Bad thing")

    def test_assert_json_error_wrong_message(self) -> None:
        with pytest.raises(AssertionError, match="Expected message"):
            assert_json_error(error_response(400, "one"), 400, "two")

    def test_assert_no_cache(self) -> None:
        assert_no_cache(json_response({}))
        with pytest.raises(AssertionError):
            assert_no_cache(json_response({}, no_cache=False))

    def test_assert_closes_connection(self) -> None:
        assert_closes_connection(Response().with_header("Connection", "close"))
        with pytest.raises(AssertionError):
            assert_closes_connection(Response())


class TestClientBehaviour:
    async def test_repeated_headers_as_pairs(self) -> None:
        app = App()

        @app.route("/h")
        async def h(r):
            await r.json_response(r.headers.get_list("x-tag"))

        async with TestClient(app) as client:
            response = await client.request("GET", "/h", headers=[("X-Tag", "a"), ("X-Tag", "b")])
        assert_json(response, ["a", "b"])

    async def test_body_and_chunks_exclusive(self) -> None:
        async with TestClient(App()) as client:
            with pytest.raises(TypeError):
                await client.request("POST", "/", body=b"a", chunks=[b"b"])

    async def test_messages_recorded(self) -> None:
        async with TestClient(App()) as client:
            await client.get("/missing")
            assert [m["type"] for m in client.messages] == ["http.response.start", "http.response.body"]
            assert client.response_count == 1
