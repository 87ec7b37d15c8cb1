"""Tests for apisrv.server.params — validators and parameter merging."""

import logging

import pytest

from apisrv.errors import BadRequest, InternalServerError, NotFound, ValidationError
from apisrv.http.headers import Headers
from apisrv.http.request import ParamCollision, ParamSource, RequestContext
from apisrv.server.params import merge_params, run_validator


def _ctx(**params) -> RequestContext:
    return RequestContext(method="POST", url="/x", headers=Headers(), **params)


class TestRunValidator:
    async def test_no_validator_passes_through(self) -> None:
        params = {"a": "1"}
        assert await run_validator(None, params, name="v") is params

    async def test_sync_validator_replaces(self) -> None:
        result = await run_validator(lambda p: {"a": int(p["a"])}, {"a": "1"}, name="v")
        assert result == {"a": 1}

    async def test_async_validator(self) -> None:
        async def validate(params: dict) -> dict:
            return {**params, "checked": True}

        assert await run_validator(validate, {}, name="v") == {"checked": True}

    async def test_raising_is_400_with_message(self) -> None:
        def validate(params: dict) -> dict:
            raise ValidationError("id must be numeric.")

        with pytest.raises(BadRequest) as exc_info:
            await run_validator(validate, {}, name="v")
        assert exc_info.value.detail == "id must be numeric."

    async def test_any_exception_is_400(self) -> None:
        with pytest.raises(BadRequest) as exc_info:
            await run_validator(lambda p: int(p["a"]) and p, {"a": "x"}, name="v")
        assert "invalid literal" in exc_info.value.detail

    async def test_http_error_becomes_400(self) -> None:
        def validate(params: dict) -> dict:
            raise NotFound()

        with pytest.raises(BadRequest) as exc_info:
            await run_validator(validate, {}, name="v")
        assert exc_info.value.status == 400
        assert exc_info.value.detail == "404: Not Found"

    @pytest.mark.parametrize("result", [None, [], "ok", 1])
    async def test_non_dict_is_500(self, result: object) -> None:
        with pytest.raises(InternalServerError):
            await run_validator(lambda p: result, {}, name="v")


class TestMergeParams:
    def test_precedence_and_single_collision(self) -> None:
        ctx = _ctx(body_params={"a": 1}, url_params={"a": 2}, path_params={"a": 3})
        merged = merge_params(ctx)
        assert merged == {"a": 3}
        assert ctx.param_sources["a"] is ParamSource.PATH
        assert ctx.collisions == {
            "a": ParamCollision("a", (ParamSource.BODY, ParamSource.QUERY, ParamSource.PATH)),
        }

    def test_disjoint_sources(self) -> None:
        ctx = _ctx(body_params={"b": 1}, url_params={"q": 2}, path_params={"p": 3})
        assert merge_params(ctx) == {"b": 1, "q": 2, "p": 3}
        assert ctx.collisions == {}

    def test_none_sources(self) -> None:
        ctx = _ctx(path_params={"id": "7"})
        assert merge_params(ctx) == {"id": "7"}

    def test_query_beats_body(self) -> None:
        ctx = _ctx(body_params={"a": "body", "b": "body"}, url_params={"a": "query"})
        assert merge_params(ctx) == {"a": "query", "b": "body"}
        assert ctx.collisions["a"].sources == (ParamSource.BODY, ParamSource.QUERY)

    def test_collision_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        ctx = _ctx(url_params={"id": "q"}, path_params={"id": "p"})
        with caplog.at_level(logging.WARNING, logger="apisrv.params"):
            merge_params(ctx)
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert '"id"' in message
        assert "path template" in message
        assert "query string" in message
