"""Parameter validation and merging.

Validators run once per source and once on the merged result. The merge
order is body, then query, then path: a path capture always beats a
query parameter of the same name, which beats a body field.
"""

import logging
from typing import Any

from apisrv._internal.invoke import invoke
from apisrv._internal.types import Validator
from apisrv.errors import BadRequest, InternalServerError
from apisrv.http.request import ParamCollision, ParamSource, RequestContext

logger = logging.getLogger("apisrv.params")


async def run_validator(validator: Validator | None, params: dict[str, Any], *, name: str) -> dict[str, Any]:
    """Run *validator* on *params* and return its result.

    No validator returns *params* unchanged. Any exception the validator
    raises becomes a 400 carrying its message, ``HTTPError`` included. A
    result that is not a dict is a 500.
    """
    if validator is None:
        return params
    try:
        result = await invoke(validator, params)
    except Exception as exc:
        logger.debug("%s rejected parameters: %s", name, exc)
        raise BadRequest(str(exc)) from exc
    if not isinstance(result, dict):
        logger.error("%s returned %s instead of a dict", name, type(result).__name__)
        raise InternalServerError(f"{name} returned {type(result).__name__}")
    return result


def merge_params(ctx: RequestContext) -> dict[str, Any]:
    """Merge body, query and path parameters of *ctx*.

    Records where every key came from in ``ctx.param_sources`` and logs a
    warning for each overwrite; ``ctx.collisions`` keeps one entry per
    overwritten key listing all the sources that supplied it.
    """
    merged: dict[str, Any] = {}
    layers = (
        (ParamSource.BODY, ctx.body_params),
        (ParamSource.QUERY, ctx.url_params),
        (ParamSource.PATH, ctx.path_params),
    )
    for source, values in layers:
        if not values:
            continue
        for key, value in values.items():
            previous = ctx.param_sources.get(key)
            if key in merged and previous is not None and previous is not source:
                logger.warning(
                    'Parameter "%s" from %s overrides value from %s',
                    key,
                    source.label,
                    previous.label,
                )
                earlier = ctx.collisions[key].sources if key in ctx.collisions else (previous,)
                ctx.collisions[key] = ParamCollision(key, (*earlier, source))
            merged[key] = value
            ctx.param_sources[key] = source
    return merged
