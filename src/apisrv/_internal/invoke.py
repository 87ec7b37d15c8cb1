"""Invoke helpers — call sync or async callables uniformly.

Handlers, validators, and the auth and upgrade callbacks can be ``def``
or ``async def``. Any code that calls one of them goes through this
helper so the sync/async check lives in exactly one place.

Usage::

    from apisrv._internal.invoke import invoke

    result = await invoke(validator, params)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync — returns immediately, no await needed
        def check_user(params):
            return {"user_id": int(params["user_id"])}

        # async — returns coroutine, awaited automatically
        async def check_user(params):
            return await users.normalize(params)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
