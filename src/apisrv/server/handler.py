"""ASGI handler — the per-request pipeline.

The only component that touches raw ASGI directly. Every request runs
the same strictly ordered stages; the first stage to fail produces the
one and only response:

1. read the body (size, length and timeout guards)
2. parse Content-Type, reject unsupported methods
3. resolve the handler (404 / 405 when nothing applies)
4. authentication gate
5. path params  -> path_params_validator
6. query params -> url_params_validator   (unless ignore_url_params)
7. body params  -> body_params_validator
8. merge body < query < path -> params_validator
9. invoke the handler
"""

import contextlib
import logging
from typing import Any

from apisrv._internal.asgi import HTTPScope, Receive, Scope, Send
from apisrv._internal.invoke import invoke
from apisrv._internal.types import AuthCallback, Handler, UpgradeCallback
from apisrv.config import AppConfig
from apisrv.errors import HTTPError, MethodNotAllowed, NotFound
from apisrv.http.headers import Headers
from apisrv.http.negotiation import (
    decode_body_params,
    decode_url_params,
    parse_content_type,
    require_supported_method,
)
from apisrv.http.query import parse_query
from apisrv.http.request import RequestContext
from apisrv.http.response import Response
from apisrv.routing.registry import HandlerRegistry
from apisrv.routing.route import DEFAULT_OPTIONS, HandlerEntry, RouteMatch
from apisrv.routing.template import compile_template
from apisrv.server.errors import handle_http_error, handle_internal_error
from apisrv.server.lifecycle import read_body
from apisrv.server.params import merge_params, run_validator
from apisrv.server.sender import ResponseSink

logger = logging.getLogger("apisrv.server")

# WebSocket close codes
_POLICY_VIOLATION = 1008
_UNSUPPORTED_DATA = 1003
_INTERNAL_ERROR = 1011


class _CallbackFailed(Exception):
    """An auth or request handler callback raised.

    Always answered with a 500, whatever the callback raised; the original
    exception is the cause.
    """


async def _call_callback(callback: Any, ctx: RequestContext) -> Any:
    try:
        return await invoke(callback, ctx)
    except Exception as exc:
        raise _CallbackFailed from exc


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    registry: HandlerRegistry,
    config: AppConfig,
    auth: AuthCallback | None = None,
    fallback: Handler | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    http_scope = HTTPScope.from_scope(scope)
    sink = ResponseSink(send)
    ctx = RequestContext(
        method=http_scope.method,
        url=http_scope.request_path,
        headers=Headers(http_scope.headers),
        query_string=http_scope.query_string.decode("latin-1"),
        client=http_scope.client,
        _sink=sink,
        _pretty=config.pretty_print_json,
    )

    try:
        await _run_pipeline(
            ctx,
            receive,
            registry=registry,
            config=config,
            auth=auth,
            fallback=fallback,
        )
    except _CallbackFailed as exc:
        await handle_internal_error(exc.__cause__ or exc, sink, ctx.method, ctx.url)
    except HTTPError as exc:
        await handle_http_error(exc, sink, ctx.method, ctx.url)
    except Exception as exc:
        await handle_internal_error(exc, sink, ctx.method, ctx.url)


async def _run_pipeline(
    ctx: RequestContext,
    receive: Receive,
    *,
    registry: HandlerRegistry,
    config: AppConfig,
    auth: AuthCallback | None,
    fallback: Handler | None,
) -> None:
    body = await read_body(
        receive,
        ctx.headers,
        max_body_size=config.max_body_size,
        timeout=config.body_read_timeout,
    )
    content_type = parse_content_type(ctx.headers.get("content-type"))
    require_supported_method(ctx.method)

    match = _resolve(ctx, registry, fallback)
    options = match.entry.options

    if auth is not None and not await _call_callback(auth, ctx):
        logger.debug("Authentication failed (resource: %s)", ctx.url)
        return

    ctx.path_params = await run_validator(
        options.path_params_validator,
        dict(match.path_params),
        name="path_params_validator",
    )

    url_params = decode_url_params(ctx.method, ctx.query_string, parse=not options.ignore_url_params)
    if options.ignore_url_params:
        ctx.url_params = url_params
    else:
        ctx.url_params = await run_validator(
            options.url_params_validator,
            url_params,
            name="url_params_validator",
        )

    ctx.body_params = await run_validator(
        options.body_params_validator,
        decode_body_params(ctx.method, content_type, body),
        name="body_params_validator",
    )
    del body

    ctx.params = await run_validator(
        options.params_validator,
        merge_params(ctx),
        name="params_validator",
    )

    result = await _call_callback(match.entry.handler, ctx)
    if isinstance(result, Response):
        await ctx.send(result)
    elif not ctx.responded:
        logger.warning("Handler for %s %s returned without writing a response", ctx.method, ctx.url)
    else:
        logger.debug("Request successfully processed (resource: %s)", ctx.url)


def _resolve(ctx: RequestContext, registry: HandlerRegistry, fallback: Handler | None) -> RouteMatch:
    """Find the handler for *ctx*, falling back or raising 404/405."""
    match = registry.lookup(ctx.method, ctx.url)
    if match is not None:
        return match
    if fallback is not None:
        return RouteMatch(_fallback_entry(ctx.method, fallback))
    if registry.has_other_method_match(ctx.method, ctx.url):
        raise MethodNotAllowed(registry.methods_for(ctx.url))
    raise NotFound()


def _fallback_entry(method: str, handler: Handler) -> HandlerEntry:
    return HandlerEntry(
        method=method,
        template=compile_template("/"),
        handler=handler,
        options=DEFAULT_OPTIONS,
    )


async def handle_websocket(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    auth: AuthCallback | None = None,
    upgrade: UpgradeCallback | None = None,
) -> None:
    """Authenticate a protocol upgrade and hand the raw connection over.

    The upgrade callback gets the context (query parameters already in
    ``params``) plus the raw ASGI ``receive`` and ``send``; it owns the
    connection from then on.
    """
    http_scope = HTTPScope.from_scope(scope)
    query_string = http_scope.query_string.decode("latin-1")
    url_params: dict[str, Any] = parse_query(query_string)
    ctx = RequestContext(
        method="GET",
        url=http_scope.request_path,
        headers=Headers(http_scope.headers),
        query_string=query_string,
        client=http_scope.client,
        url_params=url_params,
        params=dict(url_params),
    )

    if upgrade is None:
        await _close_websocket(send, _UNSUPPORTED_DATA)
        return

    try:
        if auth is not None and not await invoke(auth, ctx):
            logger.debug("Upgrade refused by authentication (resource: %s)", ctx.url)
            await _close_websocket(send, _POLICY_VIOLATION)
            return
        if await invoke(upgrade, ctx, receive, send):
            logger.debug("Upgrade successfully processed (resource: %s)", ctx.url)
    except Exception:
        logger.exception("Upgrade handler failed (resource: %s)", ctx.url)
        await _close_websocket(send, _INTERNAL_ERROR)


async def _close_websocket(send: Send, code: int) -> None:
    # The connection may already be gone
    with contextlib.suppress(OSError, RuntimeError):
        await send({"type": "websocket.close", "code": code})
