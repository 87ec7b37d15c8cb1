"""apisrv application class.

Owns the handler registry, the configuration, and the authentication,
upgrade and fallback callbacks. Unlike a framework that freezes its
routes on first request, handlers can be added and removed at any time,
including while requests are in flight.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from apisrv._internal.asgi import Receive, Scope, Send
from apisrv._internal.invoke import invoke
from apisrv._internal.types import AuthCallback, Handler, Hook, UpgradeCallback
from apisrv.config import AppConfig
from apisrv.errors import ConfigurationError
from apisrv.routing.registry import HandlerRegistry
from apisrv.routing.route import HandlerEntry, HandlerOptions
from apisrv.server.handler import handle_request, handle_websocket

logger = logging.getLogger("apisrv.app")


class App:
    """The apisrv application — an ASGI 3.0 callable.

    Usage::

        app = App(AppConfig(port=8808))

        @app.route("/users/{user_id}")
        async def get_user(r):
            await r.json_response({"id": r.params["user_id"]})

        app.run()

    Thread safety:
        Registration goes through ``HandlerRegistry``, which publishes
        copy-on-write snapshots; requests in flight keep resolving
        against a consistent view while handlers are added or deleted.
    """

    __slots__ = (
        "_auth",
        "_fallback",
        "_registry",
        "_shutdown_hooks",
        "_startup_hooks",
        "_upgrade",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        handlers: Mapping[str, Mapping[str, Handler]] | None = None,
        auth: AuthCallback | None = None,
        upgrade: UpgradeCallback | None = None,
        fallback: Handler | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._registry = HandlerRegistry()
        self._auth = _checked_callback("auth", auth)
        self._upgrade = _checked_callback("upgrade", upgrade)
        self._fallback = _checked_callback("fallback", fallback)
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []

        for method, table in (handlers or {}).items():
            for path, handler in table.items():
                self.add(method, path, handler)

    # -- Handler registration --

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        options: HandlerOptions | None = None,
        **option_fields: Any,
    ) -> HandlerEntry:
        """Register *handler* for *method* and path template *path*.

        Validators and ``ignore_url_params`` may be passed either as a
        ``HandlerOptions`` or as keyword arguments, not both::

            app.add("GET", "/files/[parts:1:8]", list_files, url_params_validator=check)
        """
        return self._registry.add(method, path, handler, _options(options, option_fields))

    def delete(self, method: str, path: str) -> bool:
        """Remove a handler. ``method="*"`` removes *path* for every method."""
        return self._registry.delete(method, path)

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        options: HandlerOptions | None = None,
        **option_fields: Any,
    ) -> Callable[[Handler], Handler]:
        """Register a handler via decorator.

        Args:
            path: Path template. ``{name}`` captures one segment, ``[name]``
                a run of segments (``[name:N]`` / ``[name:N:M]`` bound it).
            methods: HTTP methods. Defaults to ``["GET"]``.
            options: Validation options for the handler.
            **option_fields: ``HandlerOptions`` fields, as an alternative
                to *options*.
        """
        resolved = _options(options, option_fields)

        def decorator(func: Handler) -> Handler:
            for method in methods or ["GET"]:
                self._registry.add(method, path, func, resolved)
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting requests.
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown.
        """
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with pounce until interrupted.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        from apisrv.server.serve import run_server

        logger.info(
            "Serving on %s://%s:%d",
            "https" if self.config.tls else "http",
            host or self.config.host,
            port or self.config.port,
        )
        run_server(self, self.config, host=host, port=port)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, hands websocket scopes to the
        upgrade callback, and runs HTTP scopes through the request
        pipeline.
        """
        scope_type = scope["type"]
        if scope_type == "lifespan":
            await self._handle_lifespan(scope, receive, send)
        elif scope_type == "websocket":
            await handle_websocket(scope, receive, send, auth=self._auth, upgrade=self._upgrade)
        elif scope_type == "http":
            await handle_request(
                scope,
                receive,
                send,
                registry=self._registry,
                config=self.config,
                auth=self._auth,
                fallback=self._fallback,
            )
        else:
            logger.debug("Ignoring unsupported ASGI scope type %r", scope_type)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    for hook in self._shutdown_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Shutdown hook failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return


def _checked_callback[F: Callable[..., Any]](name: str, func: F | None) -> F | None:
    if func is not None and not callable(func):
        msg = f"Bad {name} callback: {func!r}"
        raise ConfigurationError(msg)
    return func


def _options(options: HandlerOptions | None, fields: dict[str, Any]) -> HandlerOptions | None:
    if not fields:
        return options
    if options is not None:
        msg = "Pass either options or option keyword arguments, not both"
        raise ConfigurationError(msg)
    try:
        return HandlerOptions(**fields)
    except TypeError as exc:
        msg = f"Bad handler options: {exc}"
        raise ConfigurationError(msg) from exc
