"""apisrv — a small JSON API server on ASGI.

Handlers are registered per HTTP method against path templates, and
every request runs through one fixed pipeline: body limits, content
negotiation, authentication, parameter validation, then the handler.

Basic usage::

    from apisrv import App

    app = App()

    @app.route("/users/{user_id}")
    async def get_user(r):
        await r.json_response({"id": r.params["user_id"]})

    app.run()

Serving (``pip install apisrv[server]``) uses pounce; any other ASGI
server can run the ``App`` object directly.
"""

__version__ = "0.1.0"
__all__ = [
    "ApiSrvError",
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "HTTPError",
    "HandlerOptions",
    "HandlerRegistry",
    "MethodNotAllowed",
    "NotFound",
    "ParamSource",
    "RequestContext",
    "Response",
    "TemplateError",
    "ValidationError",
    "error_response",
    "json_response",
    "oauth_error_response",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import apisrv`` fast while providing a clean top-level API.
    """
    if name == "App":
        from apisrv.app import App

        return App

    if name == "AppConfig":
        from apisrv.config import AppConfig

        return AppConfig

    if name in ("RequestContext", "ParamSource"):
        from apisrv.http import request as _req

        return getattr(_req, name)

    if name in ("Response", "error_response", "json_response", "oauth_error_response"):
        from apisrv.http import response as _resp

        return getattr(_resp, name)

    if name == "HandlerOptions":
        from apisrv.routing.route import HandlerOptions

        return HandlerOptions

    if name == "HandlerRegistry":
        from apisrv.routing.registry import HandlerRegistry

        return HandlerRegistry

    if name in (
        "ApiSrvError",
        "BadRequest",
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "TemplateError",
        "ValidationError",
    ):
        from apisrv import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
