"""Serving an App through pounce.

Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``), but
apisrv has a live ``App`` object, so ``pounce.Server`` is used directly
with the ASGI callable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from apisrv.errors import ConfigurationError

if TYPE_CHECKING:
    from apisrv.config import AppConfig


def run_server(
    app: object,
    config: AppConfig,
    *,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Start a pounce server for *app* and block until it stops.

    TLS is enabled when the config carries both a certificate and a key.
    Debug mode runs a single worker with auto-reload.

    Raises:
        ConfigurationError: pounce is not installed
            (``pip install apisrv[server]``).
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires pounce: pip install apisrv[server]"
        raise ConfigurationError(msg) from exc

    options: dict[str, object] = {
        "host": host or config.host,
        "port": port or config.port,
        "workers": 1 if config.debug else config.workers,
        "reload": config.debug,
        "log_level": config.log_level,
    }
    if config.tls:
        options["ssl_certfile"] = config.ssl_certfile
        options["ssl_keyfile"] = config.ssl_keyfile

    server = Server(ServerConfig(**options), app)
    server.run()

