"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. Values are checked once, at construction.
"""

from dataclasses import dataclass

from apisrv.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=8808, max_body_size=64 * 1024, body_read_timeout=0.5)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    workers: int = 1
    log_level: str = "info"

    # Limits
    max_body_size: int = 1024 * 1024  # 1 MiB, 0 disables the limit
    body_read_timeout: float = 2.0  # seconds

    # Responses
    pretty_print_json: bool = False

    # TLS (optional, both or neither)
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            msg = f"Bad port: {self.port!r}"
            raise ConfigurationError(msg)
        if isinstance(self.max_body_size, bool) or not isinstance(self.max_body_size, int) or self.max_body_size < 0:
            msg = f"Bad max_body_size: {self.max_body_size!r}"
            raise ConfigurationError(msg)
        if not isinstance(self.body_read_timeout, (int, float)) or self.body_read_timeout <= 0:
            msg = f"Bad body_read_timeout: {self.body_read_timeout!r}"
            raise ConfigurationError(msg)
        if self.ssl_keyfile and not self.ssl_certfile:
            msg = "Key defined without cert"
            raise ConfigurationError(msg)
        if self.ssl_certfile and not self.ssl_keyfile:
            msg = "Cert defined without key"
            raise ConfigurationError(msg)

    @property
    def tls(self) -> bool:
        """True when both a certificate and a key are configured."""
        return bool(self.ssl_certfile and self.ssl_keyfile)
