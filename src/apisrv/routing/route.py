"""HandlerOptions, HandlerEntry and RouteMatch frozen dataclasses."""

from dataclasses import dataclass, field
from typing import Any

from apisrv._internal.types import Handler, Validator
from apisrv.routing.template import PathTemplate


@dataclass(frozen=True, slots=True)
class HandlerOptions:
    """Per-handler parameter validation settings.

    Each validator receives a params dict and returns the dict to use in
    its place (sync or async). Raising reports a 400 with the exception
    message; returning anything but a dict reports a 500.
    """

    path_params_validator: Validator | None = None
    url_params_validator: Validator | None = None
    body_params_validator: Validator | None = None
    params_validator: Validator | None = None
    ignore_url_params: bool = False


DEFAULT_OPTIONS = HandlerOptions()


@dataclass(frozen=True, slots=True)
class HandlerEntry:
    """A registered handler: compiled template, callable and options."""

    method: str
    template: PathTemplate
    handler: Handler
    options: HandlerOptions = DEFAULT_OPTIONS

    @property
    def path(self) -> str:
        return self.template.template


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful lookup."""

    entry: HandlerEntry
    path_params: dict[str, Any] = field(default_factory=dict)
