"""Shared type aliases used across apisrv modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Request handler: receives the RequestContext
Handler: TypeAlias = Callable[..., Any]

# Parameter validator: receives a params dict, returns a (possibly new) dict
Validator: TypeAlias = Callable[[dict[str, Any]], Any]

# Authentication predicate: receives the RequestContext, truthy to continue
AuthCallback: TypeAlias = Callable[..., Any]

# Upgrade handler: receives the RequestContext plus raw ASGI receive/send
UpgradeCallback: TypeAlias = Callable[..., Any]

# Lifespan hook: no arguments
Hook: TypeAlias = Callable[[], Any]
