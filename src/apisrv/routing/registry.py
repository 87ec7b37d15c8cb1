"""Handler registry — per-method stores of compiled path templates.

Each method owns two maps keyed by the literal template string: ``exact``
for capture-free templates (dict probe) and ``dynamic`` for templates
with captures (probed in registration order through the matcher).

Thread safety:
    Writers hold a lock and publish new dict objects instead of mutating
    the ones readers may be iterating (copy-on-write). Readers never lock:
    a lookup sees each map either before or after a concurrent add/delete,
    never a half-updated entry.
"""

import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from apisrv._internal.types import Handler
from apisrv.errors import ConfigurationError
from apisrv.routing.matcher import match_template, split_request_path
from apisrv.routing.route import DEFAULT_OPTIONS, HandlerEntry, HandlerOptions, RouteMatch
from apisrv.routing.template import compile_template

logger = logging.getLogger("apisrv.routing")

SUPPORTED_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE"})


def normalize_method(method: str) -> str:
    """Upper-case *method* and check it against the supported verbs."""
    if not isinstance(method, str):
        msg = f"Bad request handler method: {method!r}"
        raise ConfigurationError(msg)
    upper = method.upper()
    if upper not in SUPPORTED_METHODS:
        msg = f"Unsupported request handler method: {method!r}"
        raise ConfigurationError(msg)
    return upper


@dataclass(frozen=True, slots=True)
class _MethodStore:
    """Published state for one method. Never mutated once published."""

    exact: Mapping[str, HandlerEntry] = field(default_factory=dict)
    dynamic: Mapping[str, HandlerEntry] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.exact) or bool(self.dynamic)

    def without(self, path: str) -> "_MethodStore":
        return _MethodStore(
            exact={k: v for k, v in self.exact.items() if k != path},
            dynamic={k: v for k, v in self.dynamic.items() if k != path},
        )

    def find(self, path: str) -> RouteMatch | None:
        entry = self.exact.get(path)
        if entry is not None:
            return RouteMatch(entry)

        if len(path) > 1 and path.endswith("/"):
            entry = self.exact.get(path[:-1])
            if entry is not None and not entry.template.has_trailing_slash:
                return RouteMatch(entry)

        if not self.dynamic:
            return None

        request_path = split_request_path(path)
        for entry in self.dynamic.values():
            params = match_template(entry.template, request_path)
            if params is not None:
                return RouteMatch(entry, params)
        return None


class HandlerRegistry:
    """Mutable, thread-safe registry of request handlers.

    Usage::

        registry = HandlerRegistry()
        registry.add("GET", "/users/{user_id}", get_user)
        match = registry.lookup("GET", "/users/42")
        match.path_params  # {"user_id": "42"}
    """

    __slots__ = ("_lock", "_stores")

    def __init__(self) -> None:
        self._stores: Mapping[str, _MethodStore] = {}
        self._lock = threading.Lock()

    # -- Mutation --

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        options: HandlerOptions | None = None,
    ) -> HandlerEntry:
        """Register *handler* for *method* and template *path*.

        Re-registering the same (method, path) replaces the earlier entry.
        Raises ``ConfigurationError`` for an unsupported method, a
        non-callable handler, or a template that does not compile.
        """
        upper = normalize_method(method)
        if not callable(handler):
            msg = f"Bad request handler callback for {upper} {path}"
            raise ConfigurationError(msg)
        entry = HandlerEntry(
            method=upper,
            template=compile_template(path),
            handler=handler,
            options=options or DEFAULT_OPTIONS,
        )

        with self._lock:
            store = self._stores.get(upper) or _MethodStore()
            if entry.template.is_exact:
                store = _MethodStore(exact={**store.exact, path: entry}, dynamic=store.dynamic)
            else:
                store = _MethodStore(exact=store.exact, dynamic={**store.dynamic, path: entry})
            self._stores = {**self._stores, upper: store}

        logger.debug("Registered %s %s", upper, path)
        return entry

    def delete(self, method: str, path: str) -> bool:
        """Remove the handler registered for (*method*, *path*).

        ``method == "*"`` removes *path* from every method. Stores left
        empty are pruned. Returns whether anything was removed.
        """
        if not isinstance(path, str) or not path.startswith("/"):
            msg = f"Bad request handler path: {path!r}"
            raise ConfigurationError(msg)
        methods = None if method == "*" else {normalize_method(method)}

        removed = False
        with self._lock:
            stores: dict[str, _MethodStore] = {}
            for key, store in self._stores.items():
                if methods is not None and key not in methods:
                    stores[key] = store
                    continue
                if path in store.exact or path in store.dynamic:
                    removed = True
                    store = store.without(path)
                if store:
                    stores[key] = store
            self._stores = stores

        if removed:
            logger.debug("Removed %s %s", method, path)
        return removed

    # -- Lookup --

    def lookup(self, method: str, path: str) -> RouteMatch | None:
        """Find the handler for *method* and request *path*.

        Exact templates are probed first (with one trailing slash forgiven
        when the template does not require it), then dynamic templates in
        registration order. The first match wins.
        """
        if not path.startswith("/"):
            return None
        store = self._stores.get(method.upper())
        if store is None:
            return None
        return store.find(path)

    def has_other_method_match(self, method: str, path: str) -> bool:
        """True if any method other than *method* handles *path*.

        Used to choose between 404 and 405.
        """
        if not path.startswith("/"):
            return False
        upper = method.upper()
        return any(
            store.find(path) is not None
            for key, store in self._stores.items()
            if key != upper
        )

    # -- Introspection --

    @property
    def entries(self) -> list[HandlerEntry]:
        """All registered entries, grouped by method in registration order."""
        return list(self)

    def methods_for(self, path: str) -> frozenset[str]:
        """Methods that would handle request *path*."""
        if not path.startswith("/"):
            return frozenset()
        return frozenset(key for key, store in self._stores.items() if store.find(path) is not None)

    def __iter__(self) -> Iterator[HandlerEntry]:
        for store in self._stores.values():
            yield from store.exact.values()
            yield from store.dynamic.values()

    def __len__(self) -> int:
        return sum(len(s.exact) + len(s.dynamic) for s in self._stores.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        method, path = key
        store = self._stores.get(str(method).upper())
        return store is not None and (path in store.exact or path in store.dynamic)
