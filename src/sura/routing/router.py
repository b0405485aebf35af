"""Route table with linear regex matching and a small match cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping
from urllib.parse import unquote

from sura.logging_utils import create_service_logger
from sura.routing.route import ANY_METHOD, Route

if TYPE_CHECKING:
    from sura.http.request import Request

logger = create_service_logger("sura.routing")

MAX_CACHE_ENTRIES = 1024


def normalize_path(uri: str) -> str:
    """Path part of a request URI: query string removed, percent-decoded."""
    path = uri.split("?", 1)[0].split("#", 1)[0]
    return unquote(path) or "/"


class Router:
    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._static: dict[str, list[Route]] = {}
        self._named: dict[str, Route] = {}
        self._cache: dict[tuple[str, str], tuple[Route, dict[str, str]]] = {}

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    # Registration

    def match_methods(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Any,
        name: str | None = None,
        middleware: Iterable[Any] | None = None,
    ) -> Route:
        """Register ``handler`` for ``pattern`` under the given HTTP methods."""
        route = Route(frozenset(methods), pattern, handler, name, list(middleware or []))
        self._routes.append(route)
        if route.is_static:
            self._static.setdefault(route.pattern, []).append(route)
        if name:
            if name in self._named:
                logger.warning("Route name redefined", route_name=name, pattern=pattern)
            self._named[name] = route
        self._cache.clear()
        return route

    def get(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods(["GET"], pattern, handler, name, middleware)

    def post(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods(["POST"], pattern, handler, name, middleware)

    def put(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods(["PUT"], pattern, handler, name, middleware)

    def patch(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods(["PATCH"], pattern, handler, name, middleware)

    def delete(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods(["DELETE"], pattern, handler, name, middleware)

    def options(
        self, pattern: str, handler: Any, name: str | None = None, middleware=None
    ) -> Route:
        return self.match_methods(["OPTIONS"], pattern, handler, name, middleware)

    def any(self, pattern: str, handler: Any, name: str | None = None, middleware=None) -> Route:
        return self.match_methods([ANY_METHOD], pattern, handler, name, middleware)

    def add(self, mapping: Mapping[str, Any]) -> Router:
        """Register a ``{pattern: handler}`` map, every route answering any method."""
        for pattern, handler in mapping.items():
            self.any(pattern, handler)
        return self

    # Matching

    def match(self, method: str, path: str) -> tuple[Route, dict[str, str]] | None:
        method = method.upper()
        key = (method, path)
        cached = self._cache.get(key)
        if cached is not None:
            return cached[0], dict(cached[1])

        found = self._find(method, path)
        if found is not None:
            if len(self._cache) >= MAX_CACHE_ENTRIES:
                self._cache.clear()
            self._cache[key] = found
            return found[0], dict(found[1])
        return None

    def _find(self, method: str, path: str) -> tuple[Route, dict[str, str]] | None:
        for route in self._static.get(path, ()):
            if route.allows(method):
                return route, {}

        for route in self._routes:
            if route.is_static:
                continue
            params = route.match(path)
            if params is not None and route.allows(method):
                return route, params
        return None

    def dispatch(self, request: Request) -> tuple[Any, dict[str, str]] | None:
        """``(handler, params)`` for the request, or None when nothing matches."""
        found = self.match(request.method, request.path)
        if found is None:
            return None
        route, params = found
        return route.handler, params

    def allowed_methods(self, path: str) -> list[str]:
        """Methods some route accepts for ``path``; empty when the path is unknown."""
        methods: set[str] = set()
        for route in self._routes:
            if route.match(path) is not None:
                methods |= route.allowed_methods()
        return sorted(methods)

    def url_for(self, name: str, **params: Any) -> str:
        route = self._named.get(name)
        if route is None:
            raise KeyError(f"No route named '{name}'")
        return route.build_path(params)
