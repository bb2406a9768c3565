"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the server freezes.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sluice.errors import ConfigurationError, MethodNotAllowed, NotFound
from sluice.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("sluice.routing")

# regex pattern for each supported converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"-?\d+",
    "path": r".+",
}

_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ANGLE_PARAM = re.compile(r"^<(?:\w+:)?(\w+)>$")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/books"             -> [PathSegment("books")]
        "/books/{id}"        -> [PathSegment("books"), PathSegment("{id}", is_param=True, ...)]
        "/books/{id:int}"    -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for paths that do not start with ``/``,
    unknown converters, a ``path`` parameter that is not last, and
    parameter syntax borrowed from other frameworks.
    """
    if not path.startswith("/"):
        msg = f"Route path must start with '/': {path!r}"
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    parts = [p for p in path.strip("/").split("/") if p]
    for index, part in enumerate(parts):
        _reject_foreign_syntax(path, part)
        if not (part.startswith("{") and part.endswith("}")):
            segments.append(PathSegment(value=part))
            continue

        inner = part[1:-1]
        if ":" in inner:
            param_name, param_type = inner.split(":", 1)
        else:
            param_name, param_type = inner, "str"

        if not _PARAM_NAME.match(param_name):
            msg = f"Invalid parameter name {param_name!r} in route {path!r}"
            raise ConfigurationError(msg)
        if param_type not in CONVERTERS:
            msg = (
                f"Unknown converter {param_type!r} in route {path!r}. "
                f"Available: {', '.join(sorted(CONVERTERS))}"
            )
            raise ConfigurationError(msg)
        if param_type == "path" and index != len(parts) - 1:
            msg = f"A '{{{param_name}:path}}' parameter must be the last segment: {path!r}"
            raise ConfigurationError(msg)

        segments.append(
            PathSegment(
                value=part,
                is_param=True,
                param_name=param_name,
                param_type=param_type,
            )
        )
    return segments


def _reject_foreign_syntax(path: str, part: str) -> None:
    angle = _ANGLE_PARAM.match(part)
    if angle:
        msg = (
            f"Route {path!r} uses '<{angle.group(1)}>' syntax. "
            f"Use '{{{angle.group(1)}}}' instead."
        )
        raise ConfigurationError(msg)
    if part.startswith(":") and len(part) > 1:
        msg = f"Route {path!r} uses '{part}' syntax. Use '{{{part[1:]}}}' instead."
        raise ConfigurationError(msg)


class _TrieNode:
    """A node in the route trie. Mutable during registration only."""

    __slots__ = ("catch_all", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "books" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Catch-all edge (path converter)
        self.catch_all: _CatchAllEdge | None = None
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge that consumes the remaining path."""

    param_name: str
    routes_by_method: dict[str, Route]


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add("GET", "/books", list_books)
        router.add("GET", "/books/{id:int}", show_book)
        router.compile()
        match = router.match("GET", "/books/42")
    """

    __slots__ = ("_compiled", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._compiled = False

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    def add(self, method: str, path: str, handler: Callable[..., Any]) -> Route:
        """Register *handler* for (*method*, *path*). Must be called before compile().

        Raises ``ConfigurationError`` for a duplicate (method, path) pair or
        when a parameter conflicts with one already registered at the same
        position.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        method = method.upper()
        route = Route(path=path, method=method, handler=handler)
        node = self._root

        for seg in parse_path(path):
            if seg.is_param and seg.param_type == "path":
                name = seg.param_name or "path"
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(param_name=name, routes_by_method={})
                elif node.catch_all.param_name != name:
                    _conflict(path, name, node.catch_all.param_name)
                self._register(node.catch_all.routes_by_method, route)
                return route

            if seg.is_param:
                name = seg.param_name or ""
                edge = node.param_child
                if edge is None:
                    edge = _ParamEdge(
                        param_name=name,
                        param_type=seg.param_type,
                        regex=re.compile(f"^{CONVERTERS[seg.param_type]}$"),
                        node=_TrieNode(),
                    )
                    node.param_child = edge
                elif (edge.param_name, edge.param_type) != (name, seg.param_type):
                    _conflict(path, seg.value, f"{{{edge.param_name}:{edge.param_type}}}")
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        self._register(node.routes_by_method, route)
        return route

    def _register(self, table: dict[str, Route], route: Route) -> None:
        if route.method in table:
            msg = f"Duplicate route: {route.method} {route.path!r} is already registered."
            raise ConfigurationError(msg)
        table[route.method] = route
        self._routes.append(route)
        logger.debug("route added: %s %s", route.method, route.path)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against the registered routes.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path}")

        routes, params = result
        method = method.upper()
        if method in routes:
            return RouteMatch(route=routes[method], path_params=params)

        raise MethodNotAllowed(f"Method {method} not allowed for {path}", allowed=routes)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[dict[str, Route], dict[str, str]] | None:
        """Recursively match path parts against the trie."""
        # All parts consumed
        if index == len(parts):
            if node.routes_by_method:
                return node.routes_by_method, params
            return None

        part = parts[index]

        # 1. Static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter child
        edge = node.param_child
        if edge is not None and edge.regex.match(part):
            new_params = {**params, edge.param_name: part}
            result = self._match_node(edge.node, parts, index + 1, new_params)
            if result is not None:
                return result

        # 3. Catch-all
        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            return node.catch_all.routes_by_method, {
                **params,
                node.catch_all.param_name: remaining,
            }

        return None


def _conflict(path: str, new: str, existing: str) -> None:
    msg = (
        f"Route {path!r} declares {new} where {existing} is already "
        "registered at the same position."
    )
    raise ConfigurationError(msg)
