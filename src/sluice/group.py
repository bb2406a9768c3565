"""Group: fluent registration of several methods on one path.

::

    (
        server.group("/books/{id:int}", load_book)
        .get(show_book)
        .put(update_book, require_editor)
        .delete(delete_book, require_admin)
    )

Method-only middleware (``require_editor`` above) applies to that one
call. Only ``Group.middleware()`` changes what later calls inherit.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sluice.app import Server


class Group:
    """A path plus shared middleware, bound to its owning server."""

    __slots__ = ("_middleware", "_path", "_server")

    def __init__(self, server: Server, path: str, *middleware: Callable[..., Any]) -> None:
        self._server = server
        self._path = path
        self._middleware: list[Callable[..., Any]] = list(middleware)

    @property
    def path(self) -> str:
        return self._path

    @property
    def chain(self) -> tuple[Callable[..., Any], ...]:
        """A snapshot of the group's own middleware."""
        return tuple(self._middleware)

    def middleware(self, *middleware: Callable[..., Any]) -> Group:
        """Append middleware inherited by every method registered afterwards."""
        self._server._check_not_frozen()
        self._middleware.extend(middleware)
        return self

    def _bind(
        self,
        method: str,
        handler: Callable[..., Any],
        method_only: tuple[Callable[..., Any], ...],
    ) -> Group:
        # New tuple per call: the group's list is never extended here.
        self._server.bind(method, self._path, handler, (*self._middleware, *method_only))
        return self

    def get(self, handler: Callable[..., Any], *middleware: Callable[..., Any]) -> Group:
        return self._bind("GET", handler, middleware)

    def post(self, handler: Callable[..., Any], *middleware: Callable[..., Any]) -> Group:
        return self._bind("POST", handler, middleware)

    def put(self, handler: Callable[..., Any], *middleware: Callable[..., Any]) -> Group:
        return self._bind("PUT", handler, middleware)

    def patch(self, handler: Callable[..., Any], *middleware: Callable[..., Any]) -> Group:
        return self._bind("PATCH", handler, middleware)

    def delete(self, handler: Callable[..., Any], *middleware: Callable[..., Any]) -> Group:
        return self._bind("DELETE", handler, middleware)

    def __repr__(self) -> str:
        return f"<Group {self._path!r} middleware={len(self._middleware)}>"
