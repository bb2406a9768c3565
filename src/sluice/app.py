"""Sluice server: route registration, global middleware, ASGI entry point.

Mutable during setup (routes, groups, global middleware, lifecycle hooks).
Frozen at runtime when ``server.run()`` or ``__call__()`` is first invoked.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from sluice._internal.types import Receive, Scope, Send
from sluice.config import Config
from sluice.group import Group
from sluice.queue import Queue
from sluice.routing.router import Router
from sluice.server.handler import handle_request

logger = logging.getLogger("sluice.server")

Handler = Callable[..., Any]
Middleware = Callable[..., Any]


class Server:
    """The sluice server.

    Every route gets its own ``Queue``: the global middleware registered
    so far, then the route's own middleware, then the controller::

        server = Server(Config(error_logger=log_error), request_id)
        server.get("/books", list_books)
        server.post("/books", create_book, TokenAuth(verify))
        server.add_global_middleware(audit)   # only routes bound from here on
        server.get("/health", health)

    Thread safety:
        The setup phase is single-threaded (registration at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the router, even when several workers receive
        their first request at once.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_global_middleware",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: Config | None = None, *middleware: Middleware) -> None:
        self.config: Config = config or Config()
        self._global_middleware: list[Middleware] = list(middleware)
        self._router = Router()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Introspection --

    @property
    def global_middleware(self) -> tuple[Middleware, ...]:
        """Global middleware registered so far (a snapshot)."""
        return tuple(self._global_middleware)

    @property
    def router(self) -> Router:
        return self._router

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Route registration --

    def bind(
        self,
        method: str,
        path: str,
        handler: Handler,
        middleware: Iterable[Middleware] = (),
    ) -> Queue:
        """Register *handler* for (*method*, *path*) and return its queue.

        The chain is ``global ++ middleware``, copied now. Global
        middleware added later never reaches this route.
        """
        self._check_not_frozen()
        queue = Queue(
            handler,
            (*self._global_middleware, *middleware),
            error_logger=self.config.error_logger,
            access_logger=self.config.access_logger,
        )
        self._router.add(method, path, queue.dispatch)
        return queue

    def get(self, path: str, handler: Handler, *middleware: Middleware) -> Queue:
        return self.bind("GET", path, handler, middleware)

    def post(self, path: str, handler: Handler, *middleware: Middleware) -> Queue:
        return self.bind("POST", path, handler, middleware)

    def put(self, path: str, handler: Handler, *middleware: Middleware) -> Queue:
        return self.bind("PUT", path, handler, middleware)

    def patch(self, path: str, handler: Handler, *middleware: Middleware) -> Queue:
        return self.bind("PATCH", path, handler, middleware)

    def delete(self, path: str, handler: Handler, *middleware: Middleware) -> Queue:
        return self.bind("DELETE", path, handler, middleware)

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] = ("GET",),
        middleware: Iterable[Middleware] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a controller via decorator, once per method.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``("GET",)``.
            middleware: Route middleware, run after the global middleware.
        """
        route_middleware = tuple(middleware)

        def decorator(func: Handler) -> Handler:
            for method in methods:
                self.bind(method, path, func, route_middleware)
            return func

        return decorator

    def group(self, path: str, *middleware: Middleware) -> Group:
        """Start a fluent registration group for *path*."""
        self._check_not_frozen()
        return Group(self, path, *middleware)

    def add_global_middleware(self, *middleware: Middleware) -> None:
        """Append global middleware for routes bound after this call."""
        self._check_not_frozen()
        self._global_middleware.extend(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.

        Usage::

            @server.on_startup
            async def setup():
                await db.connect()
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the server and serve it with pounce until interrupted.

        Args:
            host: Override ``config.host``.
            port: Override ``config.port``.
        """
        from sluice.server.listen import listen

        self._ensure_frozen()
        listen(
            self,
            host if host is not None else self.config.host,
            port if port is not None else self.config.port,
            workers=self.config.workers,
            reload=self.config.reload,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes to
        the request handler. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(scope, receive, send, router=self._router)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the server at startup (before the first HTTP request),
        runs the startup and shutdown hooks, and signals completion back
        to the listener.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await _run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    await _run_hooks(self._shutdown_hooks)
                except Exception as exc:
                    logger.exception("shutdown hook failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._router.compile()
            self._frozen = True
            logger.debug("server frozen with %d route(s)", len(self._router.routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the server after it has started serving requests. "
                "Register routes and middleware before calling server.run()."
            )
            raise RuntimeError(msg)


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result
