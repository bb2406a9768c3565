"""Middleware and Handler protocols.

A middleware is any callable matching one of::

    def check(request: Request) -> None: ...
    async def check(request: Request) -> None: ...

It permits the request by returning and aborts it by raising, usually
an ``HTTPError`` such as ``Unauthorized``. The return value is ignored.
Middleware may attach derived data to ``request.state`` for everything
that runs after it.

A handler (the controller) is any callable matching::

    async def handler(writer: ResponseWriter, request: Request) -> None: ...

No base class required. The framework checks the shape, not the lineage.
"""

from collections.abc import Awaitable
from typing import Protocol

from sluice.http.request import Request
from sluice.http.response import ResponseWriter


class Middleware(Protocol):
    """Protocol for sluice middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def require_api_key(request: Request) -> None:
            if request.headers.get("x-api-key") != API_KEY:
                raise Unauthorized("Invalid API key")

        # Class middleware
        class LoadAccount:
            async def __call__(self, request: Request) -> None:
                request.state.account = await accounts.get(request.path_params["id"])
    """

    def __call__(self, request: Request) -> Awaitable[None] | None: ...


class Handler(Protocol):
    """Protocol for the terminal controller of a route."""

    def __call__(self, writer: ResponseWriter, request: Request) -> Awaitable[None] | None: ...
