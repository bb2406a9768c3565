"""Immutable HTTP request with a mutable per-request scope.

Request metadata is frozen at creation. Data derived by middleware (an
authenticated identity, a decoded body) goes on ``request.state``, which
is created once per request and shared by reference with every
middleware and the controller.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from sluice._internal.types import Receive, Scope
from sluice.errors import HTTPError
from sluice.http.headers import Headers


def _too_large(limit: int) -> HTTPError:
    return HTTPError(413, f"request body exceeds {limit} bytes")


class State:
    """A mutable namespace scoped to one request.

    Usage::

        # In middleware
        request.state.user = user

        # In the controller
        name = request.state.user.name
    """

    __slots__ = ("_data",)

    def __init__(self, **initial: Any) -> None:
        object.__setattr__(self, "_data", dict(initial))

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            msg = f"request state has no attribute {name!r}"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data[name]
        except KeyError:
            msg = f"request state has no attribute {name!r}"
            raise AttributeError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, name: str, default: Any = None) -> Any:
        """Get an attribute with a default value."""
        return self._data.get(name, default)

    def __repr__(self) -> str:
        return f"<State {self._data!r}>"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Body is read asynchronously via ``.body()``, ``.json()`` or
    ``.text()`` and cached, so middleware and controller can both read it.
    """

    method: str
    path: str
    headers: Headers
    query_string: bytes
    path_params: Mapping[str, str]
    http_version: str
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    state: State = field(default_factory=State, repr=False, compare=False)

    # Private: body cache, shared between copies made by with_path_params()
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def media_type(self) -> str:
        """The Content-Type without parameters, lower-cased (``""`` if absent)."""
        return (self.content_type or "").split(";", 1)[0].strip().lower()

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def body(self, limit: int | None = None) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.

        With *limit*, a body larger than *limit* bytes raises a 413
        ``HTTPError``, checked against Content-Length before reading and
        against the bytes actually received while streaming.
        """
        if "_body" in self._cache:
            result = self._cache["_body"]
            if limit is not None and len(result) > limit:
                raise _too_large(limit)
            return result

        if limit is not None:
            declared = self.content_length
            if declared is not None and declared > limit:
                raise _too_large(limit)

        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if limit is not None and size > limit:
                raise _too_large(limit)
            chunks.append(chunk)
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes, None]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON, without checking the Content-Type."""
        return json_module.loads(await self.body())

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Copies --

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        """Return a copy bound to the router's path parameters.

        The copy shares ``state`` and the body cache with the original.
        """
        return replace(self, path_params=dict(path_params))

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        path_params: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b""),
            path_params=dict(path_params or {}),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
