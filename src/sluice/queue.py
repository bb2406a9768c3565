"""Queue: the per-route request pipeline.

One ``Queue`` is built for every registered (method, path) pair at bind
time. It holds the route's controller, its frozen middleware chain, and
the two observers from ``Config``. Dispatch is a plain loop over the
chain, not nested closures, so "stop at the first error" is a ``break``
you can read rather than a property of how wrappers return.

Request errors surface as exceptions. Whatever a middleware or the
controller raises is classified (``to_http_error``), reported to the
error logger, and written to the client as::

    {"code": 404, "message": "no such book"}

Only ``Exception`` subclasses count as request errors. Cancellation and
interpreter exits propagate to the serving infrastructure untouched.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from sluice._internal.invoke import invoke
from sluice.config import AccessLogger, ErrorLogger
from sluice.errors import HTTPError, ResponseWriteError, to_http_error
from sluice.http.request import Request
from sluice.http.response import ResponseWriter, send_error_json

logger = logging.getLogger("sluice.queue")

_NS_PER_MS = 1_000_000
_NS_PER_US = 1_000


def _truncate(value: int, divisor: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def select_duration_unit(elapsed_ns: int) -> tuple[int, str]:
    """Pick the largest unit whose whole count is non-zero.

    >>> select_duration_unit(1_500_000)
    (1, 'm')
    >>> select_duration_unit(1_500)
    (1, 'u')
    >>> select_duration_unit(999)
    (999, 'n')
    """
    millis = _truncate(elapsed_ns, _NS_PER_MS)
    if millis != 0:
        return millis, "m"
    micros = _truncate(elapsed_ns, _NS_PER_US)
    if micros != 0:
        return micros, "u"
    return elapsed_ns, "n"


class Queue:
    """A controller plus its ordered middleware chain.

    Read-only after construction; one instance serves every request for
    its route, concurrently. Nothing per-request is stored on it.

    Usage::

        queue = Queue(show_book, [require_token, load_account])
        await queue.dispatch(writer, request)
    """

    __slots__ = ("_access_logger", "_controller", "_error_logger", "_middleware")

    def __init__(
        self,
        controller: Callable[..., Any],
        middleware: Iterable[Callable[..., Any]] = (),
        *,
        error_logger: ErrorLogger | None = None,
        access_logger: AccessLogger | None = None,
    ) -> None:
        self._controller = controller
        self._middleware: tuple[Callable[..., Any], ...] = tuple(middleware)
        self._error_logger = error_logger
        self._access_logger = access_logger

    @property
    def controller(self) -> Callable[..., Any]:
        return self._controller

    @property
    def middleware(self) -> tuple[Callable[..., Any], ...]:
        """The frozen chain, global middleware first."""
        return self._middleware

    async def dispatch(self, writer: ResponseWriter, request: Request) -> None:
        """Run the chain, then the controller, writing an error response on failure."""
        start = time.perf_counter_ns() if self._access_logger is not None else 0
        try:
            try:
                for middleware in self._middleware:
                    await invoke(middleware, request)
                await invoke(self._controller, writer, request)
            except Exception as exc:
                await self._handle_error(writer, exc)
        finally:
            if self._access_logger is not None:
                await self._log_access(request, time.perf_counter_ns() - start)

    __call__ = dispatch

    async def _handle_error(self, writer: ResponseWriter, exc: Exception) -> None:
        error = to_http_error(exc)
        if isinstance(exc, HTTPError):
            logger.debug("request failed: %s", error)
        else:
            logger.error("unhandled error in pipeline: %s", error, exc_info=exc)

        await self._report(error)

        try:
            send_error_json(writer, error)
        except Exception as write_exc:
            fault = ResponseWriteError(f"send_error_json(): {write_exc}")
            fault.__cause__ = write_exc
            if self._error_logger is None:
                logger.debug("dropped error response failure: %s", fault)
                return
            await self._report(fault)

    async def _report(self, error: Exception) -> None:
        if self._error_logger is None:
            return
        try:
            result = self._error_logger(error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("error logger failed while reporting %r", error)

    async def _log_access(self, request: Request, elapsed_ns: int) -> None:
        duration, unit = select_duration_unit(elapsed_ns)
        try:
            result = self._access_logger(request, duration, unit)  # type: ignore[misc]
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("access logger failed for %s %s", request.method, request.path)

    def __repr__(self) -> str:
        name = getattr(self._controller, "__qualname__", repr(self._controller))
        return f"<Queue {name} middleware={len(self._middleware)}>"
