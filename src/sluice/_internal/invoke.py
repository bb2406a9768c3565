"""Invoke helpers: call sync or async pipeline steps uniformly.

Middleware and controllers can be ``def`` or ``async def``. Coroutine
functions are awaited on the event loop. Plain functions run in an anyio
worker thread so a blocking lookup (database, file, remote call) does
not stall every other request on the loop.

Usage::

    from sluice._internal.invoke import invoke

    await invoke(middleware, request)
    await invoke(controller, writer, request)
"""

import functools
import inspect
from typing import Any

import anyio


def is_async_callable(obj: Any) -> bool:
    """True for coroutine functions and objects with an ``async __call__``.

    Unwraps ``functools.partial`` so partially applied coroutine functions
    are still recognised.
    """
    while isinstance(obj, functools.partial):
        obj = obj.func
    if inspect.iscoroutinefunction(obj):
        return True
    call = getattr(obj, "__call__", None)  # noqa: B004
    return inspect.iscoroutinefunction(call)


async def invoke(func: Any, *args: Any) -> Any:
    """Call *func* with *args* and return its result.

    Exceptions raised by *func* propagate unchanged, whichever side of
    the thread boundary they were raised on.
    """
    if is_async_callable(func):
        return await func(*args)

    result = await anyio.to_thread.run_sync(functools.partial(func, *args))
    if inspect.isawaitable(result):
        result = await result
    return result
