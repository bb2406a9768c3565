"""Tests for sluice._internal.invoke: uniform sync/async calls."""

import functools
import threading

import pytest

from sluice._internal.invoke import invoke, is_async_callable


async def async_fn(x: int) -> int:
    return x + 1


def sync_fn(x: int) -> int:
    return x + 1


class AsyncCallable:
    async def __call__(self, x: int) -> int:
        return x * 2


class SyncCallable:
    def __call__(self, x: int) -> int:
        return x * 3


class TestIsAsyncCallable:
    def test_coroutine_function(self) -> None:
        assert is_async_callable(async_fn)

    def test_plain_function(self) -> None:
        assert not is_async_callable(sync_fn)

    def test_async_call_object(self) -> None:
        assert is_async_callable(AsyncCallable())

    def test_sync_call_object(self) -> None:
        assert not is_async_callable(SyncCallable())

    def test_partial_of_coroutine_function(self) -> None:
        assert is_async_callable(functools.partial(async_fn, 1))


class TestInvoke:
    async def test_async(self) -> None:
        assert await invoke(async_fn, 1) == 2

    async def test_sync(self) -> None:
        assert await invoke(sync_fn, 1) == 2

    async def test_callable_objects(self) -> None:
        assert await invoke(AsyncCallable(), 2) == 4
        assert await invoke(SyncCallable(), 2) == 6

    async def test_sync_runs_off_the_event_loop_thread(self) -> None:
        loop_thread = threading.get_ident()
        worker_thread = await invoke(threading.get_ident)
        assert worker_thread != loop_thread

    async def test_sync_returning_awaitable_is_awaited(self) -> None:
        def factory() -> object:
            return async_fn(4)

        assert await invoke(factory) == 5

    async def test_exception_propagates_from_thread(self) -> None:
        def fail() -> None:
            raise KeyError("missing")

        with pytest.raises(KeyError, match="missing"):
            await invoke(fail)
