"""Tests for sluice.queue: dispatch order, error handling, observers."""

import asyncio
import math

import pytest

from sluice.errors import BadRequest, HTTPError, ResponseWriteError, Unauthorized
from sluice.http.request import Request
from sluice.http.response import ResponseWriter, send_json
from sluice.queue import Queue, select_duration_unit
from sluice.testing import make_request


def _recorder(log: list[str], name: str, exc: Exception | None = None):
    def middleware(request: Request) -> None:
        log.append(name)
        if exc is not None:
            raise exc

    return middleware


async def _ok_controller(writer: ResponseWriter, request: Request) -> None:
    send_json(writer, {"ok": True})


class TestDispatchOrder:
    async def test_middleware_run_in_registration_order(self) -> None:
        log: list[str] = []

        async def controller(writer: ResponseWriter, request: Request) -> None:
            log.append("controller")

        queue = Queue(controller, [_recorder(log, "a"), _recorder(log, "b"), _recorder(log, "c")])
        await queue.dispatch(ResponseWriter(), make_request())
        assert log == ["a", "b", "c", "controller"]

    async def test_reordering_changes_observed_order(self) -> None:
        log: list[str] = []

        async def controller(writer: ResponseWriter, request: Request) -> None:
            log.append("controller")

        queue = Queue(controller, [_recorder(log, "c"), _recorder(log, "a"), _recorder(log, "b")])
        await queue.dispatch(ResponseWriter(), make_request())
        assert log == ["c", "a", "b", "controller"]

    @pytest.mark.parametrize(("n", "k"), [(1, 1), (3, 1), (3, 2), (3, 3), (5, 4)])
    async def test_first_error_stops_the_chain(self, n: int, k: int) -> None:
        log: list[str] = []
        chain = [
            _recorder(log, f"m{i}", Unauthorized("stop") if i == k else None)
            for i in range(1, n + 1)
        ]

        async def controller(writer: ResponseWriter, request: Request) -> None:
            log.append("controller")

        writer = ResponseWriter()
        await Queue(controller, chain).dispatch(writer, make_request())

        assert log == [f"m{i}" for i in range(1, k + 1)]
        assert writer.status == 401

    async def test_unstructured_middleware_error_is_500(self) -> None:
        log: list[str] = []
        queue = Queue(_ok_controller, [_recorder(log, "a", RuntimeError("db down"))])
        writer = ResponseWriter()
        await queue.dispatch(writer, make_request())

        response = writer.to_response()
        assert response.status == 500
        assert response.json() == {"code": 500, "message": "db down"}

    async def test_no_middleware_runs_controller(self) -> None:
        writer = ResponseWriter()
        await Queue(_ok_controller).dispatch(writer, make_request())
        assert writer.to_response().json() == {"ok": True}


class TestRequestState:
    async def test_state_is_shared_with_controller(self) -> None:
        def authenticate(request: Request) -> None:
            request.state.user = "ada"

        async def load_profile(request: Request) -> None:
            request.state.profile = f"profile of {request.state.user}"

        seen: dict[str, str] = {}

        async def controller(writer: ResponseWriter, request: Request) -> None:
            seen["user"] = request.state.user
            seen["profile"] = request.state.profile

        await Queue(controller, [authenticate, load_profile]).dispatch(
            ResponseWriter(), make_request()
        )
        assert seen == {"user": "ada", "profile": "profile of ada"}

    async def test_state_is_fresh_per_request(self) -> None:
        def mark(request: Request) -> None:
            assert "marked" not in request.state
            request.state.marked = True

        queue = Queue(_ok_controller, [mark])
        for _ in range(3):
            writer = ResponseWriter()
            await queue.dispatch(writer, make_request())
            assert writer.status == 200


class TestControllerErrors:
    async def test_structured_error(self) -> None:
        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise BadRequest("x")

        writer = ResponseWriter()
        await Queue(controller).dispatch(writer, make_request())

        response = writer.to_response()
        assert response.status == 400
        assert response.body == b'{"code":400,"message":"x"}'
        assert response.content_type == "application/json"

    async def test_unstructured_error(self) -> None:
        def controller(writer: ResponseWriter, request: Request) -> None:
            raise RuntimeError("boom")

        writer = ResponseWriter()
        await Queue(controller).dispatch(writer, make_request())

        response = writer.to_response()
        assert response.status == 500
        assert response.body == b'{"code":500,"message":"boom"}'

    async def test_error_headers_are_sent(self) -> None:
        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise HTTPError(429, "slow down", headers=(("Retry-After", "30"),))

        writer = ResponseWriter()
        await Queue(controller).dispatch(writer, make_request())

        response = writer.to_response()
        assert response.status == 429
        assert response.header("retry-after") == "30"
        assert response.json() == {"code": 429, "message": "slow down"}

    async def test_repeated_dispatch_classifies_identically(self) -> None:
        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise ValueError("bad input")

        queue = Queue(controller)
        bodies = []
        for _ in range(3):
            writer = ResponseWriter()
            await queue.dispatch(writer, make_request())
            bodies.append((writer.status, writer.to_response().body))
        assert len(set(bodies)) == 1
        assert bodies[0][0] == 500

    async def test_cancellation_propagates(self) -> None:
        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise asyncio.CancelledError

        writer = ResponseWriter()
        with pytest.raises(asyncio.CancelledError):
            await Queue(controller).dispatch(writer, make_request())
        assert writer.status is None


class TestErrorLogger:
    async def test_receives_classified_error(self) -> None:
        reported: list[Exception] = []

        def controller(writer: ResponseWriter, request: Request) -> None:
            raise RuntimeError("boom")

        queue = Queue(controller, error_logger=reported.append)
        await queue.dispatch(ResponseWriter(), make_request())

        assert len(reported) == 1
        assert isinstance(reported[0], HTTPError)
        assert reported[0].code == 500
        assert reported[0].message == "boom"

    async def test_not_called_on_success(self) -> None:
        reported: list[Exception] = []
        await Queue(_ok_controller, error_logger=reported.append).dispatch(
            ResponseWriter(), make_request()
        )
        assert reported == []

    async def test_logger_failure_is_not_escalated(self) -> None:
        def broken_logger(error: Exception) -> None:
            raise OSError("disk full")

        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise BadRequest("x")

        writer = ResponseWriter()
        await Queue(controller, error_logger=broken_logger).dispatch(writer, make_request())
        assert writer.status == 400

    async def test_async_logger_is_awaited(self) -> None:
        reported: list[Exception] = []

        async def logger(error: Exception) -> None:
            reported.append(error)

        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise BadRequest("x")

        await Queue(controller, error_logger=logger).dispatch(ResponseWriter(), make_request())
        assert len(reported) == 1


class TestDoubleFault:
    async def test_write_failure_reported_to_error_logger(self) -> None:
        reported: list[Exception] = []

        async def controller(writer: ResponseWriter, request: Request) -> None:
            # NaN cannot be encoded, so writing the error body fails.
            raise HTTPError(400, math.nan)  # type: ignore[arg-type]

        queue = Queue(controller, error_logger=reported.append)
        writer = ResponseWriter()
        await queue.dispatch(writer, make_request())

        assert len(reported) == 2
        fault = reported[1]
        assert isinstance(fault, ResponseWriteError)
        assert str(fault).startswith("send_error_json(): ")
        assert isinstance(fault.__cause__, ValueError)
        # The status survives; no second write attempt.
        response = writer.to_response()
        assert response.status == 400
        assert response.body == b""

    async def test_write_failure_dropped_without_logger(self) -> None:
        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise HTTPError(400, math.nan)  # type: ignore[arg-type]

        writer = ResponseWriter()
        await Queue(controller).dispatch(writer, make_request())
        response = writer.to_response()
        assert response.status == 400
        assert response.body == b""


class TestAccessLogger:
    async def test_called_once_on_success(self) -> None:
        calls: list[tuple[Request, int, str]] = []

        def access(request: Request, duration: int, unit: str) -> None:
            calls.append((request, duration, unit))

        request = make_request("GET", "/books")
        await Queue(_ok_controller, access_logger=access).dispatch(ResponseWriter(), request)

        assert len(calls) == 1
        logged_request, duration, unit = calls[0]
        assert logged_request is request
        assert unit in {"m", "u", "n"}
        assert duration > 0

    async def test_called_once_on_error(self) -> None:
        calls: list[str] = []

        def access(request: Request, duration: int, unit: str) -> None:
            calls.append(unit)

        queue = Queue(_ok_controller, [_recorder([], "a", BadRequest("no"))], access_logger=access)
        await queue.dispatch(ResponseWriter(), make_request())
        assert len(calls) == 1

    async def test_called_once_on_cancellation(self) -> None:
        calls: list[str] = []

        def access(request: Request, duration: int, unit: str) -> None:
            calls.append(unit)

        async def controller(writer: ResponseWriter, request: Request) -> None:
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            await Queue(controller, access_logger=access).dispatch(ResponseWriter(), make_request())
        assert len(calls) == 1

    async def test_measures_elapsed_time(self) -> None:
        calls: list[tuple[int, str]] = []

        async def slow(writer: ResponseWriter, request: Request) -> None:
            await asyncio.sleep(0.02)

        def access(request: Request, duration: int, unit: str) -> None:
            calls.append((duration, unit))

        await Queue(slow, access_logger=access).dispatch(ResponseWriter(), make_request())
        duration, unit = calls[0]
        assert unit == "m"
        assert duration >= 15


class TestSelectDurationUnit:
    def test_milliseconds(self) -> None:
        assert select_duration_unit(1_500_000) == (1, "m")

    def test_microseconds(self) -> None:
        assert select_duration_unit(1_500) == (1, "u")

    def test_nanoseconds(self) -> None:
        assert select_duration_unit(999) == (999, "n")

    def test_boundaries(self) -> None:
        assert select_duration_unit(999_999) == (999, "u")
        assert select_duration_unit(1_000_000) == (1, "m")
        assert select_duration_unit(1_000) == (1, "u")

    def test_zero(self) -> None:
        assert select_duration_unit(0) == (0, "n")

    def test_truncates_toward_zero(self) -> None:
        assert select_duration_unit(-1_500_000) == (-1, "m")


class TestQueueShape:
    def test_middleware_is_frozen_copy(self) -> None:
        chain = [_recorder([], "a")]
        queue = Queue(_ok_controller, chain)
        chain.append(_recorder([], "b"))
        assert len(queue.middleware) == 1
        assert isinstance(queue.middleware, tuple)

    def test_controller_property(self) -> None:
        assert Queue(_ok_controller).controller is _ok_controller

    async def test_callable_like_dispatch(self) -> None:
        writer = ResponseWriter()
        await Queue(_ok_controller)(writer, make_request())
        assert writer.status == 200

    def test_repr(self) -> None:
        assert "middleware=0" in repr(Queue(_ok_controller))
