"""Tests for sluice.group: fluent registration and middleware isolation."""

import pytest

from sluice.app import Server
from sluice.group import Group
from sluice.http.request import Request
from sluice.http.response import ResponseWriter, send_json
from sluice.testing import TestClient


def _tag(log: list[str], name: str):
    def middleware(request: Request) -> None:
        log.append(name)

    middleware.__name__ = name
    return middleware


async def _echo_method(writer: ResponseWriter, request: Request) -> None:
    send_json(writer, {"method": request.method})


class TestGroupMiddlewareIsolation:
    async def test_method_only_middleware_does_not_leak(self) -> None:
        log: list[str] = []
        server = Server()
        server.group("/books").get(_echo_method, _tag(log, "extra")).post(_echo_method)

        async with TestClient(server) as client:
            await client.get("/books")
            assert log == ["extra"]
            log.clear()
            await client.post("/books")
            assert log == []

    def test_method_call_does_not_mutate_group_chain(self) -> None:
        server = Server()
        shared = _tag([], "shared")
        group = server.group("/books", shared)
        group.get(_echo_method, _tag([], "extra"))
        assert group.chain == (shared,)

    def test_middleware_call_appends(self) -> None:
        server = Server()
        a, b = _tag([], "a"), _tag([], "b")
        group = server.group("/books", a)
        assert group.middleware(b) is group
        assert group.chain == (a, b)

    async def test_group_middleware_runs_before_method_only(self) -> None:
        log: list[str] = []
        server = Server(None, _tag(log, "global"))
        (
            server.group("/books", _tag(log, "group"))
            .middleware(_tag(log, "group2"))
            .put(_echo_method, _tag(log, "method"))
        )

        async with TestClient(server) as client:
            await client.put("/books")
        assert log == ["global", "group", "group2", "method"]

    async def test_middleware_added_later_only_affects_later_methods(self) -> None:
        log: list[str] = []
        server = Server()
        group = server.group("/books")
        group.get(_echo_method)
        group.middleware(_tag(log, "late")).delete(_echo_method)

        async with TestClient(server) as client:
            await client.get("/books")
            assert log == []
            await client.delete("/books")
            assert log == ["late"]


class TestGroupRegistration:
    def test_returns_group_for_chaining(self) -> None:
        server = Server()
        group = server.group("/items")
        assert group.get(_echo_method) is group
        assert group.post(_echo_method) is group
        assert group.put(_echo_method) is group
        assert group.patch(_echo_method) is group
        assert group.delete(_echo_method) is group

    def test_all_methods_registered_on_group_path(self) -> None:
        server = Server()
        (
            server.group("/items")
            .get(_echo_method)
            .post(_echo_method)
            .put(_echo_method)
            .patch(_echo_method)
            .delete(_echo_method)
        )
        routes = server.router.routes
        assert {r.method for r in routes} == {"GET", "POST", "PUT", "PATCH", "DELETE"}
        assert {r.path for r in routes} == {"/items"}

    def test_path_property(self) -> None:
        assert Server().group("/items").path == "/items"

    def test_is_group(self) -> None:
        assert isinstance(Server().group("/x"), Group)

    def test_middleware_after_freeze_rejected(self) -> None:
        server = Server()
        group = server.group("/items")
        server._ensure_frozen()
        with pytest.raises(RuntimeError, match="Cannot modify the server"):
            group.middleware(_tag([], "late"))

    def test_repr(self) -> None:
        assert repr(Server().group("/items", _tag([], "a"))) == "<Group '/items' middleware=1>"
