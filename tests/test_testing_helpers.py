"""Tests for perch.testing — the async test client and request helpers."""

import pytest

from perch.app import App
from perch.context import Context
from perch.testing import TestClient, name_values


def _echo_app() -> App:
    app = App()

    @app.resource
    class Echo:
        def Get(self, ctx: Context) -> None:
            ctx.data = {
                "method": ctx.request.method,
                "query": ctx.request.query.raw.decode(),
                "agent": ctx.request.headers.get("user-agent"),
            }

        def Post(self, ctx: Context) -> None:
            ctx.data = {
                "type": ctx.request.content_type,
                "length": ctx.request.content_length,
                "name": ctx.finder.find_string("name").value,
            }

        def Put(self, ctx: Context) -> None:
            ctx.data = "put"

        def Patch(self, ctx: Context) -> None:
            ctx.data = "patch"

        def Delete(self, ctx: Context) -> None:
            ctx.data = "delete"

    return app


class TestNameValues:
    def test_pairs(self) -> None:
        assert name_values("name", "adam", "age", 30) == {"name": "adam", "age": "30"}

    def test_bytes_decoded(self) -> None:
        assert name_values(b"name", b"caf\xc3\xa9") == {"name": "café"}

    def test_last_value_wins(self) -> None:
        assert name_values("a", 1, "a", 2) == {"a": "2"}

    def test_empty(self) -> None:
        assert name_values() == {}

    def test_odd_count(self) -> None:
        with pytest.raises(ValueError, match="even"):
            name_values("name")


class TestTestClient:
    def test_not_collected(self) -> None:
        assert TestClient.__test__ is False

    async def test_query_merging(self) -> None:
        async with TestClient(_echo_app()) as client:
            response = await client.get("/echo?a=1", query={"b": "2"})
        assert response.json["data"]["query"] == "a=1&b=2"

    async def test_headers(self) -> None:
        async with TestClient(_echo_app()) as client:
            response = await client.get("/echo", headers={"User-Agent": "tests"})
        assert response.json["data"]["agent"] == "tests"

    async def test_json_body(self) -> None:
        async with TestClient(_echo_app()) as client:
            response = await client.post("/echo", json={"name": "adam"})
        assert response.json["data"] == {
            "type": "application/json",
            "length": len(b'{"name": "adam"}'),
            "name": "adam",
        }

    async def test_form_body(self) -> None:
        async with TestClient(_echo_app()) as client:
            response = await client.post("/echo", form=name_values("name", "eve"))
        data = response.json["data"]
        assert data["type"] == "application/x-www-form-urlencoded"
        assert data["name"] == "eve"

    async def test_raw_body_with_header_override(self) -> None:
        async with TestClient(_echo_app()) as client:
            response = await client.post(
                "/echo", json={"name": "x"}, headers={"content-type": "text/plain"}
            )
        assert response.json["data"]["type"] == "text/plain"
        assert response.json["data"]["name"] == ""

    async def test_verbs(self) -> None:
        async with TestClient(_echo_app()) as client:
            assert (await client.put("/echo")).json["data"] == "put"
            assert (await client.patch("/echo")).json["data"] == "patch"
            assert (await client.delete("/echo")).json["data"] == "delete"
