"""Tests for perch.http.request — the immutable request and its body access."""

from decimal import Decimal
from typing import Any

import pytest

from perch.http.request import Request


def _request(
    *,
    method: str = "POST",
    path: str = "/photos",
    query_string: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    chunks: list[bytes] | None = None,
) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": headers or [],
        "query_string": query_string,
        "http_version": "1.1",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 1234),
    }
    pending = list(chunks or [b""])

    async def receive() -> dict[str, Any]:
        body = pending.pop(0)
        return {"type": "http.request", "body": body, "more_body": bool(pending)}

    return Request.from_asgi(scope, receive)


class TestMetadata:
    def test_from_asgi(self) -> None:
        request = _request(query_string=b"a=1")
        assert request.method == "POST"
        assert request.path == "/photos"
        assert request.query["a"] == "1"
        assert request.server == ("testserver", 80)
        assert request.client == ("127.0.0.1", 1234)
        assert request.http_version == "1.1"

    def test_url(self) -> None:
        assert _request(query_string=b"a=1&b=2").url == "/photos?a=1&b=2"
        assert _request().url == "/photos"

    def test_content_headers(self) -> None:
        request = _request(
            headers=[(b"content-type", b"application/json"), (b"content-length", b"12")]
        )
        assert request.content_type == "application/json"
        assert request.content_length == 12

    def test_bad_content_length(self) -> None:
        assert _request(headers=[(b"content-length", b"lots")]).content_length is None
        assert _request().content_length is None

    def test_frozen(self) -> None:
        request = _request()
        with pytest.raises(AttributeError):
            request.path = "/other"  # type: ignore[misc]


class TestBody:
    async def test_chunks_joined_and_cached(self) -> None:
        request = _request(chunks=[b"hello ", b"world"])
        assert await request.body() == b"hello world"
        assert await request.body() == b"hello world"

    async def test_json_uses_decimal(self) -> None:
        request = _request(chunks=[b'{"price": 9.99, "count": 3}'])
        assert await request.json() == {"price": Decimal("9.99"), "count": 3}

    async def test_form(self) -> None:
        request = _request(
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
            chunks=[b"name=adam"],
        )
        form = await request.form()
        assert form["name"] == "adam"
        assert await request.form() is form

    async def test_form_ignores_other_content_types(self) -> None:
        request = _request(
            headers=[(b"content-type", b"application/json")],
            chunks=[b'{"name": "adam"}'],
        )
        assert len(await request.form()) == 0
