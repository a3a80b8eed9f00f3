"""
Unit tests for httpx mocks.

Tests cover:
- Request and response conversion
- Credential header stripping
- Recording and replaying through an AsyncClient
"""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from replaymock.errors import NoMatchingCallError
from replaymock.http import mock_httpx, request_data, response_data, response_from_data, strip_headers
from replaymock.schema import MockMode, MockOptions


def items_handler(request: httpx.Request) -> httpx.Response:
    """Transport handler standing in for a real server."""
    if request.method == "POST":
        return httpx.Response(201, json={"created": json.loads(request.content)})
    return httpx.Response(
        200,
        json={"items": [1, 2]},
        headers={"set-cookie": "session=secret", "x-request-id": "abc"},
    )


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network disabled", request=request)


class TestConversion:
    """Tests for request/response conversion."""

    def test_strip_headers(self) -> None:
        headers = httpx.Headers({"Authorization": "Bearer x", "Cookie": "a=b", "Accept": "*/*"})
        assert strip_headers(headers) == {"accept": "*/*"}

    def test_request_data(self) -> None:
        request = httpx.Request(
            "POST",
            "https://example.com/items?x=1",
            json={"name": "a"},
            headers={"Authorization": "Bearer secret"},
        )
        [data] = request_data(request, follow_redirects=True)
        assert data["method"] == "POST"
        assert data["url"] == "https://example.com/items?x=1"
        assert json.loads(data["body"]) == {"name": "a"}
        assert "secret" not in json.dumps(data)

    def test_request_data_without_body(self) -> None:
        request = httpx.Request("GET", "https://example.com/")
        assert request_data(request) == [{"method": "GET", "url": "https://example.com/"}]

    def test_response_round_trip(self) -> None:
        response = httpx.Response(
            404,
            text="missing",
            headers={"content-type": "text/plain", "set-cookie": "a=b"},
        )
        data = asyncio.run(response_data(response))
        assert data["status_code"] == 404
        assert data["body"] == "missing"
        assert "set-cookie" not in data["headers"]

        rebuilt = response_from_data(data)
        assert rebuilt.status_code == 404
        assert rebuilt.text == "missing"
        assert rebuilt.headers["content-type"] == "text/plain"


class TestMockHttpx:
    """Tests for mock_httpx()."""

    def test_record_then_replay(self, ctx, make_registry, fixture_path: Path) -> None:
        """Recorded responses are replayed without network access."""

        async def record() -> tuple[int, dict]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(items_handler)) as client:
                options = MockOptions(mode=MockMode.UPDATE)
                with mock_httpx(ctx, client, options, registry=registry) as send:
                    response = await client.get(
                        "https://example.com/items",
                        headers={"Authorization": "Bearer secret"},
                    )
                assert send.restored
                return response.status_code, response.json()

        registry = make_registry()
        assert asyncio.run(record()) == (200, {"items": [1, 2]})
        registry.flush_all()

        text = fixture_path.read_text()
        assert "secret" not in text
        assert "x-request-id" in text
        assert "t > send 1" in json.loads(text)

        async def replay() -> tuple[int, dict]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(failing_handler)) as client:
                with mock_httpx(ctx, client, registry=make_registry()):
                    response = await client.get("https://example.com/items")
                return response.status_code, response.json()

        assert asyncio.run(replay()) == (200, {"items": [1, 2]})

    def test_body_is_matched(self, ctx, make_registry) -> None:
        """Requests with a different body do not match."""

        async def record() -> None:
            async with httpx.AsyncClient(transport=httpx.MockTransport(items_handler)) as client:
                options = MockOptions(mode=MockMode.UPDATE)
                with mock_httpx(ctx, client, options, registry=registry):
                    response = await client.post("https://example.com/items", json={"n": 1})
                    assert response.status_code == 201

        registry = make_registry()
        asyncio.run(record())
        registry.flush_all()

        async def replay() -> None:
            async with httpx.AsyncClient(transport=httpx.MockTransport(failing_handler)) as client:
                send = mock_httpx(ctx, client, registry=make_registry())
                with pytest.raises(NoMatchingCallError):
                    await client.post("https://example.com/items", json={"n": 2})
                send.restore()

        asyncio.run(replay())

    def test_responses_carry_their_request(self, ctx, make_registry) -> None:
        """Recorded and replayed responses support raise_for_status and url."""
        url = "https://example.com/missing"

        def not_found(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="missing")

        async def fetch(handler, registry, options=None) -> httpx.Response:
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                with mock_httpx(ctx, client, options, registry=registry):
                    response = await client.get(url)
            assert response.url == url
            assert response.request.method == "GET"
            with pytest.raises(httpx.HTTPStatusError):
                response.raise_for_status()
            return response

        registry = make_registry()
        recorded = asyncio.run(fetch(not_found, registry, MockOptions(mode=MockMode.UPDATE)))
        registry.flush_all()
        replayed = asyncio.run(fetch(failing_handler, make_registry()))

        assert recorded.status_code == replayed.status_code == 404
        assert replayed.text == "missing"
