"""
Record and replay mocks for httpx clients.

mock_httpx() mocks AsyncClient.send, the method every request helper of an
httpx.AsyncClient (get, post, request, ...) goes through. Requests are
matched on method, URL and body. Responses are stored with their status,
headers and text body, and rebuilt as httpx.Response objects on replay.

Credentials never reach fixture files: Authorization and Cookie request
headers are not stored, and Set-Cookie response headers are dropped.

Example:
    async with httpx.AsyncClient() as client:
        with mock_httpx(context, client) as send:
            response = await client.get("https://example.com/api")
            assert response.status_code == 200
"""

from typing import Any

import httpx

from replaymock.mock import MockedFunction
from replaymock.registry import MockRegistry, default_registry
from replaymock.schema import Conversion, MockOptions, TestContext

# Headers that carry credentials
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "proxy-authorization"})


def strip_headers(headers: httpx.Headers) -> dict[str, str]:
    """Headers as a plain dict, without credential headers."""
    return {
        key.lower(): value
        for key, value in headers.items()
        if key.lower() not in SENSITIVE_HEADERS
    }


def request_data(request: httpx.Request, **kwargs: Any) -> list[Any]:
    """
    Stored input of a send() call.

    Only the method, URL and body identify a request. Send options such as
    follow_redirects do not change which response is expected.
    """
    data: dict[str, Any] = {
        "method": request.method,
        "url": str(request.url),
    }
    body = request.read()
    if body:
        data["body"] = body.decode("utf-8", errors="replace")
    return [data]


async def response_data(response: httpx.Response) -> dict[str, Any]:
    """Stored output of a send() call."""
    await response.aread()
    data: dict[str, Any] = {
        "status_code": response.status_code,
        "headers": strip_headers(response.headers),
    }
    if response.content:
        data["body"] = response.text
    return data


def response_from_data(data: Any) -> httpx.Response:
    """Rebuild a response from its stored form."""
    if isinstance(data, httpx.Response):
        return data
    headers = {
        key: value
        for key, value in data.get("headers", {}).items()
        if key not in ("content-encoding", "transfer-encoding", "content-length")
    }
    return httpx.Response(
        status_code=data["status_code"],
        headers=headers,
        content=data.get("body", "").encode("utf-8"),
    )


class HttpxMockedFunction(MockedFunction):
    """MockedFunction for AsyncClient.send that ties responses to their request."""

    async def __call__(self, request: httpx.Request, *args: Any, **kwargs: Any) -> Any:
        response = await super().__call__(request, *args, **kwargs)
        if isinstance(response, httpx.Response):
            response.request = request
        return response


HTTPX_CONVERSION = Conversion(
    input_convert=request_data,
    output_convert=response_data,
    output_revert=response_from_data,
)


def mock_httpx(
    context: TestContext,
    client: httpx.AsyncClient,
    options: MockOptions | None = None,
    *,
    registry: MockRegistry | None = None,
) -> HttpxMockedFunction:
    """
    Mock the send method of an httpx.AsyncClient.

    Args:
        context: Test the mock is created in
        client: Client whose requests are recorded or replayed
        options: Mock options; a conversion given here replaces the
            default request/response conversion
        registry: Registry to use (defaults to the process registry)

    Returns:
        The installed HttpxMockedFunction; responses it returns carry the
        request they answer
    """
    options = options or MockOptions()
    if options.conversion is None:
        options = MockOptions(
            dir=options.dir,
            mode=options.mode,
            name=options.name,
            path=options.path,
            conversion=HTTPX_CONVERSION,
        )
    return HttpxMockedFunction(
        context,
        client,
        "send",
        options,
        registry if registry is not None else default_registry(),
    )
