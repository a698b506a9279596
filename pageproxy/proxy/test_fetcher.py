import httpx
import pytest

from pageproxy.proxy.fetcher import FetchError, fetch_document, merge_header_lines
from pageproxy.vars import FETCH_USER_AGENT


class TestMergeHeaderLines:
    def test_lowercases_and_trims(self):
        merged = merge_header_lines(["Content-Type:  text/html ", "X-Thing: 1"])
        assert merged == {"content-type": "text/html", "x-thing": "1"}

    def test_repeated_headers_are_comma_joined(self):
        merged = merge_header_lines(
            ["Set-Cookie: a=1", "set-cookie: b=2", "SET-COOKIE: c=3"]
        )
        assert merged == {"set-cookie": "a=1, b=2, c=3"}

    def test_status_line_is_ignored(self):
        merged = merge_header_lines(["HTTP/1.1 404 Not Found", "Server: x"])
        assert merged == {"server": "x"}

    def test_value_may_contain_colons(self):
        merged = merge_header_lines(["Location: https://example.com:8443/x"])
        assert merged == {"location": "https://example.com:8443/x"}


@pytest.mark.asyncio
async def test_fetch_captures_body_and_headers(mock_async_client):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user-agent"] = request.headers.get("user-agent")
        return httpx.Response(
            200,
            headers=[
                ("Content-Type", "text/html"),
                ("Set-Cookie", "a=1"),
                ("Set-Cookie", "b=2"),
            ],
            content=b"<html></html>",
        )

    async with mock_async_client(handler) as client:
        result = await fetch_document("https://example.com/", client=client)

    assert seen["user-agent"] == FETCH_USER_AGENT
    assert result.status_code == 200
    assert result.body == b"<html></html>"
    assert result.header_lines[0].startswith("HTTP/1.1 200")
    assert result.headers["content-type"] == "text/html"
    assert result.headers["set-cookie"] == "a=1, b=2"


@pytest.mark.asyncio
async def test_error_status_is_a_successful_fetch(mock_async_client):
    def handler(request):
        return httpx.Response(404, text="missing", headers={"Content-Type": "text/plain"})

    async with mock_async_client(handler) as client:
        result = await fetch_document("https://example.com/nope", client=client)

    assert result.status_code == 404
    assert result.body == b"missing"
    assert result.headers["content-type"] == "text/plain"


@pytest.mark.asyncio
async def test_only_fixed_user_agent_is_sent(mock_async_client):
    captured = {}

    def handler(request):
        captured.update(request.headers)
        return httpx.Response(200)

    async with mock_async_client(handler) as client:
        await fetch_document("https://example.com/", client=client)

    assert "cookie" not in captured
    assert "authorization" not in captured
    assert captured["user-agent"] == FETCH_USER_AGENT


@pytest.mark.asyncio
async def test_connect_error_becomes_fetch_error(mock_async_client):
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    async with mock_async_client(handler) as client:
        with pytest.raises(FetchError) as exc_info:
            await fetch_document("https://unreachable.invalid/", client=client)

    assert exc_info.value.message == "Name or service not known"
    assert exc_info.value.url == "https://unreachable.invalid/"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_timeout_without_message_uses_class_name(mock_async_client):
    def handler(request):
        raise httpx.ReadTimeout("", request=request)

    async with mock_async_client(handler) as client:
        with pytest.raises(FetchError) as exc_info:
            await fetch_document("https://slow.example.com/", client=client)

    assert exc_info.value.message == "ReadTimeout"
