"""
Tests for tunnelchat Tunnel Client

Tests cover:
- Service and tool discovery
- Tool calls and envelope unwrapping
- Error bodies and status codes
- Authentication
- Health checks
"""

import json

import httpx
import pytest

from tunnelchat.errors import TunnelError
from tunnelchat.tunnel import ServerHealth, TunnelClient


BASE = "https://tunnel.test"


def make_client(handler, token="tok", **kwargs) -> TunnelClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TunnelClient(server_key="key1", base_url=BASE, token=token, http_client=http, **kwargs)


def mcp_text(text: str) -> dict:
    return {"success": True, "result": {"content": [{"type": "text", "text": text}]}}


# =============================================================================
# Discovery
# =============================================================================


class TestDiscovery:

    @pytest.mark.asyncio
    async def test_list_services(self):
        def handler(request):
            assert request.method == "GET"
            assert str(request.url) == f"{BASE}/t/key1/"
            assert request.headers["Authorization"] == "Bearer tok"
            return httpx.Response(200, json={
                "success": True,
                "servers": [
                    {"name": "filesystem", "description": "Files", "status": "active",
                     "endpoints": {"tools": "/tools", "call": "/tools/call"}},
                    {"name": "gmail", "description": "Mail", "status": "inactive"},
                ],
                "totalServers": 2,
            })

        client = make_client(handler)
        services = await client.list_services()

        assert [s.name for s in services] == ["filesystem", "gmail"]
        assert services[0].is_active and not services[1].is_active
        assert services[0].endpoints["call"] == "/tools/call"

    @pytest.mark.asyncio
    async def test_list_services_bad_body(self):
        client = make_client(lambda r: httpx.Response(200, json={"success": False}))
        with pytest.raises(TunnelError, match="Invalid response format"):
            await client.list_services()

    @pytest.mark.asyncio
    async def test_list_tools(self):
        tools = [{"name": "fs_read_file", "description": "Read", "inputSchema": {"type": "object"}}]

        def handler(request):
            assert str(request.url) == f"{BASE}/t/key1/filesystem/tools"
            return httpx.Response(200, json=tools)

        client = make_client(handler)
        assert await client.list_tools("filesystem") == tools

    @pytest.mark.asyncio
    async def test_list_tools_requires_array(self):
        client = make_client(lambda r: httpx.Response(200, json={"tools": []}))
        with pytest.raises(TunnelError, match="expected array of tools"):
            await client.list_tools("filesystem")

    @pytest.mark.asyncio
    async def test_list_tools_http_error(self):
        client = make_client(lambda r: httpx.Response(404, json={"message": "Service not found"}))
        with pytest.raises(TunnelError, match="Service not found") as exc_info:
            await client.list_tools("nope")
        assert exc_info.value.status_code == 404


# =============================================================================
# Tool calls
# =============================================================================


class TestCallTool:

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=mcp_text('{"files": ["a.txt"]}'))

        client = make_client(handler)
        result = await client.call_tool("filesystem", "fs_list", {"path": "/"})

        assert seen == {
            "url": f"{BASE}/t/key1/filesystem/tools/call",
            "method": "POST",
            "body": {"tool": "fs_list", "arguments": {"path": "/"}},
            "auth": "Bearer tok",
        }
        assert result == {"content": {"files": ["a.txt"]}}

    @pytest.mark.asyncio
    async def test_plain_text_result(self):
        client = make_client(lambda r: httpx.Response(200, json=mcp_text("File uploaded successfully to: /x")))
        result = await client.call_tool("filesystem", "fs_upload_file", {})
        assert result == {"content": "File uploaded successfully to: /x"}

    @pytest.mark.asyncio
    async def test_download_result_untouched(self):
        body = mcp_text("File downloaded: report.pdf\n{base64...}")
        client = make_client(lambda r: httpx.Response(200, json=body))
        result = await client.call_tool("filesystem", "fs_download_file", {})
        assert result == body["result"]

    @pytest.mark.asyncio
    async def test_unwrapped_body_returned_as_is(self):
        client = make_client(lambda r: httpx.Response(200, json={"success": True, "result": {"id": 7}}))
        assert await client.call_tool("s", "t", {}) == {"id": 7}

    @pytest.mark.asyncio
    async def test_failure_body_raises(self):
        client = make_client(lambda r: httpx.Response(200, json={"success": False, "error": "Quota exceeded"}))
        with pytest.raises(TunnelError, match="Quota exceeded"):
            await client.call_tool("s", "t", {})

    @pytest.mark.parametrize("body,expected", [
        ({"message": "Bad args"}, "Bad args"),
        ({"error": "Server exploded"}, "Server exploded"),
        ({}, "HTTP 500"),
    ])
    @pytest.mark.asyncio
    async def test_error_status_message(self, body, expected):
        client = make_client(lambda r: httpx.Response(500, json=body))
        with pytest.raises(TunnelError) as exc_info:
            await client.call_tool("s", "t", {})
        assert str(exc_info.value) == expected
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        client = make_client(lambda r: httpx.Response(502, text="<html>Bad gateway</html>"))
        with pytest.raises(TunnelError, match="HTTP 502"):
            await client.call_tool("s", "t", {})

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = make_client(handler)
        with pytest.raises(TunnelError, match="connection refused"):
            await client.call_tool("s", "t", {})


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token(self):
        calls = []
        client = make_client(lambda r: calls.append(r) or httpx.Response(200, json=[]), token=None)

        with pytest.raises(TunnelError, match="Not authenticated"):
            await client.list_tools("filesystem")
        assert calls == []

    @pytest.mark.asyncio
    async def test_token_provider_used_per_request(self):
        tokens = iter(["first", "second"])
        seen = []

        def handler(request):
            seen.append(request.headers["Authorization"])
            return httpx.Response(200, json=[])

        client = make_client(handler, token=None, token_provider=lambda: next(tokens))
        await client.list_tools("a")
        await client.list_tools("b")

        assert seen == ["Bearer first", "Bearer second"]


# =============================================================================
# Health
# =============================================================================


class TestPing:

    @pytest.mark.asyncio
    async def test_online(self):
        def handler(request):
            assert str(request.url) == f"{BASE}/t/key1/ping"
            return httpx.Response(200, json={"ok": True})

        assert await make_client(handler).ping() == ServerHealth(online=True)

    @pytest.mark.asyncio
    async def test_http_error(self):
        health = await make_client(lambda r: httpx.Response(503)).ping()
        assert health == ServerHealth(online=False, error="HTTP 503")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        health = await make_client(handler).ping()
        assert health == ServerHealth(online=False, error="Timeout")

    @pytest.mark.asyncio
    async def test_not_authenticated(self):
        health = await make_client(lambda r: httpx.Response(200), token=None).ping()
        assert health == ServerHealth(online=False, error="Not authenticated")


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        client = TunnelClient(server_key="k", base_url=BASE, token="t", http_client=http)

        await client.aclose()

        assert not http.is_closed
        await http.aclose()
