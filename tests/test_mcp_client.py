"""
Tests for the n8n-MCP JSON-RPC client.
"""
import json

import httpx
import pytest
from httpx import AsyncClient

from stackbench.services.mcp import (
    MCPClient,
    MCPConnectionError,
    MCPOperation,
    MCPProtocolError,
    MCPTimeoutError,
    MCPToolError,
)

from conftest import BASE_URL, TEST_TOKEN


@pytest.fixture
def mcp(stack_client) -> MCPClient:
    return MCPClient(stack_client, base_url=BASE_URL, auth_token=TEST_TOKEN)


class TestMCPClient:
    """Test JSON-RPC calls against the fake server."""

    @pytest.mark.asyncio
    async def test_initialize(self, mcp, fake_stack):
        result = await mcp.initialize()

        assert result["serverInfo"]["name"] == "fake-mcp"
        assert fake_stack.state.mcp_calls == ["initialize"]

    @pytest.mark.asyncio
    async def test_list_tools(self, mcp):
        tools = await mcp.list_tools()

        assert [t.name for t in tools] == ["search_nodes"]
        assert tools[0].required_arguments == ["query"]

    @pytest.mark.asyncio
    async def test_call_tool_returns_text(self, mcp):
        assert await mcp.call_tool("search_nodes", {"query": "http"}) == "found 3 nodes"

    @pytest.mark.asyncio
    async def test_tool_error_flag(self, mcp):
        with pytest.raises(MCPToolError) as exc_info:
            await mcp.call_tool("broken_tool")

        assert exc_info.value.tool_name == "broken_tool"
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unknown_tool_is_tool_error(self, mcp):
        with pytest.raises(MCPToolError):
            await mcp.call_tool("no_such_tool")

    @pytest.mark.asyncio
    async def test_unknown_method_is_protocol_error(self, mcp):
        with pytest.raises(MCPProtocolError) as exc_info:
            await mcp.call("resources/list")

        assert exc_info.value.code == -32601

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, mcp):
        first = await mcp.request("tools/list", {})
        second = await mcp.request("tools/list", {})

        assert second.id == first.id + 1

    @pytest.mark.asyncio
    async def test_wrong_token_rejected(self, stack_client):
        client = MCPClient(stack_client, base_url=BASE_URL, auth_token="wrong")

        with pytest.raises(MCPConnectionError) as exc_info:
            await client.list_tools()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_perform_list_operation(self, mcp):
        tools = await mcp.perform(MCPOperation("List tools", "tools/list"))

        assert [t.name for t in tools] == ["search_nodes"]

    @pytest.mark.asyncio
    async def test_perform_tool_call(self, mcp):
        op = MCPOperation("Search nodes", "tools/call", {"name": "search_nodes", "arguments": {"query": "slack"}})

        assert await mcp.perform(op) == "found 3 nodes"

    @pytest.mark.asyncio
    async def test_perform_tool_flagged_error_fails(self, mcp):
        op = MCPOperation("Broken", "tools/call", {"name": "broken_tool", "arguments": {}})

        with pytest.raises(MCPToolError):
            await mcp.perform(op)

    @pytest.mark.asyncio
    async def test_perform_other_method(self, mcp):
        result = await mcp.perform(MCPOperation("Initialize", "initialize", {"protocolVersion": "2024-11-05"}))

        assert result["serverInfo"]["name"] == "fake-mcp"


class TestTransportErrors:
    """Test mapping of transport-level failures."""

    @staticmethod
    def client_for(handler) -> AsyncClient:
        return AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)

    @pytest.mark.asyncio
    async def test_event_stream_reply(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            payload = {"jsonrpc": "2.0", "id": body["id"], "result": {"tools": []}}
            return httpx.Response(
                200,
                text=f"event: message\ndata: {json.dumps(payload)}\n\n",
                headers={"content-type": "text/event-stream"},
            )

        async with self.client_for(handler) as http:
            assert await MCPClient(http, BASE_URL, TEST_TOKEN).list_tools() == []

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        async with self.client_for(handler) as http:
            with pytest.raises(MCPProtocolError):
                await MCPClient(http, BASE_URL, TEST_TOKEN).list_tools()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with self.client_for(handler) as http:
            with pytest.raises(MCPTimeoutError):
                await MCPClient(http, BASE_URL, TEST_TOKEN).list_tools()

    @pytest.mark.asyncio
    async def test_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal error")

        async with self.client_for(handler) as http:
            with pytest.raises(MCPConnectionError):
                await MCPClient(http, BASE_URL, TEST_TOKEN).initialize()

    @pytest.mark.asyncio
    async def test_reply_without_result_or_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1})

        async with self.client_for(handler) as http:
            with pytest.raises(MCPProtocolError, match="neither result nor error"):
                await MCPClient(http, BASE_URL, TEST_TOKEN).list_tools()

    @pytest.mark.asyncio
    async def test_reply_that_is_not_an_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        async with self.client_for(handler) as http:
            with pytest.raises(MCPProtocolError):
                await MCPClient(http, BASE_URL, TEST_TOKEN).list_tools()
