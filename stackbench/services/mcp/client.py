"""
MCP Client Implementation

A Python client for the n8n-MCP server's HTTP transport: JSON-RPC 2.0 over
``POST /mcp`` with bearer-token authentication. Readiness of the server is
checked separately through its ``GET /health`` endpoint.

Example:
    async with httpx.AsyncClient() as http:
        client = MCPClient(http, base_url="http://localhost:3000", auth_token=token)
        await client.initialize()
        tools = await client.list_tools()
"""

import json
import logging

import httpx

from .types import (
    JSONRPCRequest,
    JSONRPCResponse,
    MCPConnectionError,
    MCPOperation,
    MCPProtocolError,
    MCPTimeoutError,
    MCPTool,
    MCPToolError,
)

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"


def _parse_body(response: httpx.Response) -> dict:
    """Decode a JSON-RPC reply sent either as JSON or as an SSE frame."""
    content_type = response.headers.get("content-type", "")
    if "text/event-stream" in content_type:
        for line in response.text.splitlines():
            if line.startswith("data: "):
                return json.loads(line[6:])
        raise MCPProtocolError("Empty event stream from MCP server")
    return response.json()


class MCPClient:
    """
    Async client for an MCP server reachable over HTTP.

    Attributes:
        base_url: Server root, e.g. ``http://localhost:3000``
        auth_token: Bearer token sent with every JSON-RPC call
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "http://localhost:3000",
        auth_token: str | None = None,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self._request_id = 0

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def request(self, method: str, params: dict | None = None) -> JSONRPCResponse:
        """
        Send a JSON-RPC request and return the decoded response.

        Raises:
            MCPTimeoutError: If the request times out.
            MCPConnectionError: If the server cannot be reached or rejects the call.
            MCPProtocolError: If the reply is not valid JSON-RPC.
        """
        self._request_id += 1
        request = JSONRPCRequest(self._request_id, method, params or {})

        try:
            response = await self.client.post(
                f"{self.base_url}{MCP_PATH}",
                json=request.to_dict(),
                headers=self.headers,
            )
        except httpx.TimeoutException as e:
            raise MCPTimeoutError(method) from e
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"Cannot reach MCP server: {e}") from e

        logger.debug(f"Sent request: {method} (id={request.id}) -> HTTP {response.status_code}")

        if response.status_code in (401, 403):
            raise MCPConnectionError(
                f"Authentication rejected (HTTP {response.status_code})", response.status_code
            )
        if not response.is_success:
            raise MCPConnectionError(f"HTTP {response.status_code} for {method}", response.status_code)

        try:
            return JSONRPCResponse.from_dict(_parse_body(response))
        except ValueError as e:
            raise MCPProtocolError(f"Invalid JSON from server: {e}") from e

    async def call(self, method: str, params: dict | None = None):
        """Send a request and return its ``result``, raising on a JSON-RPC error."""
        response = await self.request(method, params)
        if not response.success:
            if method == "tools/call" and params:
                raise MCPToolError(params.get("name", "?"), response.error_message, response.error)
            raise MCPProtocolError(f"{method} failed: {response.error_message}", response.error_code)
        return response.result

    async def initialize(self) -> dict:
        """Perform the MCP initialize handshake."""
        result = await self.call(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {
                    "name": "stackbench",
                    "version": "1.0.0",
                },
            },
        )
        logger.debug(f"MCP initialized: {result}")
        return result or {}

    async def list_tools(self) -> list[MCPTool]:
        """List all available tools from the MCP server."""
        result = await self.call("tools/list", {})
        return [MCPTool.from_dict(t) for t in (result or {}).get("tools", [])]

    async def call_tool(self, name: str, arguments: dict | None = None) -> str:
        """
        Call a tool on the MCP server.

        Returns:
            The concatenated text content of the result.

        Raises:
            MCPToolError: If the tool reports an error.
        """
        result = await self.call("tools/call", {"name": name, "arguments": arguments or {}}) or {}

        text = ""
        for item in result.get("content", []):
            if item.get("type") == "text":
                text += item.get("text", "")

        if result.get("isError", False):
            raise MCPToolError(name, text or "tool reported an error")
        return text

    async def perform(self, operation: MCPOperation):
        """Run one benchmark operation.

        Tool calls go through ``call_tool`` so a result flagged ``isError``
        counts as a failure.
        """
        if operation.method == "tools/list":
            return await self.list_tools()
        if operation.method == "tools/call":
            return await self.call_tool(operation.params["name"], operation.params.get("arguments"))
        return await self.call(operation.method, operation.params)
