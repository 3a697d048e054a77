"""
MCP (Model Context Protocol) Module

HTTP JSON-RPC client for the n8n-MCP tool server.

Usage:
    from stackbench.services.mcp import MCPClient

    client = MCPClient(http_client, base_url="http://localhost:3000", auth_token=token)
    tools = await client.list_tools()
"""

from .client import MCPClient
from .types import (
    JSONRPCRequest,
    JSONRPCResponse,
    MCPConnectionError,
    MCPError,
    MCPOperation,
    MCPProtocolError,
    MCPTimeoutError,
    MCPTool,
    MCPToolError,
)

__all__ = [
    # Client
    "MCPClient",
    # Types
    "MCPError",
    "MCPConnectionError",
    "MCPProtocolError",
    "MCPToolError",
    "MCPTimeoutError",
    "MCPTool",
    "MCPOperation",
    "JSONRPCRequest",
    "JSONRPCResponse",
]
