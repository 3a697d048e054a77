"""
MCP Type Definitions

Errors raised by the n8n-MCP client and the JSON-RPC 2.0 envelope it
exchanges with the server.
"""

from dataclasses import dataclass, field
from typing import Any

JSONRPC_VERSION = "2.0"


class MCPError(Exception):
    """Base exception for n8n-MCP client errors."""


class MCPConnectionError(MCPError):
    """The server could not be reached or refused the request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class MCPTimeoutError(MCPError):
    """A JSON-RPC call did not complete in time."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Request timed out: {method}")


class MCPProtocolError(MCPError):
    """The reply is not valid JSON-RPC, or the server returned an error object."""

    def __init__(self, message: str, code: int | None = None):
        self.code = code
        super().__init__(message)


class MCPToolError(MCPError):
    """A tools/call request failed or the tool flagged its result as an error."""

    def __init__(self, tool_name: str, message: str, details: dict | None = None):
        self.tool_name = tool_name
        self.details = details or {}
        super().__init__(f"Tool '{tool_name}' failed: {message}")


@dataclass
class MCPTool:
    """A tool advertised by tools/list."""

    name: str
    description: str = ""
    required_arguments: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "MCPTool":
        schema = data.get("inputSchema") or {}
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            required_arguments=list(schema.get("required", [])),
        )


@dataclass
class JSONRPCRequest:
    """Outgoing JSON-RPC call."""

    id: int
    method: str
    params: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }


@dataclass
class JSONRPCResponse:
    """Decoded JSON-RPC reply; exactly one of result and error is meaningful."""

    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "JSONRPCResponse":
        if not isinstance(data, dict):
            raise MCPProtocolError(f"Expected a JSON-RPC object, got {type(data).__name__}")
        error = data.get("error")
        if error is not None and not isinstance(error, dict):
            raise MCPProtocolError(f"Malformed error member: {error!r}")
        if error is None and "result" not in data:
            raise MCPProtocolError("Reply has neither result nor error")
        return cls(id=data.get("id"), result=data.get("result"), error=error)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> int | None:
        return self.error.get("code") if self.error else None

    @property
    def error_message(self) -> str:
        if not self.error:
            return ""
        return self.error.get("message", "Unknown error")


@dataclass(frozen=True)
class MCPOperation:
    """A named JSON-RPC call used as a benchmark operation."""

    label: str
    method: str
    params: dict = field(default_factory=dict)
