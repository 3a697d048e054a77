"""
Test fixtures and configuration for pytest.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from stackbench.config import Settings
from stackbench.services.gpu import MetricProbe

TEST_TOKEN = "test-token"
TEST_MODEL = "qwen3:8b"
BASE_URL = "http://test"


class FakeProbe(MetricProbe):
    """Probe returning fixed readings."""

    name = "fake-gpu"

    def __init__(self, readings: dict[str, float] | None = None, present: bool = True):
        self.readings = readings or {}
        self.present = present
        self.reads = 0

    def available(self) -> bool:
        return self.present

    async def read(self) -> dict[str, float] | None:
        if not self.present:
            return None
        self.reads += 1
        return dict(self.readings)


def create_fake_stack() -> FastAPI:
    """Fake Ollama (/api/*) and n8n-MCP (/health, /mcp) in one app."""
    app = FastAPI()
    app.state.generate_calls = 0
    app.state.mcp_calls = []

    @app.get("/api/tags")
    async def tags():
        return {"models": [{"name": TEST_MODEL, "size": 5200000000, "digest": "abc123"}]}

    @app.post("/api/generate")
    async def generate(request: Request):
        body = await request.json()
        app.state.generate_calls += 1
        if body.get("model") != TEST_MODEL:
            return JSONResponse({"error": f"model '{body.get('model')}' not found"}, status_code=404)
        return {"model": TEST_MODEL, "response": f"echo: {body['prompt']}", "done": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/mcp")
    async def mcp(request: Request, authorization: str | None = Header(default=None)):
        if authorization != f"Bearer {TEST_TOKEN}":
            return JSONResponse({"error": "unauthorized"}, status_code=401)

        body = await request.json()
        app.state.mcp_calls.append(body["method"])
        method = body["method"]
        params = body.get("params") or {}

        if method == "initialize":
            result = {"protocolVersion": "2024-11-05", "serverInfo": {"name": "fake-mcp"}}
        elif method == "tools/list":
            result = {
                "tools": [
                    {
                        "name": "search_nodes",
                        "description": "Search nodes",
                        "inputSchema": {"properties": {"query": {}}, "required": ["query"]},
                    }
                ]
            }
        elif method == "tools/call" and params.get("name") == "search_nodes":
            result = {"content": [{"type": "text", "text": "found 3 nodes"}]}
        elif method == "tools/call" and params.get("name") == "broken_tool":
            result = {"content": [{"type": "text", "text": "boom"}], "isError": True}
        else:
            return {
                "jsonrpc": "2.0",
                "id": body.get("id"),
                "error": {"code": -32601, "message": f"Unknown method: {method}"},
            }

        return {"jsonrpc": "2.0", "id": body.get("id"), "result": result}

    return app


@pytest.fixture
def settings() -> Settings:
    """Settings with fast pauses and no service startup."""
    return Settings(
        _env_file=None,
        auth_token=TEST_TOKEN,
        ollama_model=TEST_MODEL,
        iterations=3,
        warmup_runs=1,
        model_loading_pause=0,
        inference_pause=0,
        gpu_pause=0,
        mcp_pause=0,
        sample_interval=0.01,
        readiness_interval=0.01,
        readiness_timeout=1.0,
        readiness_max_attempts=5,
        request_timeout=5.0,
        start_services=False,
    )


@pytest.fixture
def fake_stack() -> FastAPI:
    return create_fake_stack()


@pytest_asyncio.fixture
async def stack_client(fake_stack: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client routed to the fake stack."""
    transport = ASGITransport(app=fake_stack)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def make_probe():
    """Factory for fake metric probes."""
    return FakeProbe
