"""Ollama client.

Talks to the local Ollama server over HTTP (generate, tags) and through its
CLI (``ollama list``). Failures surface as ``OperationFailure`` so the
benchmark runner can record them against the iteration. HTTP timeouts are
the exception: they propagate as ``httpx.TimeoutException`` and the runner
reports them as request timeouts.
"""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from stackbench.core.exceptions import OperationFailure
from stackbench.schemas.ollama import GenerateRequest, GenerateResponse, ModelTag, TagsResponse
from stackbench.services.process import run_command

logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_PORT = 11434
TAGS_PATH = "/api/tags"
GENERATE_PATH = "/api/generate"


def _has_model(names: list[str], model: str) -> bool:
    """Ollama lists untagged models as ``name:latest``."""
    return model in names or f"{model}:latest" in names


class OllamaClient:
    """Client for a running Ollama service."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = f"http://localhost:{OLLAMA_DEFAULT_PORT}",
        model: str = "qwen3:8b",
        binary: str = "ollama",
        command_timeout: float = 30.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.binary = binary
        self.command_timeout = command_timeout

    async def list_models(self) -> list[ModelTag]:
        """List models known to the server."""
        try:
            response = await self.client.get(f"{self.base_url}{TAGS_PATH}")
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as e:
            raise OperationFailure(f"Cannot reach Ollama: {e}", operation="tags") from e

        if response.status_code != 200:
            raise OperationFailure(f"HTTP {response.status_code}", operation="tags")
        try:
            return TagsResponse.model_validate(response.json()).models
        except (ValueError, ValidationError) as e:
            raise OperationFailure(f"Invalid tags response: {e}", operation="tags") from e

    async def check_model_served(self, model: str | None = None) -> None:
        """Require the server to have the model before any suite runs."""
        model = model or self.model
        names = [tag.name for tag in await self.list_models()]
        if not _has_model(names, model):
            raise OperationFailure(f"Model {model} is not available on the server", operation="tags")
        logger.debug(f"Ollama serves {model}")

    async def generate(self, prompt: str, model: str | None = None) -> GenerateResponse:
        """Run one non-streaming completion."""
        body = GenerateRequest(model=model or self.model, prompt=prompt, stream=False)
        try:
            response = await self.client.post(
                f"{self.base_url}{GENERATE_PATH}",
                json=body.model_dump(),
            )
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as e:
            raise OperationFailure(f"Cannot reach Ollama: {e}", operation="generate") from e

        if response.status_code != 200:
            raise OperationFailure(f"HTTP {response.status_code}", operation="generate")

        try:
            return GenerateResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise OperationFailure(f"Invalid generate response: {e}", operation="generate") from e

    async def check_model_listed(self, model: str | None = None) -> None:
        """Run ``ollama list`` and require the model to be present."""
        model = model or self.model
        try:
            result = await run_command([self.binary, "list"], timeout=self.command_timeout)
        except FileNotFoundError as e:
            raise OperationFailure(f"{self.binary} not found", operation="list") from e
        except asyncio.TimeoutError as e:
            raise OperationFailure("ollama list timed out", operation="list") from e

        if not result.ok:
            raise OperationFailure(
                f"ollama list exited with {result.returncode}: {result.stderr.strip()}",
                operation="list",
            )

        names = [line.split()[0] for line in result.stdout.splitlines()[1:] if line.strip()]
        if not _has_model(names, model):
            raise OperationFailure(f"Model {model} not found", operation="list")
