"""Application configuration"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "StackBench"
    debug: bool = False

    # Tool-server bearer token, required for every run
    auth_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STACKBENCH_AUTH_TOKEN", "AUTH_TOKEN"),
    )

    # Ollama (inference server)
    ollama_host: str = "localhost"
    ollama_port: int = 11434
    ollama_model: str = "qwen3:8b"
    ollama_binary: str = "ollama"

    # n8n-MCP (automation-tool server)
    mcp_host: str = "localhost"
    mcp_port: int = 3000

    # Benchmark loop
    iterations: int = 5
    warmup_runs: int = 3
    max_retries: int = 1  # retries per failed iteration

    # Pause between iterations, per suite kind (seconds)
    model_loading_pause: float = 1.0
    inference_pause: float = 1.0
    gpu_pause: float = 2.0
    mcp_pause: float = 0.5

    # GPU sampling
    gpu_probe_binary: str = "nvidia-smi"
    sample_interval: float = 0.5
    probe_timeout: float = 5.0

    # Timeouts (seconds)
    request_timeout: float = 120.0
    command_timeout: float = 30.0

    # Readiness polling
    readiness_interval: float = 2.0
    readiness_timeout: float = 60.0
    readiness_max_attempts: int = 30
    readiness_attempt_timeout: float = 10.0

    # Startup fallback commands; an empty list disables that tier
    start_services: bool = True
    ollama_managed_start: list[str] = ["systemctl", "start", "ollama"]
    ollama_direct_start: list[str] = ["ollama", "serve"]
    mcp_managed_start: list[str] = ["docker", "start", "n8n-mcp"]
    mcp_direct_start: list[str] = []

    # Suite selection, set from the CLI
    gpu_only: bool = False
    mcp_only: bool = False

    @property
    def ollama_url(self) -> str:
        return f"http://{self.ollama_host}:{self.ollama_port}"

    @property
    def mcp_url(self) -> str:
        return f"http://{self.mcp_host}:{self.mcp_port}"

    def selected_groups(self) -> set[str]:
        """Suite groups to run; the two filters combine as a union."""
        groups = set()
        if self.gpu_only:
            groups.add("gpu")
        if self.mcp_only:
            groups.add("mcp")
        return groups or {"gpu", "mcp"}

    class Config:
        env_prefix = "STACKBENCH_"
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
