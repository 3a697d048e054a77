"""
Benchmark Suites

A suite is a named group of repeated measurements sharing one operation.
This module defines the suite model, the per-metric thresholds used for
recommendations, and the default suites for an Ollama + n8n-MCP stack.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from stackbench.config import Settings
from stackbench.core.exceptions import PreconditionMissing, ToolUnavailable
from stackbench.services.gpu import (
    GPU_MEMORY_USED,
    GPU_TEMPERATURE,
    GPU_UTILIZATION,
    MetricProbe,
)
from stackbench.services.mcp import MCPClient, MCPOperation
from stackbench.services.ollama import OllamaClient
from stackbench.services.process import command_exists

from .metrics import DURATION
from .runner import Operation
from .sampler import ResourceSampler

OLLAMA_SERVICE = "ollama"
MCP_SERVICE = "mcp"

# Filter groups selectable from the CLI
GPU_GROUP = "gpu"
MCP_GROUP = "mcp"

INFERENCE_PROMPTS = (
    "Hello",
    "What is n8n?",
    "Create a simple workflow",
    "Explain workflow automation",
    "How to use webhooks in n8n",
)

GPU_PROMPT = "Write a detailed explanation of n8n workflow automation"

DEFAULT_MCP_OPERATIONS = (
    MCPOperation("List tools", "tools/list", {}),
    MCPOperation(
        "Database statistics",
        "tools/call",
        {"name": "get_database_statistics", "arguments": {}},
    ),
    MCPOperation(
        "List nodes",
        "tools/call",
        {"name": "list_nodes", "arguments": {"limit": 10}},
    ),
    MCPOperation(
        "Search nodes",
        "tools/call",
        {"name": "search_nodes", "arguments": {"query": "slack"}},
    ),
)


class Tier(str, Enum):
    """Recommendation tier"""

    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


@dataclass(frozen=True)
class Threshold:
    """Three-tier limits on a metric's mean, in the metric's own unit"""

    subject: str
    unit: str
    good_below: float
    acceptable_below: float

    def __post_init__(self):
        if self.good_below > self.acceptable_below:
            raise ValueError("good_below must not exceed acceptable_below")

    def classify(self, value: float) -> Tier:
        if value < self.good_below:
            return Tier.GOOD
        if value < self.acceptable_below:
            return Tier.ACCEPTABLE
        return Tier.POOR


INFERENCE_LATENCY = Threshold("inference latency", "s", 1.0, 3.0)
MCP_LATENCY = Threshold("MCP response time", "s", 0.1, 0.5)
MODEL_LISTING_LATENCY = Threshold("model listing time", "s", 0.5, 2.0)
GPU_MEMORY = Threshold("GPU memory usage", "MB", 10000.0, 14000.0)
GPU_HEAT = Threshold("GPU temperature", "°C", 75.0, 85.0)


@dataclass(frozen=True)
class MetricSpec:
    """A metric tracked by a suite"""

    name: str
    label: str
    unit: str
    threshold: Threshold | None = None

    def __post_init__(self):
        # Thresholds are compared without any unit conversion
        if self.threshold is not None and self.threshold.unit != self.unit:
            raise ValueError(
                f"Threshold unit {self.threshold.unit!r} does not match metric unit {self.unit!r}"
            )


def duration_metric(threshold: Threshold | None = None) -> MetricSpec:
    return MetricSpec(DURATION, "Duration", "s", threshold)


@dataclass
class Suite:
    """A named benchmark suite"""

    name: str
    title: str
    section: str  # report section header
    operation: Operation
    groups: frozenset[str] = frozenset({GPU_GROUP})
    metrics: tuple[MetricSpec, ...] = field(default_factory=lambda: (duration_metric(),))
    samplers: tuple[ResourceSampler, ...] = ()
    services: frozenset[str] = frozenset()  # collaborators that must be ready
    optional: bool = False
    pause: float = 1.0
    # Raises ToolUnavailable or PreconditionMissing when the suite cannot run
    requirement: Callable[[], None] | None = None

    def check_requirement(self) -> None:
        if self.requirement is not None:
            self.requirement()


def require_binary(binary: str, optional: bool) -> Callable[[], None]:
    """Requirement that a local binary is installed."""

    def check() -> None:
        if command_exists(binary):
            return
        if optional:
            raise ToolUnavailable(binary, f"{binary} not found")
        raise PreconditionMissing(f"{binary} is not installed", condition=f"{binary} not on PATH")

    return check


def require_probe(probe: MetricProbe) -> Callable[[], None]:
    def check() -> None:
        if not probe.available():
            raise ToolUnavailable(probe.name, f"{probe.name} not found")

    return check


def _generate(ollama: OllamaClient, prompt: str) -> Operation:
    async def operation():
        return await ollama.generate(prompt)

    return operation


def _mcp_call(mcp: MCPClient, op: MCPOperation) -> Operation:
    async def operation():
        return await mcp.perform(op)

    return operation


def build_default_suites(
    settings: Settings,
    ollama: OllamaClient,
    mcp: MCPClient,
    gpu_probe: MetricProbe,
    mcp_operations: Sequence[MCPOperation] = DEFAULT_MCP_OPERATIONS,
) -> list[Suite]:
    """Model listing, per-prompt inference, GPU load and MCP latency suites."""
    suites = [
        Suite(
            name="model_loading",
            title="Model Listing",
            section="Model Loading",
            operation=ollama.check_model_listed,
            metrics=(duration_metric(MODEL_LISTING_LATENCY),),
            services=frozenset({OLLAMA_SERVICE}),
            pause=settings.model_loading_pause,
            requirement=require_binary(settings.ollama_binary, optional=False),
        )
    ]

    for idx, prompt in enumerate(INFERENCE_PROMPTS, start=1):
        suites.append(
            Suite(
                name=f"inference_{idx}",
                title=f"Prompt {idx}: {prompt}",
                section="Inference",
                operation=_generate(ollama, prompt),
                metrics=(duration_metric(INFERENCE_LATENCY),),
                services=frozenset({OLLAMA_SERVICE}),
                pause=settings.inference_pause,
            )
        )

    gpu_metrics = (
        MetricSpec(GPU_MEMORY_USED, "Memory Usage", "MB", GPU_MEMORY),
        MetricSpec(GPU_UTILIZATION, "GPU Utilization", "%"),
        MetricSpec(GPU_TEMPERATURE, "Temperature", "°C", GPU_HEAT),
    )
    suites.append(
        Suite(
            name="gpu_utilization",
            title="GPU Load",
            section="GPU Utilization",
            operation=_generate(ollama, GPU_PROMPT),
            metrics=(duration_metric(),) + gpu_metrics,
            samplers=(
                ResourceSampler(
                    gpu_probe,
                    interval=settings.sample_interval,
                    metrics=[m.name for m in gpu_metrics],
                ),
            ),
            services=frozenset({OLLAMA_SERVICE}),
            optional=True,
            pause=settings.gpu_pause,
            requirement=require_probe(gpu_probe),
        )
    )

    for idx, op in enumerate(mcp_operations, start=1):
        suites.append(
            Suite(
                name=f"mcp_op_{idx}",
                title=f"Operation {idx}: {op.label}",
                section="MCP Server",
                operation=_mcp_call(mcp, op),
                groups=frozenset({MCP_GROUP}),
                metrics=(duration_metric(MCP_LATENCY),),
                services=frozenset({MCP_SERVICE}),
                # Tool calls depend on the server's catalog
                optional=op.method == "tools/call",
                pause=settings.mcp_pause,
            )
        )

    return suites
