"""GPU metric probes.

A probe returns a mapping of metric name to value on every read, or ``None``
when the underlying tool is absent. A missing GPU is never reported as zero.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from stackbench.core.exceptions import SamplingUnavailable
from stackbench.services.process import command_exists, run_command

logger = logging.getLogger(__name__)

GPU_MEMORY_USED = "gpu_memory_used"
GPU_MEMORY_TOTAL = "gpu_memory_total"
GPU_UTILIZATION = "gpu_utilization"
GPU_TEMPERATURE = "gpu_temperature"

# Order of fields in the nvidia-smi query below
NVIDIA_SMI_FIELDS = (
    ("memory.used", GPU_MEMORY_USED),
    ("memory.total", GPU_MEMORY_TOTAL),
    ("utilization.gpu", GPU_UTILIZATION),
    ("temperature.gpu", GPU_TEMPERATURE),
)


class MetricProbe(ABC):
    """Pluggable source of numeric readings."""

    name: str = "probe"

    @abstractmethod
    def available(self) -> bool:
        """Whether the probe can produce data at all."""

    @abstractmethod
    async def read(self) -> dict[str, float] | None:
        """Take one reading; ``None`` means the source is unavailable."""


def parse_nvidia_smi_value(value: str) -> float | None:
    """Parse a value from nvidia-smi output, returning None for [N/A] or invalid."""
    value = value.strip()
    if not value or value.startswith("[N/A]") or value == "N/A" or value == "Not Supported":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def parse_gpu_stats(line: str) -> dict[str, float]:
    """Parse one CSV line of the GPU query into a metric mapping.

    Fields nvidia-smi cannot report are left out rather than set to 0.
    """
    parts = [p.strip() for p in line.split(",")]
    if len(parts) < len(NVIDIA_SMI_FIELDS):
        raise SamplingUnavailable("nvidia-smi", f"unexpected output: {line!r}")

    stats = {}
    for (_, metric), raw in zip(NVIDIA_SMI_FIELDS, parts):
        value = parse_nvidia_smi_value(raw)
        if value is not None:
            stats[metric] = value
    return stats


class NvidiaSmiProbe(MetricProbe):
    """Read memory, utilization and temperature of one GPU via nvidia-smi."""

    name = "nvidia-smi"

    def __init__(self, binary: str = "nvidia-smi", gpu_index: int = 0, timeout: float = 5.0):
        self.binary = binary
        self.gpu_index = gpu_index
        self.timeout = timeout

    def available(self) -> bool:
        return command_exists(self.binary)

    async def read(self) -> dict[str, float] | None:
        query = ",".join(field for field, _ in NVIDIA_SMI_FIELDS)
        try:
            result = await run_command(
                [
                    self.binary,
                    f"--query-gpu={query}",
                    "--format=csv,noheader,nounits",
                    f"--id={self.gpu_index}",
                ],
                timeout=self.timeout,
            )
        except FileNotFoundError:
            logger.debug("nvidia-smi not found")
            return None
        except asyncio.TimeoutError as e:
            raise SamplingUnavailable(self.name, "query timed out") from e

        if not result.ok:
            raise SamplingUnavailable(self.name, result.stderr.strip() or "query failed")

        line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
        return parse_gpu_stats(line)

    async def describe(self) -> str | None:
        """GPU name and total memory for the report header."""
        if not self.available():
            return None
        try:
            result = await run_command(
                [
                    self.binary,
                    "--query-gpu=name,memory.total",
                    "--format=csv,noheader,nounits",
                    f"--id={self.gpu_index}",
                ],
                timeout=self.timeout,
            )
        except (FileNotFoundError, asyncio.TimeoutError) as e:
            logger.debug(f"nvidia-smi describe failed: {e}")
            return None

        if not result.ok or not result.stdout.strip():
            return None

        parts = [p.strip() for p in result.stdout.strip().splitlines()[0].split(",")]
        name = parts[0]
        memory = parse_nvidia_smi_value(parts[1]) if len(parts) > 1 else None
        if memory is None:
            return name
        return f"{name} ({int(memory)} MB)"
