"""System information for the benchmark report header."""

import logging
import platform
from pathlib import Path

import psutil

from stackbench.services.gpu import NvidiaSmiProbe

logger = logging.getLogger(__name__)


def _cpu_model() -> str:
    """CPU model name, from /proc/cpuinfo where available."""
    cpuinfo = Path("/proc/cpuinfo")
    if cpuinfo.exists():
        try:
            for line in cpuinfo.read_text().splitlines():
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
        except OSError:
            pass
    return platform.processor() or platform.machine() or "unknown"


def _format_bytes(num: int) -> str:
    return f"{num / (1024 ** 3):.1f} GB"


async def collect_system_info(gpu_probe: NvidiaSmiProbe | None = None) -> dict[str, str]:
    """Collect platform, CPU, memory and GPU details.

    Keys keep insertion order so the report renders them deterministically.
    """
    info = {
        "Platform": f"{platform.system()} {platform.release()}",
        "Python": platform.python_version(),
        "CPU": f"{_cpu_model()} ({psutil.cpu_count()} cores)",
        "Memory": _format_bytes(psutil.virtual_memory().total),
    }

    gpu = await gpu_probe.describe() if gpu_probe else None
    info["GPU"] = gpu or "not detected"

    logger.debug(f"System info: {info}")
    return info
