"""
Benchmark Module

Repeated, timed measurements of an Ollama + n8n-MCP stack with concurrent
GPU sampling and min/max/mean/median reporting.

Usage:
    from stackbench.config import get_settings
    from stackbench.services.benchmark import ReportGenerator, run_benchmark

    report = await run_benchmark(get_settings())
    print(ReportGenerator().render(report))
"""

from .clock import monotonic_clock, read_samples
from .metrics import DURATION, IterationResult, Sample, SuiteStatistics, peak_values, summarize
from .orchestrator import BenchmarkOrchestrator, RunState, run_benchmark
from .report import BenchmarkReport, ReportGenerator, SuiteSection, SuiteStatus, recommend
from .runner import TimedOperationRunner
from .sampler import ResourceSampler
from .suites import MetricSpec, Suite, Threshold, Tier, build_default_suites

__all__ = [
    # Clock
    "monotonic_clock",
    "read_samples",
    # Metrics
    "DURATION",
    "Sample",
    "IterationResult",
    "SuiteStatistics",
    "summarize",
    "peak_values",
    # Sampling and timing
    "ResourceSampler",
    "TimedOperationRunner",
    # Suites
    "Suite",
    "MetricSpec",
    "Threshold",
    "Tier",
    "build_default_suites",
    # Orchestration
    "BenchmarkOrchestrator",
    "RunState",
    "run_benchmark",
    # Report
    "BenchmarkReport",
    "ReportGenerator",
    "SuiteSection",
    "SuiteStatus",
    "recommend",
]
