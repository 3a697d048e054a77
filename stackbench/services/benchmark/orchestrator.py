"""
Benchmark Orchestrator

Top-level coordinator of a benchmark run:

    IDLE -> PREFLIGHT -> SUITES -> REPORTING -> DONE
                 |          |
                 +----------+--> FAILED

Preflight checks preconditions, starts collaborators that are down and gates
on their readiness. Suites then run strictly one after another, iterations
strictly in order with a fixed pause in between. Fatal errors propagate to
the caller and no report is produced.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from enum import Enum
from typing import Any

import httpx

from stackbench.config import Settings
from stackbench.core.exceptions import (
    PreconditionMissing,
    ReadinessTimeout,
    StackBenchError,
    SuiteFailed,
)
from stackbench.services.gpu import NvidiaSmiProbe
from stackbench.services.mcp import MCPClient
from stackbench.services.ollama import OllamaClient
from stackbench.services.startup import (
    RetryPolicy,
    ServiceEndpoint,
    ServiceLauncher,
    wait_until_ready,
)
from stackbench.services.system import collect_system_info

from .metrics import IterationResult, summarize
from .report import BenchmarkReport, SuiteSection, SuiteStatus, recommend
from .runner import TimedOperationRunner
from .suites import MCP_SERVICE, OLLAMA_SERVICE, Suite, build_default_suites

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Orchestrator lifecycle"""

    IDLE = "idle"
    PREFLIGHT = "preflight"
    SUITES = "suites"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


class BenchmarkOrchestrator:
    """
    Runs the selected suites and assembles the report.

    Only this class appends to the per-suite result lists, and only after an
    iteration (operation and samplers) has fully completed.
    """

    def __init__(
        self,
        settings: Settings,
        suites: Sequence[Suite],
        endpoints: dict[str, ServiceEndpoint],
        client: httpx.AsyncClient,
        launchers: dict[str, ServiceLauncher] | None = None,
        runner: TimedOperationRunner | None = None,
        system_info: Callable[[], Awaitable[dict[str, str]]] | None = None,
        handshakes: dict[str, Callable[[], Awaitable[Any]]] | None = None,
        now: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.suites = list(suites)
        self.endpoints = endpoints
        self.client = client
        self.launchers = launchers or {}
        self.runner = runner or TimedOperationRunner(timeout=settings.request_timeout)
        self.system_info = system_info
        self.handshakes = handshakes or {}
        self.now = now
        self.sleep = sleep

        self.state = RunState.IDLE
        self.results: dict[str, list[IterationResult]] = {}
        self._skipped: dict[str, str] = {}

    @property
    def policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.readiness_max_attempts,
            interval=self.settings.readiness_interval,
            total_timeout=self.settings.readiness_timeout,
            attempt_timeout=self.settings.readiness_attempt_timeout,
        )

    def select_suites(self) -> list[Suite]:
        """Suites matching any selected group, in definition order"""
        groups = self.settings.selected_groups()
        return [suite for suite in self.suites if suite.groups & groups]

    async def run(self) -> BenchmarkReport:
        """Execute the benchmark

        Raises:
            StackBenchError: A fatal error; the state is FAILED afterwards
        """
        selected = self.select_suites()
        self.results = {}
        self._skipped = {}
        try:
            self.state = RunState.PREFLIGHT
            await self.preflight(selected)

            self.state = RunState.SUITES
            sections = [await self.run_suite(suite) for suite in selected]
        except StackBenchError:
            self.state = RunState.FAILED
            raise

        self.state = RunState.REPORTING
        info = await self.system_info() if self.system_info else {}
        report = BenchmarkReport(
            generated_at=self.now(),
            system_info=info,
            config={
                "Model": self.settings.ollama_model,
                "Iterations": str(self.settings.iterations),
                "Warmup Runs": str(self.settings.warmup_runs),
            },
            sections=tuple(sections),
            recommendations=tuple(recommend(sections)),
        )
        self.state = RunState.DONE
        return report

    async def preflight(self, suites: Sequence[Suite]) -> None:
        """Check preconditions and wait for every collaborator the suites need."""
        if not self.settings.auth_token:
            raise PreconditionMissing(
                "AUTH_TOKEN environment variable is required",
                condition="AUTH_TOKEN is not set",
            )

        for suite in suites:
            try:
                suite.check_requirement()
            except StackBenchError as e:
                if e.fatal:
                    raise
                if not suite.optional:
                    raise PreconditionMissing(e.message, condition=suite.name) from e
                logger.warning(f"{e.message}. Skipping {suite.title}.")
                self._skipped[suite.name] = e.message

        required = sorted(
            {name for suite in suites if suite.name not in self._skipped for name in suite.services}
        )
        for name in required:
            endpoint = self.endpoints[name]
            launcher = self.launchers.get(name)
            if self.settings.start_services and launcher is not None:
                await launcher.ensure_running()

            result = await wait_until_ready(endpoint, self.policy, self.client)
            if not result.ready:
                raise ReadinessTimeout(
                    endpoint.name,
                    f"{result.status.value} ({result.last_error or 'no response'})",
                    attempts=result.attempts,
                    elapsed=result.elapsed,
                )

            handshake = self.handshakes.get(name)
            if handshake is not None:
                try:
                    await handshake()
                except Exception as e:
                    raise ReadinessTimeout(endpoint.name, f"handshake failed: {e}") from e

    async def run_suite(self, suite: Suite) -> SuiteSection:
        """Warmups, then measured iterations, then one summary per metric"""
        if suite.name in self._skipped:
            return self._skipped_section(suite, self._skipped[suite.name])

        iterations = self.settings.iterations
        warmups = self.settings.warmup_runs
        logger.info(f"=== {suite.title} ===")

        ran_any = False
        for i in range(warmups):
            if ran_any:
                await self.sleep(suite.pause)
            logger.info(f"Warmup run {i + 1}/{warmups}")
            result = await self.runner.run(suite.operation, suite.samplers, suite.name, i)
            if not result.success:
                logger.warning(f"Warmup run {i + 1} failed: {result.error}")
            ran_any = True

        results = self.results.setdefault(suite.name, [])
        for i in range(iterations):
            if ran_any:
                await self.sleep(suite.pause)
            result = await self._measure(suite, i)
            results.append(result)
            ran_any = True

        succeeded = [r for r in results if r.success]
        failed = len(results) - len(succeeded)

        if not succeeded:
            reason = f"all {len(results)} iterations failed: {results[-1].error}"
            if not suite.optional:
                raise SuiteFailed(suite.name, reason)
            logger.warning(f"{suite.title}: {reason}. Marking as skipped.")
            return self._skipped_section(suite, reason)

        statistics = []
        for spec in suite.metrics:
            values = [r.metric(spec.name) for r in succeeded]
            stat = summarize(
                [v for v in values if v is not None],
                0,
                suite_name=suite.name,
                metric_name=spec.name,
                unit=spec.unit,
            )
            statistics.append(stat)
            if stat.defined:
                logger.info(
                    f"{suite.title} {spec.label}: min={stat.min:.3f}{spec.unit} "
                    f"max={stat.max:.3f}{spec.unit} mean={stat.mean:.3f}{spec.unit} "
                    f"median={stat.median:.3f}{spec.unit}"
                )
            else:
                logger.info(f"{suite.title} {spec.label}: no data")

        return SuiteSection(
            suite_name=suite.name,
            title=suite.title,
            section=suite.section,
            status=SuiteStatus.COMPLETED,
            metrics=suite.metrics,
            statistics=tuple(statistics),
            iterations=iterations,
            failed_iterations=failed,
        )

    async def _measure(self, suite: Suite, index: int) -> IterationResult:
        """One measured iteration, retried on failure up to max_retries times"""
        attempts = 1 + max(0, self.settings.max_retries)
        result = None
        for attempt in range(attempts):
            result = await self.runner.run(suite.operation, suite.samplers, suite.name, index)
            if result.success:
                logger.info(f"Run {index + 1}: {result.duration_seconds:.3f}s")
                return result
            if attempt + 1 < attempts:
                logger.warning(f"Run {index + 1} failed ({result.error}), retrying")
                await self.sleep(suite.pause)

        logger.warning(f"Run {index + 1} failed: {result.error}; excluded from statistics")
        return result

    def _skipped_section(self, suite: Suite, reason: str) -> SuiteSection:
        return SuiteSection(
            suite_name=suite.name,
            title=suite.title,
            section=suite.section,
            status=SuiteStatus.SKIPPED,
            metrics=suite.metrics,
            iterations=self.settings.iterations,
            reason=reason,
        )


async def run_benchmark(settings: Settings) -> BenchmarkReport:
    """
    Build the collaborators from settings and run a full benchmark.

    Args:
        settings: Fully resolved configuration (CLI overrides applied)

    Returns:
        BenchmarkReport ready for rendering
    """
    ollama_endpoint = ServiceEndpoint(OLLAMA_SERVICE, settings.ollama_url, "/api/tags")
    mcp_endpoint = ServiceEndpoint(MCP_SERVICE, settings.mcp_url, "/health")

    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        ollama = OllamaClient(
            client,
            base_url=settings.ollama_url,
            model=settings.ollama_model,
            binary=settings.ollama_binary,
            command_timeout=settings.command_timeout,
        )
        mcp = MCPClient(client, base_url=settings.mcp_url, auth_token=settings.auth_token)
        gpu_probe = NvidiaSmiProbe(settings.gpu_probe_binary, timeout=settings.probe_timeout)

        launchers = {
            OLLAMA_SERVICE: ServiceLauncher(
                ollama_endpoint,
                client,
                managed_start=settings.ollama_managed_start,
                direct_start=settings.ollama_direct_start,
                command_timeout=settings.command_timeout,
            ),
            MCP_SERVICE: ServiceLauncher(
                mcp_endpoint,
                client,
                managed_start=settings.mcp_managed_start,
                direct_start=settings.mcp_direct_start,
                command_timeout=settings.command_timeout,
            ),
        }

        orchestrator = BenchmarkOrchestrator(
            settings,
            build_default_suites(settings, ollama, mcp, gpu_probe),
            endpoints={OLLAMA_SERVICE: ollama_endpoint, MCP_SERVICE: mcp_endpoint},
            client=client,
            launchers=launchers,
            system_info=lambda: collect_system_info(gpu_probe),
            handshakes={OLLAMA_SERVICE: ollama.check_model_served, MCP_SERVICE: mcp.initialize},
        )
        return await orchestrator.run()
