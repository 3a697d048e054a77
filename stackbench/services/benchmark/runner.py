"""
Timed Operation Runner

Executes one benchmark operation, measuring wall-clock duration on a
monotonic clock while attached resource samplers run concurrently.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from types import MappingProxyType
from typing import Any

import httpx

from .clock import Clock, monotonic_clock
from .metrics import IterationResult, Sample, peak_values
from .sampler import ResourceSampler

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]


class TimedOperationRunner:
    """
    Runs a single operation with its samplers.

    Samplers are started before the clock starts and are always stopped and
    joined before the result is built, whether the operation succeeded,
    failed or was cancelled. The runner never retries.
    """

    def __init__(self, clock: Clock = monotonic_clock, timeout: float | None = None):
        self.clock = clock
        self.timeout = timeout

    async def run(
        self,
        operation: Operation,
        samplers: Sequence[ResourceSampler] = (),
        suite_name: str = "",
        iteration_index: int = 0,
    ) -> IterationResult:
        """Execute ``operation`` once and return its IterationResult"""
        stops = [asyncio.Event() for _ in samplers]
        tasks = [
            asyncio.create_task(sampler.sample(stop)) for sampler, stop in zip(samplers, stops)
        ]

        start = self.clock()
        end: float | None = None
        error: str | None = None

        try:
            try:
                if self.timeout is not None:
                    await asyncio.wait_for(operation(), timeout=self.timeout)
                else:
                    await operation()
            except httpx.TimeoutException:
                error = "Request timeout"
            except asyncio.TimeoutError:
                error = f"Operation timed out after {self.timeout}s"
            except Exception as e:
                error = str(e) or type(e).__name__
            end = self.clock()
        finally:
            if end is None:
                end = self.clock()
            for stop in stops:
                stop.set()
            collected = await asyncio.gather(*tasks, return_exceptions=True)

        peaks: dict[str, float | None] = {}
        for sampler, outcome in zip(samplers, collected):
            peaks.update(peak_values(self._samples(sampler, outcome), sampler.metrics, (start, end)))

        duration = end - start
        if error:
            logger.debug(f"{suite_name} iteration {iteration_index} failed after {duration:.3f}s: {error}")

        return IterationResult(
            suite_name=suite_name,
            iteration_index=iteration_index,
            duration_seconds=duration,
            peak_samples=MappingProxyType(peaks),
            success=error is None,
            error=error,
        )

    @staticmethod
    def _samples(sampler: ResourceSampler, outcome: Any) -> list[Sample]:
        if isinstance(outcome, BaseException):
            logger.warning(f"Sampler for {sampler.probe.name} failed: {outcome!r}")
            return []
        return outcome
