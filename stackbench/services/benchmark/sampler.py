"""
Resource Sampler

Background polling of a metric probe while a timed operation is in flight.
The sampler runs as its own task next to the operation and exits once its
stop event is set; the caller joins it before looking at the samples.
"""

import asyncio
import logging
from collections.abc import Sequence

from stackbench.core.exceptions import SamplingUnavailable
from stackbench.services.gpu import MetricProbe

from .clock import Clock, monotonic_clock, read_samples
from .metrics import Sample

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INTERVAL = 0.5  # seconds between probe reads


class ResourceSampler:
    """Poll ``probe`` every ``interval`` until told to stop."""

    def __init__(
        self,
        probe: MetricProbe,
        interval: float = DEFAULT_SAMPLE_INTERVAL,
        metrics: Sequence[str] = (),
        clock: Clock = monotonic_clock,
    ):
        self.probe = probe
        self.interval = interval
        self.metrics = tuple(metrics)
        self.clock = clock

    async def sample(self, stop: asyncio.Event) -> list[Sample]:
        """Collect samples until ``stop`` is set.

        The first read happens as soon as the task runs. A probe that is not
        available yields an empty list; a single failed read skips that tick.
        """
        samples: list[Sample] = []

        if not self.probe.available():
            logger.debug(f"{self.probe.name} unavailable, no samples collected")
            return samples

        while not stop.is_set():
            try:
                samples.extend(await read_samples(self.probe, self.clock))
            except SamplingUnavailable as e:
                logger.debug(f"Sampling tick skipped: {e}")

            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        return samples
