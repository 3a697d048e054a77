"""Clock and single-shot sampling primitive."""

import time
from collections.abc import Callable

from stackbench.services.gpu import MetricProbe

from .metrics import Sample

Clock = Callable[[], float]


def monotonic_clock() -> float:
    """Seconds from a monotonic, high-resolution clock"""
    return time.perf_counter()


async def read_samples(probe: MetricProbe, clock: Clock = monotonic_clock) -> list[Sample]:
    """Take one timestamped reading of every metric the probe reports.

    An unavailable probe yields no samples. The timestamp marks the start of
    the read, so a slow probe started during an operation still counts for
    it. All samples of one call share the timestamp.
    """
    timestamp = clock()
    reading = await probe.read()
    if reading is None:
        return []
    return [Sample(name, float(value), timestamp) for name, value in reading.items()]
