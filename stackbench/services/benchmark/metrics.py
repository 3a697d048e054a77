"""
Benchmark Metrics

Data model for one benchmark run and the statistics reduction:
- Sample (one timestamped probe reading)
- IterationResult (one measured iteration, with per-metric peaks)
- SuiteStatistics (min / max / mean / median of one metric series)

"No data" is always ``None``, never 0.
"""

import statistics
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

# Metric name of the wall-clock duration every iteration records
DURATION = "duration"


@dataclass(frozen=True)
class Sample:
    """One reading of one metric"""

    metric_name: str
    value: float
    timestamp: float  # monotonic clock, seconds


@dataclass(frozen=True)
class IterationResult:
    """Result from a single measured iteration"""

    suite_name: str
    iteration_index: int
    duration_seconds: float
    peak_samples: Mapping[str, float | None] = field(default_factory=lambda: MappingProxyType({}))

    success: bool = True
    error: str | None = None

    def metric(self, name: str) -> float | None:
        """Value of a tracked metric for this iteration, None when absent"""
        if name == DURATION:
            return self.duration_seconds
        return self.peak_samples.get(name)


@dataclass(frozen=True)
class SuiteStatistics:
    """Summary statistics of one metric series"""

    suite_name: str
    metric_name: str
    unit: str
    min: float | None
    max: float | None
    mean: float | None
    median: float | None
    sample_count: int

    @property
    def defined(self) -> bool:
        return self.sample_count > 0


def summarize(
    values: Sequence[float],
    warmup_count: int = 0,
    *,
    suite_name: str = "",
    metric_name: str = DURATION,
    unit: str = "s",
) -> SuiteStatistics:
    """Reduce an ordered series to min, max, mean and median.

    The first ``warmup_count`` values are dropped. The orchestrator already
    keeps warmup iterations out of the series and passes 0 here.

    An empty series (including one emptied by the warmup cut) gives a record
    whose statistics are all None.
    """
    if warmup_count < 0:
        raise ValueError("warmup_count cannot be negative")

    measured = [float(v) for v in list(values)[warmup_count:]]
    if not measured:
        return SuiteStatistics(suite_name, metric_name, unit, None, None, None, None, 0)

    return SuiteStatistics(
        suite_name=suite_name,
        metric_name=metric_name,
        unit=unit,
        min=min(measured),
        max=max(measured),
        mean=statistics.mean(measured),
        median=statistics.median(measured),
        sample_count=len(measured),
    )


def peak_values(
    samples: Iterable[Sample],
    metrics: Iterable[str] = (),
    window: tuple[float, float] | None = None,
) -> dict[str, float | None]:
    """Maximum value per metric, limited to samples inside ``window``.

    Every name in ``metrics`` is present in the result; metrics without a
    single sample in the window map to None.
    """
    peaks: dict[str, float | None] = {name: None for name in metrics}
    for sample in samples:
        if window is not None and not window[0] <= sample.timestamp <= window[1]:
            continue
        current = peaks.get(sample.metric_name)
        peaks[sample.metric_name] = sample.value if current is None else max(current, sample.value)
    return peaks
