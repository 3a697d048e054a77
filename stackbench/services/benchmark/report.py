"""
Benchmark Report

Assembles per-suite statistics into a plain-text, markdown-style report with
threshold-based recommendations. Rendering is deterministic: the same
report value always produces the same text.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TextIO

from .metrics import SuiteStatistics
from .suites import MetricSpec, Tier

logger = logging.getLogger(__name__)

REPORT_TITLE = "Ollama + n8n-MCP Performance Benchmark Report"
NO_DATA = "no data"

TIER_MARKERS = {
    Tier.GOOD: "[GOOD]",
    Tier.ACCEPTABLE: "[ACCEPTABLE]",
    Tier.POOR: "[POOR]",
}


class SuiteStatus(str, Enum):
    """Final state of a suite"""

    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SuiteSection:
    """Outcome of one suite as shown in the report"""

    suite_name: str
    title: str
    section: str
    status: SuiteStatus
    metrics: tuple[MetricSpec, ...] = ()
    statistics: tuple[SuiteStatistics, ...] = ()
    iterations: int = 0
    failed_iterations: int = 0
    reason: str | None = None


@dataclass(frozen=True)
class BenchmarkReport:
    """Complete benchmark report"""

    generated_at: datetime
    system_info: dict[str, str]
    config: dict[str, str]
    sections: tuple[SuiteSection, ...] = ()
    recommendations: tuple[str, ...] = field(default=())

    @property
    def suites(self) -> list[SuiteStatistics]:
        """All suite statistics, in run order"""
        return [stat for section in self.sections for stat in section.statistics]

    def section(self, suite_name: str) -> SuiteSection | None:
        for section in self.sections:
            if section.suite_name == suite_name:
                return section
        return None


def _fmt(value: float) -> str:
    return f"{value:.3f}"


def _limit(value: float) -> str:
    return f"{value:g}"


def recommend(sections: Sequence[SuiteSection]) -> list[str]:
    """Compare each defined mean against its metric's thresholds.

    Undefined statistics and skipped suites never produce a recommendation.
    """
    lines = []
    for section in sections:
        if section.status != SuiteStatus.COMPLETED:
            continue
        for spec, stat in zip(section.metrics, section.statistics):
            if spec.threshold is None or stat.mean is None:
                continue
            threshold = spec.threshold
            tier = threshold.classify(stat.mean)
            mean = f"{_fmt(stat.mean)}{spec.unit} mean"
            good = _limit(threshold.good_below)
            acceptable = _limit(threshold.acceptable_below)
            if tier == Tier.GOOD:
                verdict = f"good ({mean}, < {good}{spec.unit})"
            elif tier == Tier.ACCEPTABLE:
                verdict = f"acceptable ({mean}, {good}-{acceptable}{spec.unit})"
            else:
                verdict = f"poor ({mean}, >= {acceptable}{spec.unit})"
            lines.append(f"{TIER_MARKERS[tier]} {section.title}: {threshold.subject} is {verdict}")
    return lines


class ReportGenerator:
    """Render a BenchmarkReport to text, a stream or a file."""

    def render(self, report: BenchmarkReport) -> str:
        lines = [
            f"# {REPORT_TITLE}",
            f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        ]
        lines.extend(f"{key}: {value}" for key, value in report.config.items())
        lines.append("")

        lines.append("## System Information")
        lines.extend(f"- {key}: {value}" for key, value in report.system_info.items())
        lines.append("")

        current_section = None
        for section in report.sections:
            if section.section != current_section:
                current_section = section.section
                lines.append(f"## {current_section}")
            lines.extend(self._render_suite(section))

        lines.append("## Recommendations")
        if report.recommendations:
            lines.extend(f"- {line}" for line in report.recommendations)
        else:
            lines.append("- No thresholds apply to the collected data")

        return "\n".join(lines) + "\n"

    def _render_suite(self, section: SuiteSection) -> list[str]:
        if section.status == SuiteStatus.SKIPPED:
            return [f"### {section.title}", f"- Skipped: {section.reason or 'not run'}", ""]

        lines = []
        for spec, stat in zip(section.metrics, section.statistics):
            heading = section.title if len(section.metrics) == 1 else f"{section.title} - {spec.label}"
            lines.append(f"### {heading}")
            lines.append(f"- Samples: {stat.sample_count}/{section.iterations}")
            if section.failed_iterations:
                lines.append(f"- Failed iterations: {section.failed_iterations}")
            for label, value in (
                ("Min", stat.min),
                ("Max", stat.max),
                ("Mean", stat.mean),
                ("Median", stat.median),
            ):
                rendered = NO_DATA if value is None else f"{_fmt(value)}{spec.unit}"
                lines.append(f"- {label}: {rendered}")
            lines.append("")
        return lines

    def write(self, report: BenchmarkReport, output: str | Path | TextIO) -> None:
        """Write the report to a stream, or overwrite the file at ``output``."""
        text = self.render(report)
        if isinstance(output, (str, Path)):
            path = Path(output)
            path.write_text(text, encoding="utf-8")
            logger.info(f"Benchmark report saved to: {path}")
        else:
            output.write(text)
            output.flush()
