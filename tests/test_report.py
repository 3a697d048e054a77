"""
Tests for report assembly, recommendations and rendering.
"""
import io
from datetime import datetime

import pytest

from stackbench.services.benchmark.metrics import DURATION, SuiteStatistics, summarize
from stackbench.services.benchmark.report import (
    BenchmarkReport,
    ReportGenerator,
    SuiteSection,
    SuiteStatus,
    recommend,
)
from stackbench.services.benchmark.suites import (
    GPU_HEAT,
    INFERENCE_LATENCY,
    MCP_LATENCY,
    MetricSpec,
    Threshold,
    Tier,
    duration_metric,
)

GENERATED_AT = datetime(2024, 1, 2, 3, 4, 5)


def completed(name, title, section, values, spec=None, iterations=3, failed=0) -> SuiteSection:
    spec = spec or duration_metric(INFERENCE_LATENCY)
    stat = summarize(values, 0, suite_name=name, metric_name=spec.name, unit=spec.unit)
    return SuiteSection(
        suite_name=name,
        title=title,
        section=section,
        status=SuiteStatus.COMPLETED,
        metrics=(spec,),
        statistics=(stat,),
        iterations=iterations,
        failed_iterations=failed,
    )


def skipped(name, title, section, reason) -> SuiteSection:
    return SuiteSection(name, title, section, SuiteStatus.SKIPPED, iterations=3, reason=reason)


def build_report(sections) -> BenchmarkReport:
    return BenchmarkReport(
        generated_at=GENERATED_AT,
        system_info={"CPU": "Test CPU"},
        config={"Model": "qwen3:8b", "Iterations": "3", "Warmup Runs": "1"},
        sections=tuple(sections),
        recommendations=tuple(recommend(sections)),
    )


EXPECTED = """\
# Ollama + n8n-MCP Performance Benchmark Report
Generated: 2024-01-02 03:04:05
Model: qwen3:8b
Iterations: 3
Warmup Runs: 1

## System Information
- CPU: Test CPU

## Inference
### Prompt 1: Hello
- Samples: 3/3
- Min: 0.500s
- Max: 1.500s
- Mean: 1.000s
- Median: 1.000s

## GPU Utilization
### GPU Load
- Skipped: nvidia-smi not found

## Recommendations
- [ACCEPTABLE] Prompt 1: Hello: inference latency is acceptable (1.000s mean, 1-3s)
"""


class TestThresholds:
    @pytest.mark.parametrize(
        "value, tier",
        [(0.05, Tier.GOOD), (0.1, Tier.ACCEPTABLE), (0.3, Tier.ACCEPTABLE), (0.5, Tier.POOR)],
    )
    def test_classify_boundaries(self, value, tier):
        assert MCP_LATENCY.classify(value) == tier

    def test_unit_mismatch_rejected(self):
        with pytest.raises(ValueError):
            MetricSpec("gpu_temperature", "Temperature", "K", GPU_HEAT)

    def test_inverted_limits_rejected(self):
        with pytest.raises(ValueError):
            Threshold("latency", "s", 5.0, 1.0)


class TestRecommend:
    """Test threshold-based recommendation lines."""

    def test_tiers(self):
        sections = [
            completed("inference_1", "Prompt 1", "Inference", [0.5]),
            completed("inference_2", "Prompt 2", "Inference", [2.0]),
            completed("inference_3", "Prompt 3", "Inference", [4.0]),
        ]

        lines = recommend(sections)

        assert lines[0].startswith("[GOOD] Prompt 1: inference latency is good")
        assert lines[1].startswith("[ACCEPTABLE] Prompt 2")
        assert lines[2] == "[POOR] Prompt 3: inference latency is poor (4.000s mean, >= 3s)"

    def test_no_recommendation_without_data(self):
        sections = [
            completed("inference_1", "Prompt 1", "Inference", []),
            skipped("gpu_utilization", "GPU Load", "GPU Utilization", "nvidia-smi not found"),
            completed("x", "No threshold", "Other", [1.0], spec=duration_metric()),
        ]

        assert recommend(sections) == []


class TestReportGenerator:
    """Test deterministic rendering."""

    def test_exact_render(self):
        report = build_report(
            [
                completed("inference_1", "Prompt 1: Hello", "Inference", [0.5, 1.0, 1.5]),
                skipped("gpu_utilization", "GPU Load", "GPU Utilization", "nvidia-smi not found"),
            ]
        )

        assert ReportGenerator().render(report) == EXPECTED

    def test_render_is_repeatable(self):
        report = build_report([completed("inference_1", "Prompt 1", "Inference", [0.2, 0.4])])
        generator = ReportGenerator()

        assert generator.render(report) == generator.render(report)

    def test_undefined_statistics_render_as_no_data(self):
        report = build_report([completed("inference_1", "Prompt 1", "Inference", [])])

        text = ReportGenerator().render(report)

        assert "- Samples: 0/3" in text
        assert "- Mean: no data" in text
        assert "- No thresholds apply to the collected data" in text
        assert "0.000" not in text

    def test_failed_iterations_and_multi_metric_headings(self):
        spec_temp = MetricSpec("gpu_temperature", "Temperature", "°C", GPU_HEAT)
        section = SuiteSection(
            suite_name="gpu_utilization",
            title="GPU Load",
            section="GPU Utilization",
            status=SuiteStatus.COMPLETED,
            metrics=(duration_metric(), spec_temp),
            statistics=(
                summarize([1.0, 1.2], 0, suite_name="gpu_utilization"),
                SuiteStatistics("gpu_utilization", "gpu_temperature", "°C", 70.0, 72.0, 71.0, 71.0, 2),
            ),
            iterations=3,
            failed_iterations=1,
        )

        text = ReportGenerator().render(build_report([section]))

        assert "### GPU Load - Duration" in text
        assert "### GPU Load - Temperature" in text
        assert "- Failed iterations: 1" in text
        assert "- Max: 72.000°C" in text
        assert "[GOOD] GPU Load: GPU temperature is good (71.000°C mean, < 75°C)" in text

    def test_write_overwrites_file(self, tmp_path):
        output = tmp_path / "report.md"
        output.write_text("stale content that is much longer than nothing\n" * 50)
        report = build_report([completed("inference_1", "Prompt 1: Hello", "Inference", [0.5, 1.0, 1.5])])

        ReportGenerator().write(report, output)

        assert output.read_text(encoding="utf-8") == ReportGenerator().render(report)

    def test_write_to_stream(self):
        stream = io.StringIO()
        report = build_report([])

        ReportGenerator().write(report, stream)

        assert stream.getvalue().startswith("# Ollama + n8n-MCP Performance Benchmark Report\n")

    def test_report_lookup(self):
        report = build_report([completed("inference_1", "Prompt 1", "Inference", [0.5])])

        assert report.section("inference_1").status == SuiteStatus.COMPLETED
        assert report.section("missing") is None
        assert [s.metric_name for s in report.suites] == [DURATION]
