"""StackBench command line entry point.

Runs the Ollama + n8n-MCP benchmark and prints (or saves) the report.

Exit codes:
    0  benchmark completed, possibly with skipped suites
    1  fatal failure (missing precondition, service not ready, startup failed)
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from stackbench.config import Settings, get_settings
from stackbench.core.exceptions import StackBenchError
from stackbench.services.benchmark import ReportGenerator, run_benchmark

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackbench",
        description="Performance benchmark for Ollama + n8n-MCP",
    )
    parser.add_argument(
        "--iterations",
        type=_positive_int,
        default=settings.iterations,
        help=f"Number of measured iterations per suite (default: {settings.iterations})",
    )
    parser.add_argument(
        "--warmup",
        type=_non_negative_int,
        default=settings.warmup_runs,
        help=f"Number of warmup runs per suite (default: {settings.warmup_runs})",
    )
    parser.add_argument("--output", help="Write the report to FILE instead of stdout")
    parser.add_argument(
        "--gpu-only",
        action="store_true",
        help="Only run GPU-related suites (combined with --mcp-only: run both)",
    )
    parser.add_argument(
        "--mcp-only",
        action="store_true",
        help="Only run MCP-related suites (combined with --gpu-only: run both)",
    )
    parser.add_argument("--model", default=settings.ollama_model, help="Ollama model to benchmark")
    parser.add_argument(
        "--no-start",
        action="store_true",
        help="Do not try to start services that are down",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    return parser


def report_fatal(error: StackBenchError) -> None:
    """Short diagnosis on stderr"""
    print(f"error: {error.message}", file=sys.stderr)
    print(f"  kind: {error.error_type}", file=sys.stderr)
    for key, value in error.details.items():
        print(f"  {key}: {value}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    try:
        base = get_settings()
    except ValidationError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return 1

    args = build_parser(base).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug or base.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = base.model_copy(
        update={
            "iterations": args.iterations,
            "warmup_runs": args.warmup,
            "gpu_only": args.gpu_only,
            "mcp_only": args.mcp_only,
            "ollama_model": args.model,
            "start_services": base.start_services and not args.no_start,
            "debug": args.debug or base.debug,
        }
    )

    logger.info("Starting Ollama + n8n-MCP Performance Benchmark...")
    try:
        report = asyncio.run(run_benchmark(settings))
    except StackBenchError as e:
        report_fatal(e)
        return 1

    try:
        ReportGenerator().write(report, args.output or sys.stdout)
    except OSError as e:
        print(f"error: cannot write report: {e}", file=sys.stderr)
        return 1

    logger.info("Benchmark completed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
