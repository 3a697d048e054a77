"""Custom exceptions for StackBench.

Fatal errors abort a run before any report is written; the CLI turns them
into exit code 1. Non-fatal errors are absorbed by the orchestrator and only
show up as "skipped" or "no data" markers in the report.
"""

from typing import Any, Optional


class StackBenchError(Exception):
    """Base exception for all StackBench errors."""

    fatal = True

    def __init__(
        self,
        message: str,
        error_type: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        super().__init__(self.message)


class PreconditionMissing(StackBenchError):
    """A required tool or environment variable is absent."""

    def __init__(self, message: str, condition: Optional[str] = None):
        details = {"condition": condition} if condition else {}
        super().__init__(
            message=message,
            error_type="precondition_missing",
            details=details,
        )


class ReadinessTimeout(StackBenchError):
    """A required collaborator never became healthy."""

    def __init__(self, service: str, message: str, attempts: int = 0, elapsed: float = 0.0):
        super().__init__(
            message=f"{service} is not ready: {message}",
            error_type="readiness_timeout",
            details={"service": service, "attempts": attempts, "elapsed": round(elapsed, 2)},
        )


class StartupFailed(StackBenchError):
    """Neither the managed nor the direct start of a service succeeded."""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=f"Failed to start {service}: {message}",
            error_type="startup_failed",
            details={"service": service},
        )


class SuiteFailed(StackBenchError):
    """Every measured iteration of a required suite failed."""

    def __init__(self, suite: str, message: str):
        super().__init__(
            message=f"Suite '{suite}' failed: {message}",
            error_type="suite_failed",
            details={"suite": suite},
        )


class ToolUnavailable(StackBenchError):
    """An optional local tool (e.g. the GPU probe) is absent."""

    fatal = False

    def __init__(self, tool: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"{tool} not found",
            error_type="tool_unavailable",
            details={"tool": tool},
        )


class OperationFailure(StackBenchError):
    """A single benchmark operation failed."""

    fatal = False

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            error_type="operation_failure",
            details=details,
        )


class SamplingUnavailable(StackBenchError):
    """A metric probe returned no data."""

    fatal = False

    def __init__(self, probe: str, message: str = "no data"):
        super().__init__(
            message=f"{probe}: {message}",
            error_type="sampling_unavailable",
            details={"probe": probe},
        )
