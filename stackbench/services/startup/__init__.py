"""Service startup and readiness"""

from .health import (
    ReadinessResult,
    ReadinessStatus,
    RetryPolicy,
    ServiceEndpoint,
    check_health,
    wait_until_ready,
)
from .launcher import ServiceLauncher, StartMethod

__all__ = [
    "ServiceEndpoint",
    "RetryPolicy",
    "ReadinessStatus",
    "ReadinessResult",
    "check_health",
    "wait_until_ready",
    "ServiceLauncher",
    "StartMethod",
]
