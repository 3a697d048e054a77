"""Health check and service readiness operations.

Polls a collaborator's health endpoint until it answers with a 2xx status,
the attempt budget is spent, or the total timeout elapses, whichever comes
first. The total timeout is a hard bound: every probe and every pause is
clipped to the time that is left.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

# Health check configuration defaults
HEALTH_CHECK_INTERVAL = 2.0  # seconds between checks
HEALTH_CHECK_TIMEOUT = 60.0  # total wall-clock budget
HEALTH_CHECK_MAX_ATTEMPTS = 30
HEALTH_CHECK_REQUEST_TIMEOUT = 10.0  # timeout for each health check request


@dataclass(frozen=True)
class ServiceEndpoint:
    """A collaborator service and where to probe its health."""

    name: str
    base_url: str
    health_path: str = "/health"

    @property
    def health_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.health_path.lstrip('/')}"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for one readiness check."""

    max_attempts: int = HEALTH_CHECK_MAX_ATTEMPTS
    interval: float = HEALTH_CHECK_INTERVAL
    total_timeout: float = HEALTH_CHECK_TIMEOUT
    attempt_timeout: float = HEALTH_CHECK_REQUEST_TIMEOUT


class ReadinessStatus(str, Enum):
    """Outcome of a readiness check"""

    READY = "ready"
    TIMED_OUT = "timed_out"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class ReadinessResult:
    """Result of waiting for one service"""

    service: str
    status: ReadinessStatus
    attempts: int
    elapsed: float
    last_error: str | None = None

    @property
    def ready(self) -> bool:
        return self.status == ReadinessStatus.READY


async def check_health(
    client: httpx.AsyncClient,
    endpoint: ServiceEndpoint,
    timeout: float = HEALTH_CHECK_REQUEST_TIMEOUT,
) -> bool:
    """Single health probe; any transport error counts as unhealthy."""
    try:
        response = await asyncio.wait_for(client.get(endpoint.health_url, timeout=timeout), timeout)
        return response.is_success
    except (httpx.HTTPError, asyncio.TimeoutError) as e:
        logger.debug(f"{endpoint.name} health probe failed: {type(e).__name__}: {e}")
        return False


async def wait_until_ready(
    endpoint: ServiceEndpoint,
    policy: RetryPolicy,
    client: httpx.AsyncClient | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ReadinessResult:
    """Poll ``endpoint`` until it is healthy or ``policy`` is exhausted.

    Args:
        endpoint: Service to probe
        policy: Attempt budget, interval and total timeout
        client: Optional shared HTTP client; a private one is created otherwise
        clock: Monotonic time source
        sleep: Pause between attempts

    Returns:
        ReadinessResult with status READY, TIMED_OUT (deadline reached or
        the service answered but never healthily) or UNREACHABLE (attempt
        budget spent without a single HTTP response)
    """
    if client is None:
        async with httpx.AsyncClient(timeout=policy.attempt_timeout) as own_client:
            return await wait_until_ready(endpoint, policy, own_client, clock, sleep)

    url = endpoint.health_url
    logger.info(f"Waiting for {endpoint.name} at {url}")

    start = clock()
    deadline = start + policy.total_timeout
    attempts = 0
    responded = False
    last_error: str | None = None

    while attempts < policy.max_attempts:
        remaining = deadline - clock()
        if remaining <= 0:
            break

        attempts += 1
        timeout = min(policy.attempt_timeout, remaining)
        try:
            response = await asyncio.wait_for(client.get(url, timeout=timeout), timeout)
            responded = True
            if response.is_success:
                elapsed = clock() - start
                logger.debug(f"{endpoint.name} health check {attempts}: ready")
                logger.info(f"{endpoint.name} ready after {elapsed:.1f}s ({attempts} checks)")
                return ReadinessResult(endpoint.name, ReadinessStatus.READY, attempts, elapsed)
            last_error = f"HTTP {response.status_code}"
        except httpx.ConnectError:
            last_error = "connection refused"
        except (httpx.TimeoutException, asyncio.TimeoutError):
            last_error = "timeout"
        except httpx.HTTPError as e:
            last_error = f"{type(e).__name__}: {e}"

        logger.debug(f"{endpoint.name} health check {attempts}: {last_error}")

        remaining = deadline - clock()
        if attempts >= policy.max_attempts or remaining <= 0:
            break
        await sleep(min(policy.interval, remaining))

    elapsed = clock() - start
    if elapsed < policy.total_timeout and not responded:
        status = ReadinessStatus.UNREACHABLE
    else:
        status = ReadinessStatus.TIMED_OUT

    logger.error(f"{endpoint.name} not ready after {elapsed:.1f}s ({attempts} checks): {last_error}")
    return ReadinessResult(endpoint.name, status, attempts, elapsed, last_error)
