"""Service startup with a two-tier fallback.

A service that already answers its health probe is left alone. Otherwise the
managed start (service manager, container runtime) is tried first, then a
direct background start of the server binary. When both tiers fail the caller
gets ``StartupFailed`` and must not proceed to readiness polling.
"""

import asyncio
import logging
from enum import Enum

import httpx

from stackbench.core.exceptions import StartupFailed
from stackbench.services.process import run_command, spawn_background
from stackbench.services.startup.health import ServiceEndpoint, check_health

logger = logging.getLogger(__name__)


class StartMethod(str, Enum):
    """How a service ended up running"""

    ALREADY_RUNNING = "already_running"
    MANAGED = "managed"
    DIRECT = "direct"


class ServiceLauncher:
    """Start one collaborator service if it is not already healthy."""

    def __init__(
        self,
        endpoint: ServiceEndpoint,
        client: httpx.AsyncClient,
        managed_start: list[str] | None = None,
        direct_start: list[str] | None = None,
        command_timeout: float = 30.0,
        startup_grace: float = 1.0,
    ):
        self.endpoint = endpoint
        self.client = client
        self.managed_start = list(managed_start or [])
        self.direct_start = list(direct_start or [])
        self.command_timeout = command_timeout
        self.startup_grace = startup_grace

    async def ensure_running(self) -> StartMethod:
        """Make sure the service has been started.

        Returns:
            The method that was used (or ALREADY_RUNNING)

        Raises:
            StartupFailed: If neither start tier succeeds
        """
        name = self.endpoint.name

        if await check_health(self.client, self.endpoint, timeout=5.0):
            logger.info(f"{name} is already running")
            return StartMethod.ALREADY_RUNNING

        errors = []

        if self.managed_start:
            error = await self._managed()
            if error is None:
                logger.info(f"{name} started via {self.managed_start[0]}")
                return StartMethod.MANAGED
            logger.warning(f"Failed to start {name} via {self.managed_start[0]}, trying direct start...")
            errors.append(error)

        if self.direct_start:
            error = await self._direct()
            if error is None:
                logger.info(f"{name} started directly")
                return StartMethod.DIRECT
            errors.append(error)

        raise StartupFailed(name, "; ".join(errors) or "no start command configured")

    async def _managed(self) -> str | None:
        """Run the managed start command; returns an error message on failure."""
        try:
            result = await run_command(self.managed_start, timeout=self.command_timeout)
        except FileNotFoundError:
            return f"{self.managed_start[0]} not found"
        except asyncio.TimeoutError:
            return f"{' '.join(self.managed_start)} timed out"

        if not result.ok:
            return f"{' '.join(self.managed_start)} exited with {result.returncode}"
        return None

    async def _direct(self) -> str | None:
        """Spawn the server in the background; it must survive the grace period."""
        try:
            process = await spawn_background(self.direct_start)
        except (FileNotFoundError, PermissionError) as e:
            return f"{self.direct_start[0]}: {e}"

        try:
            returncode = await asyncio.wait_for(process.wait(), timeout=self.startup_grace)
        except asyncio.TimeoutError:
            logger.debug(f"{self.direct_start[0]} still running after {self.startup_grace}s (PID {process.pid})")
            return None

        return f"{' '.join(self.direct_start)} exited with {returncode}"
