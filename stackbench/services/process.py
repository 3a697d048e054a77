"""Local command execution.

Thin async wrapper around subprocesses used by the GPU probe, the model
listing suite and the service launcher.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command"""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def command_exists(binary: str) -> bool:
    """Check whether a binary is on PATH."""
    return shutil.which(binary) is not None


async def run_command(argv: list[str], timeout: float = 30.0) -> CommandResult:
    """Run a command to completion and capture its output.

    Raises:
        FileNotFoundError: If the binary does not exist.
        asyncio.TimeoutError: If the command does not finish in time; the
            process is killed before the error propagates.
    """
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.debug(f"Command timed out after {timeout}s: {' '.join(argv)}")
        raise

    return CommandResult(
        argv=tuple(argv),
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


async def spawn_background(argv: list[str]) -> asyncio.subprocess.Process:
    """Start a long-running command detached from our stdio.

    The child gets its own session so it outlives the benchmark process.
    """
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
        start_new_session=True,
    )
    logger.info(f"Started {argv[0]} in background (PID {process.pid})")
    return process
