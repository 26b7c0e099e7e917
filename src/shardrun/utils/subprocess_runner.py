"""Subprocess execution primitives for listing and running test binaries.

Two flavours are provided: :func:`run_subprocess` captures output (used
for the listing invocation), while :func:`run_passthrough` binds the
child's standard streams to the launcher's own so that test output is
relayed live.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

GENERIC_FAILURE_STATUS = 1
"""Exit status used when the real status of a child cannot be determined."""

_SIGNAL_STATUS_BASE = 128


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process."""

    stdout: str
    """Standard output captured from the process (empty for passthrough runs)."""

    stderr: str
    """Standard error captured from the process (empty for passthrough runs)."""

    success: bool
    """True if returncode is 0."""

    duration_ms: float = 0.0
    """Actual duration of execution in milliseconds."""


def exit_status(returncode: int | None) -> int:
    """Translate a Python ``returncode`` into a process exit status.

    Negative return codes mean the child was killed by a signal; these map
    to ``128 + signum`` like a POSIX shell reports them.  An unknown status
    maps to :data:`GENERIC_FAILURE_STATUS`.
    """
    if returncode is None:
        return GENERIC_FAILURE_STATUS
    if returncode < 0:
        return _SIGNAL_STATUS_BASE - returncode
    return returncode


def _describe_status(returncode: int | None) -> str:
    if returncode is None:
        return "unknown status"
    if returncode >= 0:
        return f"exit status {returncode}"
    try:
        name = signal.Signals(-returncode).name
    except ValueError:
        name = str(-returncode)
    return f"signal {name}"


async def run_subprocess(command: Sequence[str], *, check: bool = False) -> SubprocessResult:
    """Execute a command and capture its output.

    Args:
        command: Command and arguments as a sequence (e.g. ``['./pkg.test', '-test.list', '.*']``).
        check: If True, raise SubprocessError on non-zero exit code.

    Returns:
        SubprocessResult with exit code, output, and metadata.

    Raises:
        SubprocessError: If the command cannot be started, or if check=True
            and the command returns a non-zero exit code.
        ValueError: If command is empty.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    logger.debug("Running subprocess: %s", " ".join(str(c) for c in command))

    start_time = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        logger.debug("Command not found: %s", command[0], exc_info=True)
        raise SubprocessError(
            f"Command not found: {command[0]}",
            result=_spawn_failure(exc),
        ) from exc
    except OSError as exc:
        logger.debug("Could not start %s", command[0], exc_info=True)
        raise SubprocessError(
            f"Subprocess execution failed: {exc}",
            result=_spawn_failure(exc),
        ) from exc

    stdout_bytes, stderr_bytes = await process.communicate()
    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = exit_status(process.returncode)

    result = SubprocessResult(
        returncode=returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        success=returncode == 0,
        duration_ms=duration_ms,
    )

    logger.debug(
        "Subprocess completed: %s, duration=%.2fms",
        _describe_status(process.returncode),
        duration_ms,
    )

    if check and not result.success:
        raise SubprocessError(
            f"Command failed with {_describe_status(process.returncode)}: "
            f"{' '.join(str(c) for c in command)}",
            result=result,
        )

    return result


async def run_passthrough(
    command: Sequence[str],
    *,
    inherit_stdin: bool = False,
) -> SubprocessResult:
    """Run a command with its output streams bound to this process's own.

    Nothing is captured: the child writes straight to the launcher's
    stdout and stderr.  Standard input is inherited only when
    *inherit_stdin* is set, otherwise the child reads from the null device.
    The call waits for the child to exit.

    Raises:
        SubprocessError: If the command cannot be started.
        ValueError: If command is empty.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    logger.debug("Running passthrough subprocess: %s", " ".join(str(c) for c in command))

    start_time = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=None if inherit_stdin else asyncio.subprocess.DEVNULL,
        )
    except FileNotFoundError as exc:
        logger.debug("Command not found: %s", command[0], exc_info=True)
        raise SubprocessError(
            f"Command not found: {command[0]}",
            result=_spawn_failure(exc),
        ) from exc
    except OSError as exc:
        logger.debug("Could not start %s", command[0], exc_info=True)
        raise SubprocessError(
            f"Subprocess execution failed: {exc}",
            result=_spawn_failure(exc),
        ) from exc

    raw_returncode = await process.wait()
    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = exit_status(raw_returncode)

    logger.debug(
        "Passthrough subprocess completed: %s, duration=%.2fms",
        _describe_status(raw_returncode),
        duration_ms,
    )

    return SubprocessResult(
        returncode=returncode,
        stdout="",
        stderr="",
        success=returncode == 0,
        duration_ms=duration_ms,
    )


def _spawn_failure(exc: BaseException) -> SubprocessResult:
    return SubprocessResult(
        returncode=-1,
        stdout="",
        stderr=str(exc),
        success=False,
    )


class SubprocessError(Exception):
    """Exception raised when subprocess execution fails."""

    def __init__(self, message: str, result: SubprocessResult) -> None:
        """Initialize with error message and result.

        Args:
            message: Error description.
            result: The SubprocessResult from the failed execution.
        """
        super().__init__(message)
        self.result = result
