"""Test discovery by asking the binary to list its tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shardrun.config import BinaryConfig
from shardrun.utils.subprocess_runner import SubprocessError, run_subprocess

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """Raised when the test binary cannot list its tests."""


def parse_test_list(output: str, prefix: str) -> list[str]:
    """Extract test names from listing output.

    Each line is stripped; blank lines and lines not starting with
    *prefix* (benchmarks, examples, fuzz targets, trailing noise) are
    dropped.  Order and duplicates are preserved.
    """
    tests: list[str] = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line and line.startswith(prefix):
            tests.append(line)
    return tests


async def discover_tests(
    executable: str | Path,
    *,
    binary: BinaryConfig | None = None,
) -> list[str]:
    """Run *executable* in listing mode and return the test names it reports.

    Raises:
        DiscoveryError: If the binary cannot be started or exits non-zero.
    """
    profile = binary or BinaryConfig()
    command = [str(executable), profile.list_flag, profile.list_pattern]

    try:
        result = await run_subprocess(command, check=True)
    except SubprocessError as exc:
        detail = exc.result.stderr.strip()
        message = f"failed to list tests: {exc}"
        if detail:
            message = f"{message}\n{detail}"
        raise DiscoveryError(message) from exc

    tests = parse_test_list(result.stdout, profile.test_prefix)
    logger.info("Discovered %d tests in %s", len(tests), executable)
    return tests
