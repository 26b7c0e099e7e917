"""Running one shard of tests through the binary's name filter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shardrun.config import BinaryConfig
from shardrun.utils.subprocess_runner import (
    GENERIC_FAILURE_STATUS,
    SubprocessError,
    run_passthrough,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    """Result of running one group of tests."""

    index: int
    """Zero-based position of the group in the partition plan."""

    test_count: int
    """Number of tests assigned to the group."""

    exit_code: int
    """Exit status of the group's subprocess (0 = success)."""

    duration_ms: float = 0.0
    """Wall-clock duration of the subprocess in milliseconds."""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def build_filter_pattern(group: Sequence[str]) -> str:
    """Return a regular expression matching exactly the names in *group*.

    Names are inserted verbatim, without escaping, and the alternation is
    anchored on both sides so ``TestFoo`` does not also select ``TestFooBar``.
    """
    return "^(" + "|".join(group) + ")$"


def build_group_command(
    executable: str | Path,
    group: Sequence[str],
    test_args: Sequence[str],
    *,
    binary: BinaryConfig | None = None,
) -> list[str]:
    """Build the argv for running *group*, with *test_args* appended unchanged."""
    profile = binary or BinaryConfig()
    return [str(executable), profile.run_flag, build_filter_pattern(group), *test_args]


async def run_group(
    executable: str | Path,
    group: Sequence[str],
    test_args: Sequence[str],
    *,
    binary: BinaryConfig | None = None,
    index: int = 0,
) -> RunOutcome:
    """Run the tests in *group* with output relayed to this process.

    A binary that cannot be started counts as a failed group with the
    generic failure status; the error is not raised.
    """
    command = build_group_command(executable, group, test_args, binary=binary)

    try:
        result = await run_passthrough(command)
    except SubprocessError as exc:
        logger.warning("Shard %d could not start: %s", index, exc)
        return RunOutcome(index=index, test_count=len(group), exit_code=GENERIC_FAILURE_STATUS)

    logger.info(
        "Shard %d finished %d tests with exit status %d in %.0fms",
        index,
        len(group),
        result.returncode,
        result.duration_ms,
    )
    return RunOutcome(
        index=index,
        test_count=len(group),
        exit_code=result.returncode,
        duration_ms=result.duration_ms,
    )
