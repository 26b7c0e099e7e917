"""Parallel execution of a test binary, one subprocess per test group."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shardrun.config import DEFAULT_DIRECT_RUN_THRESHOLD, BinaryConfig
from shardrun.sharding.direct_runner import run_direct
from shardrun.sharding.group_runner import RunOutcome, run_group
from shardrun.sharding.prober import discover_tests
from shardrun.sharding.splitter import split_into_groups
from shardrun.utils.subprocess_runner import GENERIC_FAILURE_STATUS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


def available_cpus() -> int:
    """Return how many CPUs this process may run on."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


@dataclass
class ParallelRunConfig:
    """Configuration for parallel test execution."""

    parallelism: int = 0
    """Number of parallel shards (0 = number of available CPUs)."""

    direct_run_threshold: int = DEFAULT_DIRECT_RUN_THRESHOLD
    """Suites with at most this many tests run directly without sharding."""

    binary: BinaryConfig = field(default_factory=BinaryConfig)
    """Listing and filtering conventions of the target binary."""

    def resolved_parallelism(self) -> int:
        """Return the number of groups to split the suite into."""
        if self.parallelism > 0:
            return self.parallelism
        return available_cpus()


class AggregateExitCode:
    """Process-wide exit status shared by concurrently finishing shards.

    Only failures are recorded and each one overwrites the previous, so
    the value is 0 until some shard fails and afterwards holds the status
    of the last failing shard to finish.
    """

    def __init__(self) -> None:
        self.value = 0

    def record(self, exit_code: int) -> None:
        if exit_code != 0:
            self.value = exit_code


def should_shard(test_count: int, config: ParallelRunConfig) -> bool:
    """Return True when *test_count* tests are worth splitting into shards."""
    return test_count > config.direct_run_threshold


async def run_groups_parallel(
    executable: str | Path,
    groups: Sequence[Sequence[str]],
    test_args: Sequence[str],
    *,
    binary: BinaryConfig | None = None,
) -> int:
    """Run every non-empty group concurrently and reduce their statuses.

    All groups run to completion regardless of failures in their siblings.

    Returns:
        0 if every group succeeded, otherwise the exit status of the last
        failing group to finish.
    """
    aggregate = AggregateExitCode()

    async def _run(index: int, group: Sequence[str]) -> RunOutcome:
        outcome = await run_group(executable, group, test_args, binary=binary, index=index)
        aggregate.record(outcome.exit_code)
        return outcome

    shard_tasks = [_run(i, group) for i, group in enumerate(groups) if group]
    if not shard_tasks:
        return 0

    shard_results = await asyncio.gather(*shard_tasks, return_exceptions=True)

    for result in shard_results:
        if isinstance(result, BaseException):
            logger.warning("Shard failed: %s", result)
            aggregate.record(GENERIC_FAILURE_STATUS)

    return aggregate.value


async def run_tests_sharded(
    executable: str | Path,
    test_args: Sequence[str],
    *,
    config: ParallelRunConfig | None = None,
) -> int:
    """Discover the binary's tests and run them in parallel shards.

    Falls back to a single direct run when the suite has no more than
    ``direct_run_threshold`` tests.

    Returns:
        The process exit status for the whole invocation.

    Raises:
        DiscoveryError: If the binary cannot list its tests.
    """
    run_config = config or ParallelRunConfig()

    tests = await discover_tests(executable, binary=run_config.binary)

    if not should_shard(len(tests), run_config):
        logger.info(
            "%d tests is at or below the sharding threshold of %d, running directly",
            len(tests),
            run_config.direct_run_threshold,
        )
        return await run_direct(executable, test_args)

    groups = split_into_groups(tests, run_config.resolved_parallelism())
    logger.info("Running %d tests across %d shards", len(tests), len(groups))

    return await run_groups_parallel(executable, groups, test_args, binary=run_config.binary)
