"""Test sharding support for parallel test execution."""

from shardrun.sharding.direct_runner import run_direct
from shardrun.sharding.group_runner import (
    RunOutcome,
    build_filter_pattern,
    build_group_command,
    run_group,
)
from shardrun.sharding.parallel_runner import (
    AggregateExitCode,
    ParallelRunConfig,
    available_cpus,
    run_groups_parallel,
    run_tests_sharded,
    should_shard,
)
from shardrun.sharding.prober import DiscoveryError, discover_tests, parse_test_list
from shardrun.sharding.splitter import split_into_groups

__all__ = [
    "AggregateExitCode",
    "DiscoveryError",
    "ParallelRunConfig",
    "RunOutcome",
    "available_cpus",
    "build_filter_pattern",
    "build_group_command",
    "discover_tests",
    "parse_test_list",
    "run_direct",
    "run_group",
    "run_groups_parallel",
    "run_tests_sharded",
    "should_shard",
    "split_into_groups",
]
