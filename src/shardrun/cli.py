"""Command-line entry point for shardrun."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from shardrun import __version__
from shardrun.config import ShardrunConfig, load_config, validate_config
from shardrun.reporters.terminal import reporter
from shardrun.sharding.parallel_runner import (
    ParallelRunConfig,
    run_tests_sharded,
    should_shard,
)
from shardrun.sharding.prober import DiscoveryError, discover_tests
from shardrun.sharding.splitter import split_into_groups

logger = logging.getLogger(__name__)

_LOG_FORMAT = "shardrun: %(levelname)s %(name)s: %(message)s"
_DEBUG_VERBOSITY = 2


def _configure_logging(verbosity: int) -> None:
    if not verbosity:
        return
    level = logging.DEBUG if verbosity >= _DEBUG_VERBOSITY else logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr, force=True)


def _load_run_config(
    path: str,
    parallelism: int | None,
    threshold: int | None,
) -> ParallelRunConfig:
    """Build the runner configuration from ``.shardrun.yml`` plus CLI overrides."""
    try:
        config: ShardrunConfig = load_config(path)
    except Exception as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    if parallelism is not None:
        config.sharding.parallelism = parallelism
    if threshold is not None:
        config.sharding.direct_run_threshold = threshold

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    return ParallelRunConfig(
        parallelism=config.sharding.parallelism,
        direct_run_threshold=config.sharding.direct_run_threshold,
        binary=config.binary,
    )


def _show_plan(executable: str, run_config: ParallelRunConfig) -> None:
    tests = asyncio.run(discover_tests(executable, binary=run_config.binary))

    if not should_shard(len(tests), run_config):
        reporter.print_info(
            f"{len(tests)} tests (threshold {run_config.direct_run_threshold}): "
            "would run directly without sharding"
        )
        return

    groups = split_into_groups(tests, run_config.resolved_parallelism())
    reporter.print_shard_plan(groups)


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
@click.argument("executable", type=str)
@click.argument("test_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "-p",
    "--parallelism",
    type=click.IntRange(min=0),
    default=None,
    help="Number of parallel shards (0 = available CPUs). Overrides .shardrun.yml.",
)
@click.option(
    "--threshold",
    type=click.IntRange(min=0),
    default=None,
    help="Run suites with at most this many tests directly, without sharding.",
)
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Directory containing .shardrun.yml.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="List the tests and print the shard plan without running anything.",
)
@click.option("-v", "--verbose", count=True, help="Log progress to stderr (-vv for debug).")
@click.version_option(version=__version__, prog_name="shardrun")
@click.pass_context
def cli(  # noqa: PLR0913
    ctx: click.Context,
    executable: str,
    test_args: tuple[str, ...],
    *,
    parallelism: int | None,
    threshold: int | None,
    path: str,
    dry_run: bool,
    verbose: int,
) -> None:
    """Run the tests of EXECUTABLE in parallel shards.

    The binary is asked to list its tests; small suites run directly,
    larger ones are split into one contiguous group per CPU and each
    group runs as its own process restricted to its tests by name.
    TEST_ARGS are passed to every process unchanged.  Options for
    shardrun itself must come before EXECUTABLE.

    The exit status is 0 when every shard passes and non-zero otherwise.
    """
    _configure_logging(verbose)
    run_config = _load_run_config(path, parallelism, threshold)

    try:
        if dry_run:
            _show_plan(executable, run_config)
            return
        exit_code = asyncio.run(
            run_tests_sharded(executable, list(test_args), config=run_config)
        )
    except DiscoveryError as e:
        reporter.print_error(f"Error getting test list: {e}")
        raise click.Abort from e

    logger.info("Exiting with status %d", exit_code)
    ctx.exit(exit_code)
