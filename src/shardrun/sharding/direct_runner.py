"""Unsharded execution for suites too small to be worth splitting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shardrun.utils.subprocess_runner import (
    GENERIC_FAILURE_STATUS,
    SubprocessError,
    run_passthrough,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


async def run_direct(executable: str | Path, test_args: Sequence[str]) -> int:
    """Run *executable* once with *test_args*, as if invoked directly.

    All three standard streams are inherited.  Returns the child's exit
    status, or the generic failure status if it could not be started.
    """
    command = [str(executable), *test_args]
    try:
        result = await run_passthrough(command, inherit_stdin=True)
    except SubprocessError as exc:
        logger.warning("Direct run could not start: %s", exc)
        return GENERIC_FAILURE_STATUS
    return result.returncode
