"""Splitting a discovered test list into contiguous groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


def split_into_groups(tests: Sequence[str], group_count: int) -> list[list[str]]:
    """Divide *tests* into contiguous groups, keeping discovery order.

    Every group but the last gets ``len(tests) // group_count`` tests and
    the last one also takes the remainder, so ``[T1..T25]`` split four
    ways gives sizes ``[6, 6, 6, 7]``.

    A non-positive *group_count* is treated as 1.  When there are fewer
    tests than requested groups the count is clamped to ``len(tests)``.
    An empty *tests* yields *group_count* empty groups, which callers
    must skip.

    Args:
        tests: Test names in discovery order.
        group_count: Requested number of groups.

    Returns:
        The groups, whose concatenation equals *tests*.
    """
    group_count = max(group_count, 1)
    if not tests:
        return [[] for _ in range(group_count)]
    group_count = min(group_count, len(tests))

    group_size, remainder = divmod(len(tests), group_count)

    groups: list[list[str]] = []
    start = 0
    for i in range(group_count):
        size = group_size + (remainder if i == group_count - 1 else 0)
        groups.append(list(tests[start : start + size]))
        start += size
    return groups
