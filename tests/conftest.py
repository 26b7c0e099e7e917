"""Shared fixtures: a fake compiled test binary."""

from __future__ import annotations

import json
import stat
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

# The script mimics a Go test binary: ``-test.list PATTERN`` prints the
# test names, ``-test.run REGEX`` "runs" the matching tests.  Every run
# writes a JSON record of what it was asked to do into LOG_DIR.
_FAKE_BINARY = """\
#!{python}
import json
import os
import re
import sys

TESTS = {tests!r}
EXTRA_LIST_LINES = {extra!r}
FAILING = {failing!r}
LIST_EXIT = {list_exit!r}
LOG_DIR = {log_dir!r}

args = sys.argv[1:]

if "-test.list" in args:
    for name in TESTS:
        print(name)
    for line in EXTRA_LIST_LINES:
        print(line)
    if LIST_EXIT:
        sys.stderr.write("listing exploded\\n")
    sys.exit(LIST_EXIT)

pattern = None
rest = list(args)
if "-test.run" in args:
    i = args.index("-test.run")
    pattern = args[i + 1]
    rest = args[:i] + args[i + 2:]

selected = [t for t in TESTS if pattern is None or re.search(pattern, t)]
with open(os.path.join(LOG_DIR, "run-%d.json" % os.getpid()), "w") as fh:
    json.dump({{"pattern": pattern, "args": rest, "selected": selected}}, fh)

code = 0
for name in selected:
    print("=== RUN   " + name)
    if name in FAILING:
        print("--- FAIL: " + name)
        code = max(code, FAILING[name])
    else:
        print("--- PASS: " + name)
sys.stdout.flush()
sys.exit(code)
"""


@dataclass
class FakeBinary:
    """Handle on a generated fake test binary and the runs it recorded."""

    path: Path
    log_dir: Path
    tests: list[str] = field(default_factory=list)

    def runs(self) -> list[dict[str, object]]:
        """Return the recorded run invocations, ordered by first selected test."""
        records = [json.loads(p.read_text()) for p in sorted(self.log_dir.glob("run-*.json"))]
        return sorted(
            records,
            key=lambda r: self.tests.index(r["selected"][0]) if r["selected"] else -1,
        )


@pytest.fixture()
def make_fake_binary(tmp_path: Path) -> Callable[..., FakeBinary]:
    """Factory producing executable fake test binaries under *tmp_path*."""
    counter = 0

    def _make(
        tests: list[str],
        *,
        extra_list_lines: list[str] | None = None,
        failing: dict[str, int] | None = None,
        list_exit: int = 0,
    ) -> FakeBinary:
        nonlocal counter
        counter += 1
        log_dir = tmp_path / f"runs-{counter}"
        log_dir.mkdir()
        path = tmp_path / f"fake-{counter}.test"
        path.write_text(
            _FAKE_BINARY.format(
                python=sys.executable,
                tests=list(tests),
                extra=list(extra_list_lines or []),
                failing=dict(failing or {}),
                list_exit=list_exit,
                log_dir=str(log_dir),
            ),
            encoding="utf-8",
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeBinary(path=path, log_dir=log_dir, tests=list(tests))

    return _make
