"""Reporters for launcher diagnostics."""

from __future__ import annotations

from shardrun.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "reporter",
]
