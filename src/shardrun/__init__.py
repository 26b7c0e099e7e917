"""Run a compiled test binary's tests across parallel shards."""

__version__ = "0.1.0"
