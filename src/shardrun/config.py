"""Configuration parsing from ``.shardrun.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".shardrun.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

DEFAULT_DIRECT_RUN_THRESHOLD = 20


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ShardingConfig:
    """Shard fan-out configuration."""

    parallelism: int = 0
    """Number of shards to run at once (0 = number of available CPUs)."""

    direct_run_threshold: int = DEFAULT_DIRECT_RUN_THRESHOLD
    """Suites with this many tests or fewer run as one direct subprocess."""


@dataclass
class BinaryConfig:
    """Command-line conventions of the target test binary.

    Defaults follow compiled Go test binaries (``go test -c``).
    """

    list_flag: str = "-test.list"
    """Flag that makes the binary print test names instead of running them."""

    list_pattern: str = ".*"
    """Pattern passed to the listing flag."""

    run_flag: str = "-test.run"
    """Flag that restricts execution to tests matching a regular expression."""

    test_prefix: str = "Test"
    """Listed names must start with this prefix to be treated as tests."""


@dataclass
class ShardrunConfig:
    """Complete launcher configuration."""

    sharding: ShardingConfig = field(default_factory=ShardingConfig)
    binary: BinaryConfig = field(default_factory=BinaryConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        logger.warning("Ignoring %s section in %s: expected a mapping", name, CONFIG_FILENAME)
        return {}
    return section


def _parse_sharding_config(raw: dict[str, Any]) -> ShardingConfig:
    """Parse sharding configuration from raw YAML."""
    sharding_raw = _section(raw, "sharding")

    return ShardingConfig(
        parallelism=int(
            sharding_raw.get("parallelism", os.environ.get("SHARDRUN_PARALLELISM", "0"))
        ),
        direct_run_threshold=int(
            sharding_raw.get(
                "direct_run_threshold",
                os.environ.get(
                    "SHARDRUN_DIRECT_RUN_THRESHOLD", str(DEFAULT_DIRECT_RUN_THRESHOLD)
                ),
            )
        ),
    )


def _parse_binary_config(raw: dict[str, Any]) -> BinaryConfig:
    """Parse target binary conventions from raw YAML."""
    binary_raw = _section(raw, "binary")
    default = BinaryConfig()

    return BinaryConfig(
        list_flag=str(binary_raw.get("list_flag", default.list_flag)),
        list_pattern=str(binary_raw.get("list_pattern", default.list_pattern)),
        run_flag=str(binary_raw.get("run_flag", default.run_flag)),
        test_prefix=str(binary_raw.get("test_prefix", default.test_prefix)),
    )


def load_config(root: str | Path) -> ShardrunConfig:
    """Load and parse ``.shardrun.yml`` from *root*.

    Falls back to defaults and environment variables when the YAML file
    is missing or incomplete.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If a numeric setting cannot be converted to an integer.
        TypeError: If a numeric setting is present but empty.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        logger.debug("Loaded configuration from %s", config_file)

    return ShardrunConfig(
        sharding=_parse_sharding_config(raw),
        binary=_parse_binary_config(raw),
        raw=raw,
    )


def _validate_sharding_config(sharding: ShardingConfig) -> list[str]:
    errors: list[str] = []

    if sharding.parallelism < 0:
        errors.append(
            f"sharding.parallelism must be non-negative (got: {sharding.parallelism})"
        )

    if sharding.direct_run_threshold < 0:
        errors.append(
            "sharding.direct_run_threshold must be non-negative "
            f"(got: {sharding.direct_run_threshold})"
        )

    return errors


def _validate_binary_config(binary: BinaryConfig) -> list[str]:
    errors: list[str] = []

    for name in ("list_flag", "run_flag", "test_prefix"):
        if not getattr(binary, name).strip():
            errors.append(f"binary.{name} must not be empty")

    return errors


def validate_config(config: ShardrunConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []
    errors.extend(_validate_sharding_config(config.sharding))
    errors.extend(_validate_binary_config(config.binary))
    return errors
