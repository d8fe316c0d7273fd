"""
Repository configuration for gt.

Resolves remote name, main branch and network retry budget once per
invocation from (lowest to highest precedence) built-in defaults, the
repository config file <git-dir>/gt.yaml, and environment variables.
The main branch is probed from the repository unless the config file
names one explicitly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from gt.git.branch import branch_exists, remote_branch_exists
from gt.lib import envparse
from gt.lib.constants import (
    CONFIG_FILENAME,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_MAIN_BRANCH,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REMOTE,
    MAIN_BRANCH_CANDIDATES,
)
from gt.lib.errors import ConfigError, InvalidInput
from gt.lib.validate import ValidationError, validate

logger = logging.getLogger(__name__)

CONFIG_SCHEMA = "config"

# Config file key -> value type
CONFIG_KEYS: dict[str, type] = {
    "remote_name": str,
    "main_branch": str,
    "max_attempts": int,
    "delay_seconds": float,
}

# Environment variable -> config key
ENV_KEYS = {
    "REMOTE_NAME": "remote_name",
    "MAX_ATTEMPTS": "max_attempts",
    "DELAY_SECONDS": "delay_seconds",
    "DEFAULT_MAIN_BRANCH": "main_branch",
}

# Legacy gw config_vars.sh variable -> config key
LEGACY_KEYS = dict(ENV_KEYS, MAIN_BRANCH="main_branch")

SOURCE_DEFAULT = "default"
SOURCE_FILE = "config file"
SOURCE_ENV = "environment"
SOURCE_PROBE = "repository"


@dataclass(frozen=True)
class RepoConfig:
    """Resolved, immutable configuration for one gt invocation."""
    remote_name: str = DEFAULT_REMOTE
    main_branch: str = DEFAULT_MAIN_BRANCH
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    # key -> where the value came from
    sources: dict = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str):
        if key not in CONFIG_KEYS:
            raise InvalidInput(f"Unknown config key '{key}'", hint=f"Known keys: {', '.join(CONFIG_KEYS)}")
        return getattr(self, key)

    def as_dict(self) -> dict:
        return {key: getattr(self, key) for key in CONFIG_KEYS}


def config_file_path(git_dir: Path) -> Path:
    return git_dir / CONFIG_FILENAME


def coerce_value(key: str, raw) -> str | int | float:
    """Convert a raw (usually string) value to the type of a config key.

    Raises:
        InvalidInput: unknown key or unconvertible value
    """
    if key not in CONFIG_KEYS:
        raise InvalidInput(f"Unknown config key '{key}'", hint=f"Known keys: {', '.join(CONFIG_KEYS)}")
    kind = CONFIG_KEYS[key]
    try:
        value = kind(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid value for {key}: {raw!r} (expected {kind.__name__})") from None
    if kind is str and not value.strip():
        raise InvalidInput(f"Invalid value for {key}: must not be empty")
    return value


def load_config_file(path: Path) -> dict:
    """
    Load and validate the YAML config file.

    Returns:
        Dict of config values, {} if the file does not exist

    Raises:
        ConfigError: unreadable YAML or schema violation
    """
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from None
    if data is None:
        return {}
    try:
        validate(data, CONFIG_SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from None
    return data


def save_config_file(path: Path, data: dict) -> None:
    """Validate and write the config file."""
    try:
        validate(data, CONFIG_SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"Refusing to write invalid config to {path}: {e}") from None
    path.write_text(yaml.safe_dump(data, sort_keys=True, default_flow_style=False))
    logger.info(f"Wrote config to {path}")


def set_config_value(path: Path, key: str, raw_value: str) -> dict:
    """Set one key in the config file, returning the updated contents."""
    data = load_config_file(path)
    data[key] = coerce_value(key, raw_value)
    save_config_file(path, data)
    return data


def _env_overrides(env: Mapping[str, str]) -> dict:
    """Read config overrides from environment variables.

    Invalid values are ignored with a warning so a typo never aborts a run.
    """
    overrides = {}
    for var, key in ENV_KEYS.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = coerce_value(key, raw)
        except InvalidInput:
            logger.warning(f"Ignoring invalid {var}={raw!r}")
            continue
        if key == "max_attempts" and value < 1:
            logger.warning(f"Ignoring invalid {var}={raw!r} (must be >= 1)")
            continue
        if key == "delay_seconds" and value < 0:
            logger.warning(f"Ignoring invalid {var}={raw!r} (must be >= 0)")
            continue
        overrides[key] = value
    return overrides


def probe_main_branch(repo: Path, remote: str) -> str | None:
    """Find the main branch: local main, local master, then remote-tracking equivalents."""
    for candidate in MAIN_BRANCH_CANDIDATES:
        if branch_exists(repo, candidate):
            return candidate
    for candidate in MAIN_BRANCH_CANDIDATES:
        if remote_branch_exists(repo, remote, candidate):
            return candidate
    return None


def resolve_repo_config(
    repo: Path,
    git_dir: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> RepoConfig:
    """
    Resolve configuration for this invocation.

    Args:
        repo: Repository working directory
        git_dir: Git directory holding gt.yaml (None skips the config file)
        env: Environment mapping (defaults to os.environ)

    Returns:
        Immutable RepoConfig
    """
    if env is None:
        env = os.environ

    values = {
        "remote_name": DEFAULT_REMOTE,
        "max_attempts": DEFAULT_MAX_ATTEMPTS,
        "delay_seconds": DEFAULT_DELAY_SECONDS,
    }
    sources = {key: SOURCE_DEFAULT for key in CONFIG_KEYS}

    file_values = load_config_file(config_file_path(git_dir)) if git_dir else {}
    for key, value in file_values.items():
        values[key] = CONFIG_KEYS[key](value)
        sources[key] = SOURCE_FILE

    env_values = _env_overrides(env)
    env_main = env_values.pop("main_branch", None)
    for key, value in env_values.items():
        values[key] = value
        sources[key] = SOURCE_ENV

    # Main branch: explicit file setting wins, then repository probe,
    # then environment override, then the default
    if "main_branch" not in values:
        probed = probe_main_branch(repo, values["remote_name"])
        if probed:
            values["main_branch"] = probed
            sources["main_branch"] = SOURCE_PROBE
        elif env_main:
            values["main_branch"] = env_main
            sources["main_branch"] = SOURCE_ENV
        else:
            values["main_branch"] = DEFAULT_MAIN_BRANCH

    config = RepoConfig(sources=sources, **values)
    logger.debug(f"Resolved config: {config.as_dict()} ({sources})")
    return config


def migrate_legacy_config(legacy_path: Path, config_path: Path) -> dict:
    """
    Import a legacy gw shell config into the gt config file.

    Unknown variables are skipped with a warning; existing gt settings are
    overwritten by migrated ones.

    Returns:
        The migrated key/value pairs
    """
    try:
        legacy = envparse.load_env(legacy_path)
    except FileNotFoundError:
        raise ConfigError(f"Legacy config not found: {legacy_path}") from None
    except ValueError as e:
        raise ConfigError(f"Cannot parse {legacy_path}: {e}") from None

    migrated = {}
    for var, raw in legacy.items():
        key = LEGACY_KEYS.get(var)
        if key is None:
            logger.warning(f"Skipping unsupported legacy setting {var}")
            continue
        migrated[key] = coerce_value(key, raw)

    data = load_config_file(config_path)
    data.update(migrated)
    save_config_file(config_path, data)
    return migrated
