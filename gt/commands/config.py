"""
gt config - Show, read, write and migrate repository configuration.

Settings live in <git-dir>/gt.yaml; environment variables and repository
probing still apply on top when gt runs.
"""

import logging
from pathlib import Path

from gt.lib.config import (
    CONFIG_KEYS,
    RepoConfig,
    config_file_path,
    migrate_legacy_config,
    set_config_value,
)
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.errors import InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_LEGACY_CONFIG = Path.home() / ".gw" / "config_vars.sh"


def run_config_show(config: RepoConfig, git_dir: Path) -> None:
    path = config_file_path(git_dir)
    print(f"Config file: {path}{'' if path.exists() else ' (not created)'}")
    print()
    for key in CONFIG_KEYS:
        source = config.sources.get(key, "default")
        print(f"  {key:<14} {config.get(key)!s:<12} ({source})")


def run_config_get(config: RepoConfig, key: str) -> None:
    print(config.get(key))


def run_config_set(git_dir: Path, key: str, value: str, dry_run: bool = False) -> None:
    path = config_file_path(git_dir)
    if dry_run:
        print(f"[dry-run] would set {key}={value} in {path}")
        return
    data = set_config_value(path, key, value)
    print(f"Set {key} = {data[key]}")


def run_config_migrate(git_dir: Path, legacy_path: Path, dry_run: bool = False) -> dict:
    path = config_file_path(git_dir)
    if dry_run:
        print(f"[dry-run] would import {legacy_path} into {path}")
        return {}
    migrated = migrate_legacy_config(legacy_path, path)
    if not migrated:
        print(f"Nothing to migrate from {legacy_path}")
        return migrated
    for key, value in migrated.items():
        print(f"  {key} = {value}")
    print(f"Migrated {len(migrated)} setting(s) into {path}")
    return migrated


def cmd_config(args, config: RepoConfig, git_dir: Path) -> int:
    """Entry point for 'gt config'."""
    action = args.config_cmd or "show"
    if action == "show":
        run_config_show(config, git_dir)
    elif action == "get":
        run_config_get(config, args.key)
    elif action == "set":
        run_config_set(git_dir, args.key, args.value, dry_run=args.dry_run)
    elif action == "migrate":
        legacy = Path(args.file).expanduser() if args.file else DEFAULT_LEGACY_CONFIG
        run_config_migrate(git_dir, legacy, dry_run=args.dry_run)
    else:
        raise InvalidInput(f"Unknown config action '{action}'")
    return EXIT_SUCCESS
