"""
gt init - Create a new repository with gt's main branch.
"""

import logging
import os
from pathlib import Path

from gt.git.runner import run_git
from gt.git.status import get_git_dir
from gt.lib.constants import DEFAULT_MAIN_BRANCH, EXIT_SUCCESS
from gt.lib.errors import GitOperationError, OperationNotPermitted

logger = logging.getLogger(__name__)


def run_init(path: Path, main_branch: str = DEFAULT_MAIN_BRANCH, dry_run: bool = False) -> Path:
    """
    Initialize a git repository at path with HEAD on main_branch.

    Returns:
        The repository path

    Raises:
        OperationNotPermitted: path is already inside a repository root
    """
    path = path.resolve()
    git_dir = get_git_dir(path) if path.exists() else None
    if git_dir is not None and git_dir.parent == path:
        raise OperationNotPermitted(f"{path} is already a git repository")

    if dry_run:
        print(f"[dry-run] would initialize repository at {path} (branch {main_branch})")
        return path

    path.mkdir(parents=True, exist_ok=True)
    result = run_git(["init", "--quiet"], path)
    if not result.success:
        raise GitOperationError("init", result.error)

    # Unborn HEAD: point it at the main branch regardless of init.defaultBranch
    result = run_git(["symbolic-ref", "HEAD", f"refs/heads/{main_branch}"], path)
    if not result.success:
        raise GitOperationError("symbolic-ref", result.error)

    print(f"Initialized repository at {path} (branch {main_branch})")
    return path


def cmd_init(args) -> int:
    """Entry point for 'gt init'. Runs without a repository context."""
    main_branch = args.main_branch or os.environ.get("DEFAULT_MAIN_BRANCH") or DEFAULT_MAIN_BRANCH
    run_init(Path(args.path), main_branch=main_branch, dry_run=args.dry_run)
    return EXIT_SUCCESS
