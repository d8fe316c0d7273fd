"""Git merge and rebase primitives."""

from pathlib import Path

from gt.git.runner import run_git, GitResult

# Rebases replay many commits; allow more time than a single command
REBASE_TIMEOUT = 120


def merge_ff_only(repo: Path, ref: str) -> GitResult:
    """Fast-forward the current branch to ref, failing if that is impossible."""
    return run_git(["merge", "--ff-only", ref], repo)


def merge_no_ff(repo: Path, ref: str, message: str) -> GitResult:
    """Three-way merge ref into the current branch, always creating a merge commit."""
    return run_git(["merge", "--no-ff", "--no-edit", "-m", message, ref], repo)


def merge_abort(repo: Path) -> GitResult:
    return run_git(["merge", "--abort"], repo)


def rebase_onto(repo: Path, ref: str) -> GitResult:
    """Replay the current branch's commits onto ref."""
    return run_git(["rebase", ref], repo, timeout=REBASE_TIMEOUT)


def rebase_abort(repo: Path) -> GitResult:
    return run_git(["rebase", "--abort"], repo)
