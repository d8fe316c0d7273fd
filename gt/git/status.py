"""Git status operations: working tree classification and upstream sync."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gt.git.runner import run_git

logger = logging.getLogger(__name__)

# Porcelain XY pairs that mean "unmerged"
CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

INDEX_CHANGE_CODES = set("MADRCT")
WORKTREE_CHANGE_CODES = set("MDT")


@dataclass
class WorkingTreeStatus:
    """Point-in-time classification of the working tree and index."""
    staged: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)
    conflicted: list[str] = field(default_factory=list)
    added_count: int = 0
    deleted_count: int = 0

    @property
    def has_staged_changes(self) -> bool:
        return bool(self.staged)

    @property
    def has_untracked_files(self) -> bool:
        return bool(self.untracked)

    @property
    def has_uncommitted_changes(self) -> bool:
        return bool(self.staged or self.modified or self.conflicted)

    @property
    def modified_count(self) -> int:
        return len(self.modified)

    @property
    def untracked_count(self) -> int:
        return len(self.untracked)

    @property
    def is_clean(self) -> bool:
        return not self.has_uncommitted_changes and not self.has_untracked_files


class SyncState(str, Enum):
    UP_TO_DATE = "up_to_date"
    AHEAD = "ahead"
    BEHIND = "behind"
    DIVERGED = "diverged"
    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    NO_TRACKING = "no_tracking"


@dataclass(frozen=True)
class SyncStatus:
    """Relationship between a local branch and its remote-tracking ref."""
    state: SyncState
    ahead: int = 0
    behind: int = 0

    def describe(self) -> str:
        if self.state == SyncState.UP_TO_DATE:
            return "up to date"
        if self.state == SyncState.AHEAD:
            return f"ahead by {self.ahead} commit(s)"
        if self.state == SyncState.BEHIND:
            return f"behind by {self.behind} commit(s)"
        if self.state == SyncState.DIVERGED:
            return f"diverged ({self.ahead} ahead, {self.behind} behind)"
        if self.state == SyncState.LOCAL_ONLY:
            return "not pushed (local only)"
        if self.state == SyncState.REMOTE_ONLY:
            return "exists only on remote"
        return "no tracking information"


def parse_porcelain(output: str) -> WorkingTreeStatus:
    """Parse `git status --porcelain=v1 -z` output.

    Renames (R) and copies (C) carry a second NUL-terminated entry with the
    source path; the destination path is what gets reported.
    """
    status = WorkingTreeStatus()
    entries = output.split('\0')
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue

        code = entry[:2]
        path = entry[3:]
        x, y = code[0], code[1]

        if x in ('R', 'C'):
            # Skip the source path entry
            i += 1

        if code == "??":
            status.untracked.append(path)
            continue
        if code == "!!":
            continue
        if code in CONFLICT_CODES:
            status.conflicted.append(path)
            continue

        if x in INDEX_CHANGE_CODES:
            status.staged.append(path)
            if x == 'A':
                status.added_count += 1
            elif x == 'D':
                status.deleted_count += 1
        if y in WORKTREE_CHANGE_CODES:
            status.modified.append(path)
            if y == 'D' and x != 'D':
                status.deleted_count += 1

    return status


def check_status(repo: Path) -> WorkingTreeStatus:
    """Classify every changed path into staged/modified/untracked/conflicted.

    Returns an empty (clean) status if git fails, matching the parsed-value
    convention of this package.
    """
    result = run_git(
        ["status", "--porcelain=v1", "-z", "--untracked-files=all"], repo
    )
    if not result.success:
        logger.warning(f"git status failed: {result.error}")
        return WorkingTreeStatus()
    return parse_porcelain(result.stdout)


def is_clean(repo: Path) -> bool:
    """True iff there are no uncommitted changes and no untracked files."""
    return check_status(repo).is_clean


def get_conflicted_files(repo: Path) -> list[str]:
    """Get list of files with unresolved conflicts."""
    result = run_git(["diff", "--name-only", "--diff-filter=U"], repo)
    if not result.success:
        return []
    return [f for f in result.stdout.splitlines() if f.strip()]


def get_git_dir(repo: Path) -> Path | None:
    """Absolute path of the repository's git directory, or None outside a repo."""
    result = run_git(["rev-parse", "--absolute-git-dir"], repo)
    if result.success and result.stdout.strip():
        return Path(result.stdout.strip())
    return None


def get_toplevel(repo: Path) -> Path | None:
    """Root of the working tree containing repo, or None outside a repo."""
    result = run_git(["rev-parse", "--show-toplevel"], repo)
    if result.success and result.stdout.strip():
        return Path(result.stdout.strip())
    return None


def is_rebase_in_progress(repo: Path) -> bool:
    """Check for an interrupted rebase (rebase-merge or rebase-apply)."""
    git_dir = get_git_dir(repo)
    if git_dir is None:
        return False
    return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()


def is_merge_in_progress(repo: Path) -> bool:
    """Check for an interrupted merge (MERGE_HEAD present)."""
    git_dir = get_git_dir(repo)
    if git_dir is None:
        return False
    return (git_dir / "MERGE_HEAD").exists()


def _count_divergence(repo: Path, local_ref: str, remote_ref: str) -> tuple[int, int] | None:
    result = run_git(
        ["rev-list", "--left-right", "--count", f"{local_ref}...{remote_ref}"], repo
    )
    if not result.success:
        return None
    parts = result.stdout.split()
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def sync_status(repo: Path, remote: str, branch: str | None = None) -> SyncStatus:
    """
    Compare a local branch tip with refs/remotes/<remote>/<branch>.

    Args:
        repo: Path to repository
        remote: Remote name (e.g. "origin")
        branch: Local branch name; defaults to the current branch

    Returns:
        SyncStatus; NO_TRACKING on detached HEAD or when neither ref exists
    """
    if branch is None:
        result = run_git(["branch", "--show-current"], repo)
        branch = result.stdout.strip() if result.success else ""
        if not branch:
            return SyncStatus(SyncState.NO_TRACKING)

    local_ref = f"refs/heads/{branch}"
    remote_ref = f"refs/remotes/{remote}/{branch}"

    local = run_git(["rev-parse", "--verify", "--quiet", local_ref], repo)
    upstream = run_git(["rev-parse", "--verify", "--quiet", remote_ref], repo)

    if local.success and upstream.success:
        if local.stdout.strip() == upstream.stdout.strip():
            return SyncStatus(SyncState.UP_TO_DATE)
        counts = _count_divergence(repo, local_ref, remote_ref)
        if counts is None:
            return SyncStatus(SyncState.NO_TRACKING)
        ahead, behind = counts
        if ahead and behind:
            return SyncStatus(SyncState.DIVERGED, ahead=ahead, behind=behind)
        if ahead:
            return SyncStatus(SyncState.AHEAD, ahead=ahead)
        if behind:
            return SyncStatus(SyncState.BEHIND, behind=behind)
        return SyncStatus(SyncState.UP_TO_DATE)
    if local.success:
        return SyncStatus(SyncState.LOCAL_ONLY)
    if upstream.success:
        return SyncStatus(SyncState.REMOTE_ONLY)
    return SyncStatus(SyncState.NO_TRACKING)
