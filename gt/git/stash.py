"""Git stash operations."""

import re
from dataclasses import dataclass
from pathlib import Path

from gt.git.runner import run_git, GitResult

STASH_REF_PATTERN = re.compile(r'^stash@\{(\d+)\}$')


@dataclass
class Stash:
    """A stash entry. Index 0 is the most recent."""
    index: int
    message: str
    timestamp: int
    sha: str

    @property
    def ref(self) -> str:
        return f"stash@{{{self.index}}}"


def stash_ref(index: int) -> str:
    return f"stash@{{{index}}}"


def parse_stash_list(output: str) -> list[Stash]:
    """Parse `git stash list --format=%gd%x00%H%x00%ct%x00%gs` output."""
    stashes = []
    for line in output.splitlines():
        fields = line.split('\0')
        if len(fields) != 4:
            continue
        ref, sha, ts, subject = fields
        match = STASH_REF_PATTERN.match(ref)
        if not match:
            continue
        try:
            timestamp = int(ts)
        except ValueError:
            timestamp = 0
        stashes.append(Stash(
            index=int(match.group(1)),
            message=subject,
            timestamp=timestamp,
            sha=sha,
        ))
    return sorted(stashes, key=lambda s: s.index)


def list_stashes(repo: Path) -> list[Stash]:
    """List stash entries, newest first."""
    result = run_git(["stash", "list", "--format=%gd%x00%H%x00%ct%x00%gs"], repo)
    if not result.success:
        return []
    return parse_stash_list(result.stdout)


def stash_push(repo: Path, message: str, include_untracked: bool = True) -> GitResult:
    """Save working tree and index into a new stash entry."""
    args = ["stash", "push"]
    if include_untracked:
        args.append("--include-untracked")
    args += ["-m", message]
    return run_git(args, repo)


def stash_apply(repo: Path, index: int, restore_index: bool = True) -> GitResult:
    """Apply a stash entry without removing it."""
    args = ["stash", "apply"]
    if restore_index:
        args.append("--index")
    args.append(stash_ref(index))
    return run_git(args, repo)


def stash_drop(repo: Path, index: int) -> GitResult:
    """Remove a stash entry."""
    return run_git(["stash", "drop", stash_ref(index)], repo)
