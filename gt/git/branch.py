"""Git branch operations."""

from dataclasses import dataclass
from pathlib import Path

from gt.git.runner import run_git, GitResult


@dataclass
class Branch:
    """A local branch as reported by for-each-ref."""
    name: str
    is_current: bool = False
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    last_commit: str | None = None


def get_current_branch(repo: Path) -> str | None:
    """Get the current branch name, or None if detached HEAD."""
    result = run_git(["branch", "--show-current"], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def branch_exists(repo: Path, branch: str) -> bool:
    """Check if a local branch exists."""
    result = run_git(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"], repo)
    return result.success


def remote_branch_exists(repo: Path, remote: str, branch: str) -> bool:
    """Check if a remote-tracking branch exists (no network access)."""
    result = run_git(
        ["show-ref", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}"], repo
    )
    return result.success


def get_commit_sha(repo: Path, ref: str = "HEAD") -> str | None:
    """Get the SHA of a ref, or None if it does not resolve to a commit."""
    result = run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], repo)
    if result.success:
        return result.stdout.strip()
    return None


def is_ancestor(repo: Path, ancestor: str, descendant: str) -> bool:
    """Check if ancestor is an ancestor of (or equal to) descendant."""
    result = run_git(["merge-base", "--is-ancestor", ancestor, descendant], repo)
    return result.success


def get_merge_base(repo: Path, ref1: str, ref2: str) -> str | None:
    """Get the best common ancestor of two refs."""
    result = run_git(["merge-base", ref1, ref2], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def get_upstream(repo: Path, branch: str) -> str | None:
    """Get the configured upstream of a branch (e.g. 'origin/feature'), or None."""
    result = run_git(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{branch}@{{upstream}}"],
        repo,
    )
    if result.success:
        return result.stdout.strip() or None
    return None


def create_branch_ref(repo: Path, branch: str, start_point: str) -> GitResult:
    """Create a branch ref at start_point without touching HEAD."""
    return run_git(["branch", branch, start_point], repo)


def delete_branch_ref(repo: Path, branch: str) -> GitResult:
    """Delete a local branch ref unconditionally.

    Merge checks are the caller's responsibility; git's own -d check only
    looks at HEAD, which is not the tracking target we care about.
    """
    return run_git(["branch", "-D", branch], repo)


def checkout(repo: Path, branch: str) -> GitResult:
    """Switch to an existing local branch."""
    return run_git(["checkout", branch], repo)


def _parse_track(track: str) -> tuple[int, int]:
    """Parse '%(upstream:track,nobracket)' e.g. 'ahead 2, behind 1'."""
    ahead = behind = 0
    for part in track.split(","):
        words = part.strip().split()
        if len(words) != 2:
            continue
        try:
            if words[0] == "ahead":
                ahead = int(words[1])
            elif words[0] == "behind":
                behind = int(words[1])
        except ValueError:
            continue
    return ahead, behind


def parse_branch_listing(output: str) -> list[Branch]:
    """Parse NUL-separated for-each-ref output produced by list_branches."""
    branches = []
    for line in output.splitlines():
        if not line.strip():
            continue
        fields = line.split('\0')
        if len(fields) < 5:
            continue
        name, head, upstream, track, sha = fields[:5]
        ahead, behind = _parse_track(track)
        branches.append(Branch(
            name=name,
            is_current=head.strip() == "*",
            upstream=upstream or None,
            ahead=ahead,
            behind=behind,
            last_commit=sha or None,
        ))
    return branches


def list_branches(repo: Path) -> list[Branch]:
    """
    List branches with upstream and ahead/behind information.

    Returns:
        List of Branch, or [] on git failure
    """
    fmt = "%(refname:short)%00%(HEAD)%00%(upstream:short)%00%(upstream:track,nobracket)%00%(objectname)"
    result = run_git(["for-each-ref", f"--format={fmt}", "refs/heads"], repo)
    if not result.success:
        return []
    return parse_branch_listing(result.stdout)
