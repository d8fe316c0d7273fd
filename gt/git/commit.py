"""Git commit operations."""

from dataclasses import dataclass
from pathlib import Path

from gt.git.runner import run_git, GitResult

# Field/record separators for git log --format parsing
_FS = "\x1f"
_RS = "\x1e"
_LOG_FORMAT = _FS.join(["%H", "%an", "%ae", "%at", "%P", "%B"]) + _RS


@dataclass(frozen=True)
class Commit:
    """An immutable commit as read back from git log."""
    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: int
    parents: tuple[str, ...] = ()

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def summary(self) -> str:
        return self.message.splitlines()[0] if self.message else ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


def stage_files(repo: Path, files: list[str]) -> GitResult:
    """Stage specific files."""
    return run_git(["add", "--"] + files, repo)


def stage_all(repo: Path) -> GitResult:
    """Stage all changes (new, modified, deleted)."""
    return run_git(["add", "-A"], repo)


def commit(repo: Path, message: str) -> GitResult:
    """Create a commit with the given message."""
    return run_git(["commit", "-m", message], repo)


def get_identity(repo: Path) -> tuple[str, str] | None:
    """Get the configured (user.name, user.email), or None if either is unset."""
    name = run_git(["config", "user.name"], repo)
    email = run_git(["config", "user.email"], repo)
    if not (name.success and email.success):
        return None
    if not name.stdout.strip() or not email.stdout.strip():
        return None
    return name.stdout.strip(), email.stdout.strip()


def parse_log(output: str) -> list[Commit]:
    """Parse output of git log using the record format above."""
    commits = []
    for record in output.split(_RS):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(_FS)
        if len(fields) != 6:
            continue
        sha, name, email, ts, parents, message = fields
        try:
            timestamp = int(ts)
        except ValueError:
            timestamp = 0
        commits.append(Commit(
            sha=sha,
            message=message.strip(),
            author_name=name,
            author_email=email,
            timestamp=timestamp,
            parents=tuple(parents.split()),
        ))
    return commits


def get_commit_history(repo: Path, ref: str = "HEAD", count: int = 10, skip: int = 0) -> list[Commit]:
    """Get up to `count` commits reachable from ref, newest first."""
    result = run_git(
        ["log", f"--format={_LOG_FORMAT}", f"--max-count={count}", f"--skip={skip}", ref],
        repo,
    )
    if not result.success:
        return []
    return parse_log(result.stdout)


def get_commit(repo: Path, ref: str = "HEAD") -> Commit | None:
    """Read a single commit, or None if ref does not resolve."""
    commits = get_commit_history(repo, ref, count=1)
    return commits[0] if commits else None
