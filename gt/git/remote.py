"""Git remote operations.

These are single-shot transport calls; retries live in gt.engine.network.
"""

from pathlib import Path

from gt.git.runner import run_git, GitResult, NETWORK_TIMEOUT


def remote_exists(repo: Path, remote: str) -> bool:
    """Check if a named remote is configured."""
    result = run_git(["remote", "get-url", remote], repo)
    return result.success


def get_remote_urls(repo: Path) -> dict[str, str]:
    """Map remote name -> fetch URL."""
    result = run_git(["remote", "-v"], repo)
    urls: dict[str, str] = {}
    for line in result.stdout.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[2] == "(fetch)":
            urls[parts[0]] = parts[1]
    return urls


def fetch(repo: Path, remote: str = "origin", branch: str | None = None) -> GitResult:
    """Fetch from remote."""
    args = ["fetch", remote]
    if branch:
        args.append(branch)
    return run_git(args, repo, timeout=NETWORK_TIMEOUT)


def push(
    repo: Path,
    remote: str,
    branch: str,
    set_upstream: bool = True,
    force_with_lease: bool = False,
) -> GitResult:
    """Push a branch to remote, optionally setting upstream tracking."""
    args = ["push"]
    if set_upstream:
        args.append("-u")
    if force_with_lease:
        args.append("--force-with-lease")
    args += [remote, branch]
    return run_git(args, repo, timeout=NETWORK_TIMEOUT)
