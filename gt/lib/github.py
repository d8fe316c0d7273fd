"""
GitHub integration for ship.

Talks to GitHub only through the gh CLI, and only after the branch has
been pushed.
"""

import logging
import subprocess
from pathlib import Path

from gt.lib.types import MergeStrategy, PullRequestOptions

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30

# Hosts gh cannot talk to
UNSUPPORTED_HOSTS = ("gitlab", "bitbucket")


def check_gh_available() -> tuple[bool, str]:
    """Check gh CLI is installed and authenticated.

    Returns: (ok, error_message)
    """
    try:
        result = subprocess.run(
            ["gh", "--version"],
            capture_output=True,
            timeout=5,
        )
        if result.returncode != 0:
            return False, "GitHub CLI (gh) not installed"

        result = subprocess.run(
            ["gh", "auth", "status"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            return False, "GitHub CLI not authenticated"

        return True, ""

    except FileNotFoundError:
        return False, "GitHub CLI (gh) not found"
    except subprocess.TimeoutExpired:
        return False, "GitHub CLI timed out"


def is_supported_remote(url: str) -> bool:
    """False for remotes on hosts the gh CLI cannot serve."""
    lowered = url.lower()
    return not any(host in lowered for host in UNSUPPORTED_HOSTS)


def parse_pr_number(url: str) -> int | None:
    """Extract the PR number from a URL like https://github.com/o/r/pull/42."""
    try:
        return int(url.rstrip("/").split("/")[-1])
    except (ValueError, IndexError):
        return None


def build_pr_create_args(branch: str, base: str, options: PullRequestOptions) -> list[str]:
    """Build the gh pr create command line."""
    args = ["gh", "pr", "create", "--head", branch, "--base", options.base or base]
    if options.fill:
        args.append("--fill")
    else:
        args += ["--title", options.title, "--body", options.body or ""]
    if options.draft:
        args.append("--draft")
    for reviewer in options.reviewers:
        args += ["--reviewer", reviewer]
    for label in options.labels:
        args += ["--label", label]
    return args


def create_pull_request(
    repo_path: Path,
    branch: str,
    base: str,
    options: PullRequestOptions,
) -> tuple[bool, str, int | None]:
    """
    Create a GitHub PR for an already-pushed branch.

    Returns: (success, url_or_error, pr_number)
    """
    try:
        result = subprocess.run(
            build_pr_create_args(branch, base, options),
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=GH_TIMEOUT_SECONDS,
        )

        if result.returncode != 0:
            return False, f"Failed to create PR: {result.stderr.strip()}", None

        # gh may print warnings before the URL; the URL is the last line
        lines = result.stdout.strip().splitlines()
        pr_url = lines[-1].strip() if lines else ""
        return True, pr_url, parse_pr_number(pr_url)

    except subprocess.TimeoutExpired:
        return False, "GitHub operation timed out", None
    except (subprocess.SubprocessError, OSError) as e:
        return False, f"GitHub operation failed: {e}", None


def enable_auto_merge(
    repo_path: Path,
    pr_ref: str,
    strategy: MergeStrategy,
    delete_branch: bool = False,
) -> tuple[bool, str]:
    """
    Ask GitHub to merge a PR once its requirements are met.

    Args:
        pr_ref: PR number or URL
        strategy: Merge strategy (maps to --rebase/--squash/--merge)
        delete_branch: Also delete the remote branch after merging

    Returns: (success, message)
    """
    args = ["gh", "pr", "merge", pr_ref, strategy.gh_flag, "--auto"]
    if delete_branch:
        args.append("--delete-branch")

    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            cwd=str(repo_path),
            timeout=GH_TIMEOUT_SECONDS,
        )

        if result.returncode != 0:
            return False, f"Failed to enable auto-merge: {result.stderr.strip()}"

        return True, result.stdout.strip()

    except subprocess.TimeoutExpired:
        return False, "Merge operation timed out"
    except (subprocess.SubprocessError, OSError) as e:
        return False, f"Merge operation failed: {e}"
