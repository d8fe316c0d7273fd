"""
Network operations with bounded retry.

push, fetch and pull-with-rebase run through RetryPolicy: every transport
failure is retried after a fixed blocking delay until max_attempts is
spent, then surfaced as NetworkTimeout. Conflicts from the rebase half of
pull_rebase are never retried.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from gt.git.remote import fetch, push, remote_exists
from gt.git.runner import GitResult
from gt.lib.config import RepoConfig
from gt.lib.constants import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS
from gt.lib.errors import NetworkTimeout, RemoteNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and fixed delay between attempts."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_seconds: float = DEFAULT_DELAY_SECONDS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    @classmethod
    def from_config(cls, config: RepoConfig) -> "RetryPolicy":
        return cls(max_attempts=config.max_attempts, delay_seconds=config.delay_seconds)


def retry(
    description: str,
    operation: Callable[[], GitResult],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> GitResult:
    """
    Run operation until it succeeds or the attempt budget is spent.

    Args:
        description: Human-readable operation name for logs and errors
        operation: Callable performing one attempt
        policy: Attempt budget and delay
        sleep: Blocking sleep, injectable for tests

    Returns:
        The first successful GitResult

    Raises:
        NetworkTimeout: after policy.max_attempts failures
    """
    last_error = ""
    for attempt in range(1, policy.max_attempts + 1):
        result = operation()
        if result.success:
            if attempt > 1:
                logger.info(f"{description} succeeded on attempt {attempt}")
            return result

        last_error = result.error
        logger.warning(
            f"{description} failed (attempt {attempt}/{policy.max_attempts}): {last_error}"
        )
        if attempt < policy.max_attempts:
            sleep(policy.delay_seconds)

    raise NetworkTimeout(description, policy.max_attempts, last_error)


class NetworkOps:
    """Retried push/fetch/pull-rebase against the configured remote."""

    def __init__(
        self,
        repo: Path,
        config: RepoConfig,
        branches,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            repo: Repository working directory
            config: Resolved repository config (remote name, retry budget)
            branches: BranchEngine used for the rebase half of pull_rebase
            policy: Override the config's retry budget
            sleep: Blocking sleep between attempts
        """
        self.repo = repo
        self.remote = config.remote_name
        self.branches = branches
        self.policy = policy or RetryPolicy.from_config(config)
        self.sleep = sleep

    def _require_remote(self) -> None:
        if not remote_exists(self.repo, self.remote):
            raise RemoteNotFound(self.remote)

    def push(self, branch: str, set_upstream: bool = True, force_with_lease: bool = False) -> GitResult:
        """Push branch to the remote, setting upstream by default."""
        self._require_remote()
        return retry(
            f"push {self.remote}/{branch}",
            lambda: push(self.repo, self.remote, branch, set_upstream, force_with_lease),
            self.policy,
            self.sleep,
        )

    def fetch(self, branch: str | None = None) -> GitResult:
        """Fetch the remote, or a single branch of it."""
        self._require_remote()
        target = f"{self.remote}/{branch}" if branch else self.remote
        return retry(
            f"fetch {target}",
            lambda: fetch(self.repo, self.remote, branch),
            self.policy,
            self.sleep,
        )

    def pull_rebase(self, branch: str) -> None:
        """Fetch branch from the remote, then rebase the current branch onto it.

        Raises:
            NetworkTimeout: fetch kept failing
            RebaseConflict: local commits conflict with the fetched tip
        """
        self.fetch(branch)
        self.branches.rebase(f"{self.remote}/{branch}")
