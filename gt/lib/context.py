"""
Per-invocation workflow context.

Bundles the repository handle, resolved config, operator prompter and
the engines an orchestrator drives. One context is built per command and
owned exclusively by it.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable

from gt.engine.branches import BranchEngine
from gt.engine.network import NetworkOps, RetryPolicy
from gt.engine.stash import StashManager
from gt.lib.config import RepoConfig
from gt.lib.prompter import Prompter

logger = logging.getLogger(__name__)


class WorkflowContext:
    """Everything an orchestrator needs for one run."""

    def __init__(
        self,
        repo: Path,
        config: RepoConfig,
        prompter: Prompter,
        dry_run: bool = False,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repo = repo
        self.config = config
        self.prompter = prompter
        self.dry_run = dry_run
        self.branches = BranchEngine(repo, config)
        self.stash = StashManager(repo)
        self.network = NetworkOps(repo, config, self.branches, policy=policy, sleep=sleep)

    def perform(self, description: str, action: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a mutating step, or just report it under --dry-run."""
        if self.dry_run:
            print(f"[dry-run] would {description}")
            return None
        logger.debug(f"Step: {description}")
        return action(*args, **kwargs)
