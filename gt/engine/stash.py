"""
Stash manager.

Saves and restores working-tree snapshots around operations that need a
clean tree. A stash entry is only ever dropped after it applied cleanly.
"""

import logging
from pathlib import Path

from gt.git.branch import get_current_branch
from gt.git.stash import Stash, list_stashes, stash_apply, stash_drop, stash_push
from gt.git.status import check_status, get_conflicted_files
from gt.lib.errors import GitOperationError, StashConflict, StashNotFound

logger = logging.getLogger(__name__)


class StashManager:
    """Stack-ordered stash operations for one repository."""

    def __init__(self, repo: Path):
        self.repo = repo

    def list_stashes(self) -> list[Stash]:
        """Stash entries, newest (index 0) first."""
        return list_stashes(self.repo)

    def _require(self, index: int) -> Stash:
        for entry in self.list_stashes():
            if entry.index == index:
                return entry
        raise StashNotFound(index)

    def create_stash(self, message: str | None = None, include_untracked: bool = True) -> Stash | None:
        """
        Snapshot working tree and index, leaving a clean tree at HEAD.

        Returns:
            The new entry (index 0), or None if there was nothing to stash
        """
        status = check_status(self.repo)
        if status.is_clean or (not include_untracked and not status.has_uncommitted_changes):
            logger.info("Nothing to stash")
            return None

        if message is None:
            branch = get_current_branch(self.repo) or "detached HEAD"
            message = f"gt auto-stash on {branch}"

        result = stash_push(self.repo, message, include_untracked)
        if not result.success:
            raise GitOperationError("stash push", result.error)

        entries = self.list_stashes()
        if not entries:
            raise GitOperationError("stash push", "stash entry was not created")
        logger.info(f"Stashed changes as {entries[0].ref}: {message}")
        return entries[0]

    def _apply(self, index: int) -> None:
        result = stash_apply(self.repo, index)
        if result.success:
            return
        conflicted = get_conflicted_files(self.repo)
        if conflicted or "conflict" in result.error.lower():
            raise StashConflict(index, conflicted)
        raise GitOperationError("stash apply", result.error)

    def apply_stash(self, index: int = 0) -> Stash:
        """Apply an entry, keeping it on the stack."""
        entry = self._require(index)
        self._apply(index)
        logger.info(f"Applied {entry.ref}")
        return entry

    def pop_stash(self, index: int = 0) -> Stash:
        """
        Apply an entry and drop it only if it applied cleanly.

        Raises:
            StashNotFound: no entry at index
            StashConflict: application conflicted; the entry is kept
        """
        entry = self._require(index)
        self._apply(index)
        self.drop_stash(index)
        return entry

    def drop_stash(self, index: int = 0) -> None:
        """Remove an entry; later entries shift down by one."""
        self._require(index)
        result = stash_drop(self.repo, index)
        if not result.success:
            raise GitOperationError("stash drop", result.error)
        logger.info(f"Dropped stash@{{{index}}}")
