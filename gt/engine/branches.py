"""
Branch & merge engine.

Typed branch operations on top of the gt.git primitives. Every failure is
raised as a GtError subclass; nothing here prompts or prints.
"""

import logging
from pathlib import Path

from gt.engine.fsm import MergeOperationFSM
from gt.git.branch import (
    branch_exists,
    checkout,
    create_branch_ref,
    delete_branch_ref,
    get_commit_sha,
    get_current_branch,
    get_merge_base,
    get_upstream,
    is_ancestor,
)
from gt.git.commit import get_identity
from gt.git.merge import (
    merge_abort,
    merge_ff_only,
    merge_no_ff,
    rebase_abort,
    rebase_onto,
)
from gt.git.status import (
    get_conflicted_files,
    is_merge_in_progress,
    is_rebase_in_progress,
)
from gt.lib.config import RepoConfig
from gt.lib.constants import BRANCH_NAME_EXTRA_CHARS, BRANCH_SEPARATORS
from gt.lib.errors import (
    BranchAlreadyExists,
    BranchNotFound,
    BranchNotMerged,
    GitOperationError,
    IdentityNotConfigured,
    InvalidBranchName,
    MergeConflict,
    OperationNotPermitted,
    RebaseConflict,
)

logger = logging.getLogger(__name__)


def validate_branch_name(name: str) -> None:
    """
    Check a branch name against the naming rule.

    Raises:
        InvalidBranchName: with the first rule the name breaks
    """
    if not name:
        raise InvalidBranchName(name, "name is empty")
    if name[0] in BRANCH_SEPARATORS or name[-1] in BRANCH_SEPARATORS:
        raise InvalidBranchName(name, "must not start or end with a separator")
    if ".." in name or "//" in name:
        raise InvalidBranchName(name, "must not contain '..' or '//'")
    if not all(c.isalnum() or c in BRANCH_NAME_EXTRA_CHARS for c in name):
        raise InvalidBranchName(name, "only letters, digits, '-', '_' and '/' are allowed")


class BranchEngine:
    """Branch creation, checkout, deletion, merge and rebase for one repository."""

    def __init__(self, repo: Path, config: RepoConfig):
        self.repo = repo
        self.config = config
        self.last_operation: MergeOperationFSM | None = None

    def current_branch(self) -> str | None:
        return get_current_branch(self.repo)

    def _head_sha(self, operation: str) -> str:
        sha = get_commit_sha(self.repo, "HEAD")
        if sha is None:
            raise GitOperationError(
                operation, "HEAD does not point at a commit",
                hint="Create an initial commit first.",
            )
        return sha

    def _resolve_start_point(self, base: str | None) -> str:
        """Resolve base to a commit: local branch, remote-tracking branch, then any ref."""
        if base is None:
            return self._head_sha("branch")
        candidates = [
            f"refs/heads/{base}",
            f"refs/remotes/{self.config.remote_name}/{base}",
            base,
        ]
        for ref in candidates:
            sha = get_commit_sha(self.repo, ref)
            if sha:
                return sha
        raise BranchNotFound(base)

    def create_branch(self, name: str, base: str | None = None) -> str:
        """
        Create a branch at base (default HEAD) without moving HEAD.

        Returns:
            SHA the new branch points at
        """
        validate_branch_name(name)
        if branch_exists(self.repo, name):
            raise BranchAlreadyExists(name)

        start_point = self._resolve_start_point(base)
        result = create_branch_ref(self.repo, name, start_point)
        if not result.success:
            raise GitOperationError("branch", result.error)

        logger.info(f"Created branch {name} at {start_point[:7]}")
        return start_point

    def checkout_branch(self, name: str) -> None:
        """Switch to an existing local branch. Never discards local changes."""
        if not branch_exists(self.repo, name):
            raise BranchNotFound(name)

        result = checkout(self.repo, name)
        if not result.success:
            hint = None
            if "would be overwritten" in result.error:
                hint = "Commit or stash your changes first."
            raise GitOperationError("checkout", result.error, hint=hint)
        logger.info(f"Checked out {name}")

    def create_and_checkout(self, name: str, base: str | None = None) -> None:
        """Create a branch and switch to it.

        If the checkout fails the new branch is left in place.
        """
        self.create_branch(name, base)
        self.checkout_branch(name)

    def merge_targets(self, name: str) -> list[str]:
        """Refs a branch may be merged into for safe deletion: upstream, then main."""
        targets = []
        upstream = get_upstream(self.repo, name)
        if upstream and get_commit_sha(self.repo, upstream):
            targets.append(upstream)

        main = self.config.main_branch
        if name != main and branch_exists(self.repo, main):
            targets.append(main)
        remote_main = f"{self.config.remote_name}/{main}"
        if get_commit_sha(self.repo, f"refs/remotes/{remote_main}"):
            targets.append(remote_main)
        return targets

    def is_merged(self, name: str) -> bool:
        """True if the branch tip is contained in any of its merge targets."""
        ref = f"refs/heads/{name}"
        return any(is_ancestor(self.repo, ref, target) for target in self.merge_targets(name))

    def delete_branch(self, name: str, force: bool = False) -> None:
        """
        Delete a local branch.

        Without force the branch must be fully merged into its upstream or
        the main branch.

        Raises:
            BranchNotFound, OperationNotPermitted, BranchNotMerged, GitOperationError
        """
        if not branch_exists(self.repo, name):
            raise BranchNotFound(name)
        if name == self.current_branch():
            raise OperationNotPermitted(
                f"Cannot delete the current branch '{name}'",
                hint="Switch to another branch first.",
            )
        if not force and not self.is_merged(name):
            raise BranchNotMerged(name, self.config.main_branch)

        result = delete_branch_ref(self.repo, name)
        if not result.success:
            raise GitOperationError("branch -D", result.error)
        logger.info(f"Deleted branch {name}{' (forced)' if force else ''}")

    def _begin(self, kind: str, target: str) -> MergeOperationFSM:
        op = MergeOperationFSM(kind, target)
        self.last_operation = op
        op.validate()
        return op

    def rebase(self, target: str) -> None:
        """
        Bring the current branch up to date with target.

        No-op when target is already contained in HEAD. Fast-forwards when
        HEAD is an ancestor of target. Otherwise replays local commits.

        Raises:
            BranchNotFound: target does not resolve
            RebaseConflict: replay stopped on conflicts (rebase left in progress)
            GitOperationError: git refused (e.g. dirty working tree)
        """
        op = self._begin("rebase", target)

        target_sha = get_commit_sha(self.repo, target)
        if target_sha is None:
            op.abort()
            raise BranchNotFound(target)
        try:
            head_sha = self._head_sha("rebase")
        except GitOperationError:
            op.abort()
            raise

        if head_sha == target_sha or is_ancestor(self.repo, target_sha, head_sha):
            op.up_to_date()
            logger.info(f"Already up to date with {target}")
            return

        if get_merge_base(self.repo, head_sha, target_sha) == head_sha:
            op.choose_fast_forward()
            result = merge_ff_only(self.repo, target_sha)
            if not result.success:
                op.abort()
                raise GitOperationError("merge --ff-only", result.error)
            op.commit()
            logger.info(f"Fast-forwarded to {target} ({target_sha[:7]})")
            return

        op.choose_rebase()
        result = rebase_onto(self.repo, target)
        if result.success:
            op.commit()
            logger.info(f"Rebased onto {target}")
            return

        if is_rebase_in_progress(self.repo):
            op.conflict()
            raise RebaseConflict(
                f"Rebase onto {target} stopped on conflicts",
                files=get_conflicted_files(self.repo),
            )
        op.abort()
        raise GitOperationError("rebase", result.error)

    def merge(self, source: str) -> None:
        """
        Merge source into the current branch.

        No-op when source is already contained in HEAD; fast-forward when
        possible; otherwise a merge commit with both parents.

        Raises:
            BranchNotFound: source does not resolve
            IdentityNotConfigured: a merge commit is needed but no identity is set
            MergeConflict: conflicts found; nothing committed, merge left in progress
            GitOperationError: git refused for another reason
        """
        op = self._begin("merge", source)

        source_sha = get_commit_sha(self.repo, source)
        if source_sha is None:
            op.abort()
            raise BranchNotFound(source)
        try:
            head_sha = self._head_sha("merge")
        except GitOperationError:
            op.abort()
            raise

        if head_sha == source_sha or is_ancestor(self.repo, source_sha, head_sha):
            op.up_to_date()
            logger.info(f"Already up to date with {source}")
            return

        if get_merge_base(self.repo, head_sha, source_sha) == head_sha:
            op.choose_fast_forward()
            result = merge_ff_only(self.repo, source_sha)
            if not result.success:
                op.abort()
                raise GitOperationError("merge --ff-only", result.error)
            op.commit()
            logger.info(f"Fast-forwarded to {source} ({source_sha[:7]})")
            return

        if get_identity(self.repo) is None:
            op.abort()
            raise IdentityNotConfigured("No committer identity configured for the merge commit")

        op.choose_three_way()
        into = self.current_branch() or "HEAD"
        result = merge_no_ff(self.repo, source, f"Merge branch '{source}' into {into}")
        if result.success:
            op.commit()
            logger.info(f"Merged {source} into {into}")
            return

        conflicted = get_conflicted_files(self.repo)
        if conflicted or is_merge_in_progress(self.repo):
            op.conflict()
            raise MergeConflict(f"Merging {source} into {into} produced conflicts", files=conflicted)
        op.abort()
        raise GitOperationError("merge", result.error)

    def abort_operation(self) -> str:
        """
        Abort an in-progress rebase or merge.

        Returns:
            "rebase" or "merge", whichever was aborted

        Raises:
            OperationNotPermitted: nothing to abort
        """
        if is_rebase_in_progress(self.repo):
            kind, result = "rebase", rebase_abort(self.repo)
        elif is_merge_in_progress(self.repo):
            kind, result = "merge", merge_abort(self.repo)
        else:
            raise OperationNotPermitted("No merge or rebase in progress")

        if not result.success:
            raise GitOperationError(f"{kind} --abort", result.error)
        if self.last_operation is not None and self.last_operation.can("abort"):
            self.last_operation.abort()
        logger.info(f"Aborted {kind}")
        return kind
