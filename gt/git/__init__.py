"""Git primitives for gt.

This package is the only place that talks to the git executable.
The engines in gt.engine build typed, error-raising operations on top.

Return type conventions:
- Functions returning GitResult: Caller must check .success before using output.
  Examples: stage_files(), commit(), fetch(), push(), stash_push()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: branch_exists(), is_ancestor(), remote_exists(), is_clean()
- Functions returning parsed values (str, list, dataclass): Return empty/None on failure.
  Examples: get_current_branch() -> None, list_stashes() -> [], check_status() -> clean status
"""

from gt.git.runner import (
    GitResult,
    run_git,
)
from gt.git.status import (
    WorkingTreeStatus,
    SyncState,
    SyncStatus,
    check_status,
    is_clean,
    sync_status,
    get_conflicted_files,
    get_git_dir,
    get_toplevel,
    is_rebase_in_progress,
    is_merge_in_progress,
)
from gt.git.branch import (
    Branch,
    get_current_branch,
    branch_exists,
    remote_branch_exists,
    get_commit_sha,
    is_ancestor,
    get_merge_base,
    get_upstream,
    create_branch_ref,
    delete_branch_ref,
    checkout,
    list_branches,
)
from gt.git.commit import (
    Commit,
    stage_files,
    stage_all,
    commit,
    get_identity,
    get_commit,
    get_commit_history,
)
from gt.git.merge import (
    merge_ff_only,
    merge_no_ff,
    merge_abort,
    rebase_onto,
    rebase_abort,
)
from gt.git.remote import (
    remote_exists,
    get_remote_urls,
    fetch,
    push,
)
from gt.git.stash import (
    Stash,
    list_stashes,
    stash_push,
    stash_apply,
    stash_drop,
)

__all__ = [
    # runner
    "GitResult",
    "run_git",
    # status
    "WorkingTreeStatus",
    "SyncState",
    "SyncStatus",
    "check_status",
    "is_clean",
    "sync_status",
    "get_conflicted_files",
    "get_git_dir",
    "get_toplevel",
    "is_rebase_in_progress",
    "is_merge_in_progress",
    # branch
    "Branch",
    "get_current_branch",
    "branch_exists",
    "remote_branch_exists",
    "get_commit_sha",
    "is_ancestor",
    "get_merge_base",
    "get_upstream",
    "create_branch_ref",
    "delete_branch_ref",
    "checkout",
    "list_branches",
    # commit
    "Commit",
    "stage_files",
    "stage_all",
    "commit",
    "get_identity",
    "get_commit",
    "get_commit_history",
    # merge
    "merge_ff_only",
    "merge_no_ff",
    "merge_abort",
    "rebase_onto",
    "rebase_abort",
    # remote
    "remote_exists",
    "get_remote_urls",
    "fetch",
    "push",
    # stash
    "Stash",
    "list_stashes",
    "stash_push",
    "stash_apply",
    "stash_drop",
]
