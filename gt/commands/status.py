"""
gt status - Show working tree, sync and recent history for the current branch.
"""

from datetime import datetime

from gt.git.branch import get_current_branch
from gt.git.commit import get_commit_history
from gt.git.remote import get_remote_urls, remote_exists
from gt.git.stash import list_stashes
from gt.git.status import (
    check_status,
    is_merge_in_progress,
    is_rebase_in_progress,
    sync_status,
)
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext


def run_status(ctx: WorkflowContext, remote: bool = False, log: bool = False, count: int = 10) -> None:
    """Print a status report. Only --remote touches the network (a fetch)."""
    branch = get_current_branch(ctx.repo)
    remote_name = ctx.config.remote_name

    if remote:
        if remote_exists(ctx.repo, remote_name):
            print(f"Fetching {remote_name}...")
            ctx.network.fetch()
        else:
            print(f"WARNING: Remote '{remote_name}' not configured")

    print(f"Branch:         {branch or '(detached HEAD)'}")
    print(f"Main branch:    {ctx.config.main_branch}")
    if branch:
        print(f"Sync:           {sync_status(ctx.repo, remote_name, branch).describe()} "
              f"({remote_name}/{branch})")

    if is_rebase_in_progress(ctx.repo):
        print("In progress:    rebase (git rebase --continue | --abort)")
    elif is_merge_in_progress(ctx.repo):
        print("In progress:    merge (git commit | git merge --abort)")
    print()

    status = check_status(ctx.repo)
    if status.is_clean:
        print("Working tree:   clean")
    else:
        print("Working tree:")
        print(f"  Staged:       {len(status.staged)}")
        print(f"  Modified:     {status.modified_count}")
        print(f"  Added:        {status.added_count}")
        print(f"  Deleted:      {status.deleted_count}")
        print(f"  Untracked:    {status.untracked_count}")
        if status.conflicted:
            print(f"  Conflicted:   {len(status.conflicted)}")
            for path in status.conflicted:
                print(f"    {path}")

    stashes = list_stashes(ctx.repo)
    if stashes:
        print(f"Stashes:        {len(stashes)} (latest: {stashes[0].message})")

    if remote:
        print()
        print("Remotes:")
        for name, url in sorted(get_remote_urls(ctx.repo).items()):
            print(f"  {name:<12}  {url}")

    if log:
        print()
        print("Recent commits:")
        for c in get_commit_history(ctx.repo, count=count):
            when = datetime.fromtimestamp(c.timestamp).strftime("%Y-%m-%d %H:%M")
            print(f"  {c.short_sha}  {when}  {c.author_name:<16}  {c.summary}")


def cmd_status(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt status'."""
    run_status(ctx, remote=args.remote, log=args.log, count=args.count)
    return EXIT_SUCCESS
