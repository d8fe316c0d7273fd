"""
gt update - Bring main and the current branch up to date with the remote.
"""

import logging

from gt.git.branch import branch_exists
from gt.git.status import check_status
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import DetachedHead, GtError, StashConflict, UncommittedChanges

logger = logging.getLogger(__name__)


def run_update(
    ctx: WorkflowContext,
    force: bool = False,
    main_only: bool = False,
    stash: bool = True,
) -> None:
    """
    Refresh main from the remote and rebase the current branch onto it.

    Local changes are stashed first (unless force) and restored at the end.
    If any step fails the stash is left in place and named in the error hint.
    """
    branch = ctx.branches.current_branch()
    if branch is None:
        raise DetachedHead("Cannot update from a detached HEAD")

    main = ctx.config.main_branch
    stashed = None

    if branch != main and not branch_exists(ctx.repo, main):
        # Only known remotely: create the local branch from the remote-tracking ref
        ctx.perform(
            f"create {main} from {ctx.config.remote_name}/{main}",
            ctx.branches.create_branch, main, main,
        )

    if not force and not check_status(ctx.repo).is_clean:
        if not stash:
            raise UncommittedChanges(
                "Working tree has uncommitted changes",
                hint="Commit them with 'gt save', or drop --no-stash to stash automatically.",
            )
        stashed = ctx.perform(
            "stash local changes",
            ctx.stash.create_stash, f"gt update auto-stash on {branch}",
        )
        if stashed:
            print(f"Stashed local changes ({stashed.ref})")

    try:
        if branch == main:
            print(f"Updating {main} from {ctx.config.remote_name}...")
            ctx.perform(f"pull --rebase {ctx.config.remote_name} {main}", ctx.network.pull_rebase, main)
        else:
            ctx.perform(f"checkout {main}", ctx.branches.checkout_branch, main)
            print(f"Updating {main} from {ctx.config.remote_name}...")
            try:
                ctx.perform(f"pull --rebase {ctx.config.remote_name} {main}", ctx.network.pull_rebase, main)
            finally:
                if ctx.branches.current_branch() == main:
                    ctx.perform(f"checkout {branch}", ctx.branches.checkout_branch, branch)

            if main_only:
                print(f"Updated {main}; {branch} left as is (--main-only)")
            else:
                print(f"Rebasing {branch} onto {main}...")
                ctx.perform(f"rebase {branch} onto {main}", ctx.branches.rebase, main)
    except GtError as e:
        if stashed:
            note = f"Your local changes are saved in {stashed.ref}; restore them with 'git stash pop'."
            e.hint = f"{e.hint} {note}" if e.hint else note
        raise

    if stashed:
        try:
            ctx.stash.pop_stash(stashed.index)
        except StashConflict as e:
            e.hint = (f"Your changes conflict with the updated branch. The stash entry "
                      f"{stashed.ref} was kept; resolve the conflicts, then 'git stash drop'.")
            raise
        print("Restored local changes")

    print(f"{branch} is up to date")


def cmd_update(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt update'."""
    run_update(ctx, force=args.force, main_only=args.main_only, stash=not args.no_stash)
    return EXIT_SUCCESS
