"""
gt clean - Remove a finished branch after refreshing main.
"""

import logging

from gt.git.branch import list_branches
from gt.git.remote import remote_exists
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import OperationNotPermitted

logger = logging.getLogger(__name__)

ALL_BRANCHES = "all"


def _refresh_main(ctx: WorkflowContext) -> None:
    main = ctx.config.main_branch
    if ctx.branches.current_branch() != main:
        ctx.perform(f"checkout {main}", ctx.branches.checkout_branch, main)

    if not remote_exists(ctx.repo, ctx.config.remote_name):
        logger.warning(f"Remote '{ctx.config.remote_name}' not configured; skipping update of {main}")
        return
    print(f"Updating {main} from {ctx.config.remote_name}...")
    ctx.perform(f"pull --rebase {ctx.config.remote_name} {main}", ctx.network.pull_rebase, main)


def merged_branches(ctx: WorkflowContext) -> list[str]:
    """Local branches (other than main) whose work is already in main or upstream."""
    main = ctx.config.main_branch
    return [
        b.name for b in list_branches(ctx.repo)
        if b.name != main and ctx.branches.is_merged(b.name)
    ]


def run_clean(ctx: WorkflowContext, branch: str, force: bool = False) -> list[str]:
    """
    Switch to main, update it, and delete branch (or every merged branch).

    Returns:
        Names of the deleted branches
    """
    main = ctx.config.main_branch
    if branch == main:
        raise OperationNotPermitted(f"Refusing to clean the main branch '{main}'")

    _refresh_main(ctx)

    if branch == ALL_BRANCHES:
        targets = merged_branches(ctx)
        if not targets:
            print("No merged branches to clean")
            return []
    else:
        targets = [branch]

    deleted = []
    for name in targets:
        ctx.perform(f"delete branch {name}", ctx.branches.delete_branch, name, force=force)
        if not ctx.dry_run:
            print(f"Deleted branch {name}")
        deleted.append(name)
    return deleted


def cmd_clean(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt clean'."""
    run_clean(ctx, args.branch, force=args.force)
    return EXIT_SUCCESS
