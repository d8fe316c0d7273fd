"""
gt start - Begin a new unit of work on a fresh branch.
"""

import logging

from gt.engine.branches import validate_branch_name
from gt.git.branch import branch_exists
from gt.git.status import check_status
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import BranchAlreadyExists, UserCancelled

logger = logging.getLogger(__name__)


def normalize_branch_name(name: str) -> str:
    """Trim, replace spaces and underscores with '-', lowercase."""
    return name.strip().replace(" ", "-").replace("_", "-").lower()


def run_start(
    ctx: WorkflowContext,
    branch: str,
    base: str | None = None,
    local: bool = False,
    force: bool = False,
) -> str:
    """
    Create and switch to a new branch based on an up-to-date base.

    Returns:
        The normalized branch name
    """
    name = normalize_branch_name(branch)
    validate_branch_name(name)
    if name != branch:
        print(f"Using branch name '{name}'")

    status = check_status(ctx.repo)
    if not status.is_clean:
        print(f"Working tree has {status.modified_count} modified, "
              f"{len(status.staged)} staged and {status.untracked_count} untracked file(s).")
        if not ctx.prompter.confirm("Continue with uncommitted changes?", default=False):
            raise UserCancelled()

    base_branch = base or ctx.config.main_branch

    if not local:
        if ctx.branches.current_branch() != base_branch:
            if branch_exists(ctx.repo, base_branch):
                ctx.perform(f"checkout {base_branch}", ctx.branches.checkout_branch, base_branch)
            else:
                # Only known remotely: create the local branch from the remote-tracking ref
                ctx.perform(
                    f"create {base_branch} from {ctx.config.remote_name}/{base_branch}",
                    ctx.branches.create_and_checkout, base_branch, base_branch,
                )
        print(f"Updating {base_branch} from {ctx.config.remote_name}...")
        ctx.perform(
            f"pull --rebase {ctx.config.remote_name} {base_branch}",
            ctx.network.pull_rebase, base_branch,
        )

    if branch_exists(ctx.repo, name):
        if not force:
            raise BranchAlreadyExists(name)
        print(f"Branch '{name}' exists, recreating (--force)")
        ctx.perform(f"delete branch {name}", ctx.branches.delete_branch, name, force=True)

    ctx.perform(
        f"create branch {name} from {base_branch} and switch to it",
        ctx.branches.create_and_checkout, name, base_branch,
    )
    if not ctx.dry_run:
        print(f"Switched to new branch '{name}' (from {base_branch})")
    return name


def cmd_start(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt start'."""
    run_start(ctx, args.branch, base=args.base, local=args.local, force=args.force)
    return EXIT_SUCCESS
