"""
gt sp - Save and push in one step.
"""

from gt.commands.save import run_save
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import DetachedHead


def run_sp(ctx: WorkflowContext, message: str | None = None, files: list[str] | None = None) -> None:
    """Commit local changes (if any) and push the current branch."""
    branch = ctx.branches.current_branch()
    if branch is None:
        raise DetachedHead("Cannot push from a detached HEAD")

    run_save(ctx, message=message, files=files)

    print(f"Pushing {branch} to {ctx.config.remote_name}...")
    ctx.perform(f"push {branch} to {ctx.config.remote_name}", ctx.network.push, branch)
    if not ctx.dry_run:
        print(f"Pushed {branch}")


def cmd_sp(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt sp'."""
    run_sp(ctx, message=args.message, files=args.files)
    return EXIT_SUCCESS
