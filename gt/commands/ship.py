"""
gt ship - Publish the current branch: push, open a PR, optionally auto-merge.
"""

import logging

from gt.commands.save import run_save
from gt.git.remote import get_remote_urls
from gt.git.status import check_status
from gt.lib import github
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import (
    BranchNotMerged,
    DetachedHead,
    FeatureNotImplemented,
    GitHubUnavailable,
    PullRequestError,
    UncommittedChanges,
    UserCancelled,
)
from gt.lib.types import MergeStrategy, PullRequestOptions

logger = logging.getLogger(__name__)


def _require_clean(ctx: WorkflowContext) -> None:
    """Make sure everything is committed, offering to run save first."""
    status = check_status(ctx.repo)
    if status.is_clean:
        return
    print(f"Working tree has {status.modified_count + len(status.staged)} changed and "
          f"{status.untracked_count} untracked file(s).")
    if not ctx.prompter.confirm("Save these changes before shipping?", default=True):
        raise UncommittedChanges("Cannot ship with uncommitted changes")
    run_save(ctx)
    if not ctx.dry_run and not check_status(ctx.repo).is_clean:
        raise UncommittedChanges("Working tree still has uncommitted changes after save")


def _ship_main(ctx: WorkflowContext, main: str) -> None:
    if not ctx.prompter.confirm(f"You are on {main}. Push directly to {ctx.config.remote_name}/{main}?",
                                default=False):
        raise UserCancelled("Ship cancelled; nothing was pushed")
    _require_clean(ctx)
    ctx.perform(f"push {main} to {ctx.config.remote_name}", ctx.network.push, main)
    print(f"Pushed {main} to {ctx.config.remote_name}")


def _open_pull_request(
    ctx: WorkflowContext,
    branch: str,
    options: PullRequestOptions,
    auto_merge: bool,
    strategy: MergeStrategy,
    delete_remote_branch: bool,
) -> None:
    url = get_remote_urls(ctx.repo).get(ctx.config.remote_name, "")
    if url and not github.is_supported_remote(url):
        raise FeatureNotImplemented(
            f"Pull requests are only supported for GitHub remotes ({url})",
            hint="Push succeeded; open the pull request in your hosting service.",
        )

    ok, error = github.check_gh_available()
    if not ok:
        raise GitHubUnavailable(error)

    if ctx.dry_run:
        print(f"[dry-run] would create pull request {branch} -> {options.base or ctx.config.main_branch}")
        if auto_merge:
            print(f"[dry-run] would enable auto-merge ({strategy.value})")
        return

    ok, url_or_error, pr_number = github.create_pull_request(
        ctx.repo, branch, ctx.config.main_branch, options
    )
    if not ok:
        raise PullRequestError(url_or_error, hint="The branch was pushed; retry with 'gh pr create'.")
    print(f"Pull request: {url_or_error}")
    logger.info(f"Created PR #{pr_number} for {branch}")

    if auto_merge:
        ok, message = github.enable_auto_merge(ctx.repo, url_or_error, strategy, delete_remote_branch)
        if not ok:
            raise PullRequestError(message, hint=f"Enable it manually: gh pr merge {url_or_error} --auto")
        print(f"Auto-merge enabled ({strategy.value})")


def run_ship(
    ctx: WorkflowContext,
    pr: bool = False,
    auto_merge: bool = False,
    strategy: MergeStrategy = MergeStrategy.REBASE,
    no_switch: bool = False,
    delete_branch: bool = False,
    pr_options: PullRequestOptions | None = None,
) -> None:
    """
    Publish the current branch.

    Steps run in order and stop at the first failure:
    clean check, push, PR and auto-merge, switch to main, delete branch.
    """
    branch = ctx.branches.current_branch()
    if branch is None:
        raise DetachedHead("Cannot ship from a detached HEAD")

    main = ctx.config.main_branch
    if branch == main:
        _ship_main(ctx, main)
        return

    _require_clean(ctx)

    print(f"Pushing {branch} to {ctx.config.remote_name}...")
    ctx.perform(f"push {branch} to {ctx.config.remote_name}", ctx.network.push, branch)

    if pr or auto_merge:
        _open_pull_request(ctx, branch, pr_options or PullRequestOptions(), auto_merge, strategy, delete_branch)

    if no_switch:
        print(f"Staying on {branch} (--no-switch)")
        return

    ctx.perform(f"checkout {main}", ctx.branches.checkout_branch, main)
    print(f"Updating {main} from {ctx.config.remote_name}...")
    ctx.perform(f"pull --rebase {ctx.config.remote_name} {main}", ctx.network.pull_rebase, main)

    if delete_branch:
        try:
            ctx.perform(f"delete branch {branch}", ctx.branches.delete_branch, branch)
            if not ctx.dry_run:
                print(f"Deleted local branch {branch}")
        except BranchNotMerged as e:
            logger.warning(str(e))
            print(f"WARNING: Kept {branch}: not merged yet. Remove it later with 'gt clean {branch}'.")

    print(f"Shipped {branch}")


def cmd_ship(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt ship'."""
    options = PullRequestOptions(
        title=args.title,
        body=args.body,
        base=args.base,
        draft=args.draft,
        reviewers=args.reviewer or [],
        labels=args.label or [],
    )
    run_ship(
        ctx,
        pr=args.pr,
        # Picking a strategy implies auto-merge
        auto_merge=args.auto_merge or args.strategy is not None,
        strategy=MergeStrategy(args.strategy or MergeStrategy.REBASE.value),
        no_switch=args.no_switch,
        delete_branch=args.delete_branch,
        pr_options=options,
    )
    return EXIT_SUCCESS
