"""
gt save - Stage changes and commit them.
"""

import logging

from gt.git.commit import commit, get_commit, get_identity, stage_all, stage_files
from gt.git.status import check_status
from gt.lib.constants import EXIT_SUCCESS
from gt.lib.context import WorkflowContext
from gt.lib.errors import EmptyCommitMessage, GitOperationError, IdentityNotConfigured

logger = logging.getLogger(__name__)


def collect_message(ctx: WorkflowContext, message: str | None, edit: bool) -> str:
    """
    Decide the commit message.

    A supplied message is used as-is unless edit is set, in which case the
    operator may keep it or type a new one. Without a message the operator
    types one. An empty or blank result is an error on every path.
    """
    if message is not None:
        text = message.strip()
        if not text:
            raise EmptyCommitMessage()
        if not edit:
            return text
        print(f"Current message: {text}")
        if ctx.prompter.confirm("Use this message?", default=True):
            return text

    lines = ctx.prompter.collect_lines("Enter commit message:")
    text = "\n".join(lines).strip()
    if not text:
        raise EmptyCommitMessage()
    return text


def run_save(
    ctx: WorkflowContext,
    message: str | None = None,
    edit: bool = False,
    files: list[str] | None = None,
) -> str | None:
    """
    Stage files (or everything) and commit.

    Returns:
        SHA of the new commit, or None if there was nothing to commit
    """
    if files:
        result = ctx.perform(f"stage {' '.join(files)}", stage_files, ctx.repo, list(files))
    else:
        result = ctx.perform("stage all changes", stage_all, ctx.repo)
    if result is not None and not result.success:
        raise GitOperationError("add", result.error)

    status = check_status(ctx.repo)
    if not status.has_staged_changes and not ctx.dry_run:
        print("WARNING: Nothing staged to commit")
        return None

    text = collect_message(ctx, message, edit)

    if get_identity(ctx.repo) is None:
        raise IdentityNotConfigured("No committer identity configured")

    result = ctx.perform(f"commit: {text.splitlines()[0]}", commit, ctx.repo, text)
    if result is None:
        return None
    if not result.success:
        raise GitOperationError("commit", result.error)

    saved = get_commit(ctx.repo)
    if saved:
        print(f"Saved {saved.short_sha}: {saved.summary}")
        return saved.sha
    return None


def cmd_save(args, ctx: WorkflowContext) -> int:
    """Entry point for 'gt save'."""
    run_save(ctx, message=args.message, edit=args.edit, files=args.files)
    return EXIT_SUCCESS
