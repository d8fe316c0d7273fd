#!/usr/bin/env python3
"""gt CLI entrypoint."""

import argparse
import logging
import sys
from pathlib import Path

from gt.commands import clean as cmd_clean_module
from gt.commands import config as cmd_config_module
from gt.commands import init as cmd_init_module
from gt.commands import save as cmd_save_module
from gt.commands import ship as cmd_ship_module
from gt.commands import sp as cmd_sp_module
from gt.commands import start as cmd_start_module
from gt.commands import status as cmd_status_module
from gt.commands import update as cmd_update_module
from gt.git.status import get_git_dir, get_toplevel
from gt.lib.config import resolve_repo_config
from gt.lib.constants import EXIT_CANCELLED
from gt.lib.context import WorkflowContext
from gt.lib.errors import GtError, NotARepository
from gt.lib.locking import repo_lock
from gt.lib.prompter import AutoPrompter, ConsolePrompter

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_repo(args) -> tuple[Path, Path]:
    """Resolve (working tree root, git dir) from --repo or the current directory."""
    start = Path(args.repo or ".").resolve()
    toplevel = get_toplevel(start)
    git_dir = get_git_dir(start)
    if toplevel is None or git_dir is None:
        raise NotARepository(f"{start} is not inside a git repository")
    return toplevel, git_dir


def build_context(args, repo: Path, git_dir: Path) -> WorkflowContext:
    config = resolve_repo_config(repo, git_dir)
    prompter = AutoPrompter(True) if args.yes else ConsolePrompter()
    return WorkflowContext(repo, config, prompter, dry_run=args.dry_run)


def run_workflow(args, handler) -> int:
    """Run a mutating orchestrator while holding the repository lock."""
    repo, git_dir = get_repo(args)
    ctx = build_context(args, repo, git_dir)
    with repo_lock(git_dir):
        return handler(args, ctx)


def cmd_start(args):
    return run_workflow(args, cmd_start_module.cmd_start)


def cmd_save(args):
    return run_workflow(args, cmd_save_module.cmd_save)


def cmd_sp(args):
    return run_workflow(args, cmd_sp_module.cmd_sp)


def cmd_update(args):
    return run_workflow(args, cmd_update_module.cmd_update)


def cmd_ship(args):
    return run_workflow(args, cmd_ship_module.cmd_ship)


def cmd_clean(args):
    return run_workflow(args, cmd_clean_module.cmd_clean)


def cmd_status(args):
    repo, git_dir = get_repo(args)
    return cmd_status_module.cmd_status(args, build_context(args, repo, git_dir))


def cmd_init(args):
    return cmd_init_module.cmd_init(args)


def cmd_config(args):
    repo, git_dir = get_repo(args)
    config = resolve_repo_config(repo, git_dir)
    with repo_lock(git_dir):
        return cmd_config_module.cmd_config(args, config, git_dir)


def report_error(error: GtError) -> None:
    print(f"ERROR: [{error.category}] {error}", file=sys.stderr)
    if error.hint:
        print(f"  Hint: {error.hint}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='gt', description='Git workflow toolkit')
    parser.add_argument('--verbose', '-v', action='store_true', help='Show debug logging')
    parser.add_argument('--dry-run', '-n', action='store_true', help='Report mutating steps without running them')
    parser.add_argument('--yes', '-y', action='store_true', help='Non-interactive: answer yes to every confirmation')
    parser.add_argument('--repo', '-C', help='Run as if started in this directory')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # gt start
    p_start = subparsers.add_parser('start', help='Create a branch from an updated base')
    p_start.add_argument('branch', help='Branch name (normalized: lowercase, spaces/underscores -> "-")')
    p_start.add_argument('--base', '-b', help='Base branch (default: main branch)')
    p_start.add_argument('--local', '-l', action='store_true', help='Do not fetch/update the base first')
    p_start.add_argument('--force', '-f', action='store_true', help='Recreate the branch if it exists')
    p_start.set_defaults(func=cmd_start)

    # gt save
    p_save = subparsers.add_parser('save', help='Stage and commit changes')
    p_save.add_argument('--message', '-m', help='Commit message')
    p_save.add_argument('--edit', '-e', action='store_true', help='Review/replace the message interactively')
    p_save.add_argument('files', nargs='*', help='Files to stage (default: all changes)')
    p_save.set_defaults(func=cmd_save)

    # gt sp
    p_sp = subparsers.add_parser('sp', help='Save and push')
    p_sp.add_argument('--message', '-m', help='Commit message')
    p_sp.add_argument('files', nargs='*', help='Files to stage (default: all changes)')
    p_sp.set_defaults(func=cmd_sp)

    # gt update
    p_update = subparsers.add_parser('update', help='Update main and rebase the current branch onto it')
    p_update.add_argument('--force', '-f', action='store_true', help='Do not stash local changes first')
    p_update.add_argument('--main-only', action='store_true', help='Only update main, do not rebase')
    p_update.add_argument('--no-stash', action='store_true', help='Fail instead of stashing local changes')
    p_update.set_defaults(func=cmd_update)

    # gt ship
    p_ship = subparsers.add_parser('ship', help='Push the branch, optionally open and auto-merge a PR')
    p_ship.add_argument('--pr', '-p', action='store_true', help='Create a pull request')
    p_ship.add_argument('--draft', action='store_true', help='Create the PR as a draft')
    p_ship.add_argument('--title', '-t', help='PR title (default: filled from commits)')
    p_ship.add_argument('--body', help='PR body')
    p_ship.add_argument('--base', help='PR base branch (default: main branch)')
    p_ship.add_argument('--reviewer', action='append', help='Request a reviewer (repeatable)')
    p_ship.add_argument('--label', action='append', help='Add a label (repeatable)')
    p_ship.add_argument('--auto-merge', '-a', action='store_true', help='Enable auto-merge (implies --pr)')
    strategy = p_ship.add_mutually_exclusive_group()
    strategy.add_argument('--rebase', dest='strategy', action='store_const', const='rebase',
                          help='Enable auto-merge, rebasing (default strategy)')
    strategy.add_argument('--squash', dest='strategy', action='store_const', const='squash',
                          help='Enable auto-merge, squashing')
    strategy.add_argument('--merge', dest='strategy', action='store_const', const='merge',
                          help='Enable auto-merge with a merge commit')
    p_ship.add_argument('--no-switch', action='store_true', help='Stay on the branch after pushing')
    p_ship.add_argument('--delete-branch', '-d', action='store_true',
                        help='Delete the local branch after switching to main')
    p_ship.set_defaults(func=cmd_ship, strategy=None)

    # gt clean
    p_clean = subparsers.add_parser('clean', help='Update main and delete a finished branch')
    p_clean.add_argument('branch', help="Branch to delete, or 'all' for every merged branch")
    p_clean.add_argument('--force', '-f', action='store_true', help='Delete even if not merged')
    p_clean.set_defaults(func=cmd_clean)

    # gt status
    p_status = subparsers.add_parser('status', help='Show repository status')
    p_status.add_argument('--remote', '-r', action='store_true', help='Fetch first and show remotes')
    p_status.add_argument('--log', '-l', action='store_true', help='Show recent commits')
    p_status.add_argument('--count', '-c', type=int, default=10, help='Commits to show with --log')
    p_status.set_defaults(func=cmd_status)

    # gt init
    p_init = subparsers.add_parser('init', help='Create a new repository')
    p_init.add_argument('path', nargs='?', default='.', help='Directory (default: current)')
    p_init.add_argument('--main-branch', help='Initial branch name (default: main)')
    p_init.set_defaults(func=cmd_init)

    # gt config
    p_config = subparsers.add_parser('config', help='Show or change configuration')
    p_config.set_defaults(func=cmd_config)
    config_sub = p_config.add_subparsers(dest='config_cmd')

    config_sub.add_parser('show', help='Show resolved configuration')

    p_config_get = config_sub.add_parser('get', help='Print one setting')
    p_config_get.add_argument('key', help='Setting name')

    p_config_set = config_sub.add_parser('set', help='Change one setting')
    p_config_set.add_argument('key', help='Setting name')
    p_config_set.add_argument('value', help='New value')

    p_config_migrate = config_sub.add_parser('migrate', help='Import a legacy gw config file')
    p_config_migrate.add_argument('file', nargs='?', help='Legacy file (default: ~/.gw/config_vars.sh)')

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return args.func(args)
    except GtError as e:
        logger.debug(f"{type(e).__name__} raised", exc_info=True)
        report_error(e)
        return e.exit_code
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return EXIT_CANCELLED


if __name__ == '__main__':
    sys.exit(main())
