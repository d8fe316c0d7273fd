"""
Error taxonomy for gt.

Every failure a command can surface is a GtError subclass carrying a
human-readable category, an exit code, and a remediation hint. The CLI
prints category, message and hint; orchestrators only raise.
"""

from gt.lib.constants import (
    EXIT_ERROR,
    EXIT_CONFIG,
    EXIT_NOT_FOUND,
    EXIT_INVALID_STATE,
    EXIT_CONFLICT,
    EXIT_NETWORK,
    EXIT_COLLABORATION,
    EXIT_CANCELLED,
)


class GtError(Exception):
    """Base class for all gt failures."""
    category = "error"
    exit_code = EXIT_ERROR
    hint: str | None = None

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


# --- environment ---

class EnvironmentProblem(GtError):
    category = "environment"


class NotARepository(EnvironmentProblem):
    exit_code = EXIT_CONFIG
    hint = "Run gt inside a git repository, or create one with 'gt init'."


class PermissionDenied(EnvironmentProblem):
    hint = "Check file permissions on the repository."


class GitOperationError(EnvironmentProblem):
    """A git primitive failed for a reason not covered by a specific error."""

    def __init__(self, operation: str, stderr: str, hint: str | None = None):
        self.operation = operation
        self.stderr = stderr
        super().__init__(f"git {operation} failed: {stderr}", hint)


class IdentityNotConfigured(EnvironmentProblem):
    exit_code = EXIT_CONFIG
    hint = "Set it with: git config user.name 'Your Name' && git config user.email you@example.com"


class ConfigError(EnvironmentProblem):
    exit_code = EXIT_CONFIG
    hint = "Inspect the configuration with 'gt config show'."


class RepositoryLocked(EnvironmentProblem):
    hint = "Another gt command is running in this repository. Wait for it to finish."


# --- state precondition ---

class StatePreconditionError(GtError):
    category = "state precondition"
    exit_code = EXIT_INVALID_STATE


class UncommittedChanges(StatePreconditionError):
    hint = "Commit with 'gt save' or stash your changes first."


class UntrackedFiles(StatePreconditionError):
    hint = "Add the files with 'gt save' or remove them."


class DirtyWorkingDirectory(StatePreconditionError):
    hint = "Commit or stash your changes before continuing."


class OperationNotPermitted(StatePreconditionError):
    pass


class BranchNotMerged(StatePreconditionError):

    def __init__(self, branch: str, target: str):
        self.branch = branch
        self.target = target
        super().__init__(
            f"Branch '{branch}' is not fully merged into {target}",
            hint=f"Use --force to delete '{branch}' anyway.",
        )


class DetachedHead(StatePreconditionError):
    hint = "Check out a branch first: git checkout <branch>"


# --- reference ---

class ReferenceProblem(GtError):
    category = "reference"
    exit_code = EXIT_NOT_FOUND


class BranchNotFound(ReferenceProblem):

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Branch '{branch}' not found", hint="List branches with: git branch -a")


class BranchAlreadyExists(ReferenceProblem):
    exit_code = EXIT_INVALID_STATE

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(
            f"Branch '{branch}' already exists",
            hint="Pick another name, or pass --force to recreate it.",
        )


class RemoteNotFound(ReferenceProblem):

    def __init__(self, remote: str):
        self.remote = remote
        super().__init__(
            f"Remote '{remote}' not found",
            hint=f"Add it with: git remote add {remote} <url>",
        )


class StashNotFound(ReferenceProblem):

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"No stash entry at index {index}", hint="List stashes with: git stash list")


# --- network ---

class NetworkError(GtError):
    category = "network"
    exit_code = EXIT_NETWORK


class NetworkTimeout(NetworkError):
    hint = "Check your connection and credentials, then retry."

    def __init__(self, operation: str, attempts: int, last_error: str):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{operation} failed after {attempts} attempt(s): {last_error}")


# --- conflict ---

class ConflictError(GtError):
    category = "conflict"
    exit_code = EXIT_CONFLICT

    def __init__(self, message: str, files: list[str] | None = None, hint: str | None = None):
        self.files = list(files or [])
        if self.files:
            message = f"{message}\n  Conflicted files:\n" + "\n".join(f"    {f}" for f in self.files)
        super().__init__(message, hint)


class MergeConflict(ConflictError):
    hint = "Resolve the conflicts, 'git add' them and 'git commit', or run 'git merge --abort'."


class RebaseConflict(ConflictError):
    hint = "Resolve the conflicts, 'git add' them and run 'git rebase --continue', or 'git rebase --abort'."


class StashConflict(ConflictError):

    def __init__(self, index: int, files: list[str] | None = None, hint: str | None = None):
        self.index = index
        super().__init__(
            f"Applying stash@{{{index}}} produced conflicts",
            files,
            hint or f"The stash entry was kept. Resolve the conflicts, then 'git stash drop stash@{{{index}}}'.",
        )


# --- collaboration service ---

class CollaborationError(GtError):
    category = "collaboration service"
    exit_code = EXIT_COLLABORATION


class GitHubUnavailable(CollaborationError):
    hint = "Install the GitHub CLI and run 'gh auth login'."


class PullRequestError(CollaborationError):
    pass


# --- user ---

class UserError(GtError):
    category = "user"
    exit_code = EXIT_CONFIG


class UserCancelled(UserError):
    exit_code = EXIT_CANCELLED

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message)


class InvalidInput(UserError):
    pass


class InvalidBranchName(UserError):
    hint = "Use letters, digits, '-', '_' and '/'; no leading/trailing separators, '..' or '//'."

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid branch name '{name}': {reason}")


class EmptyCommitMessage(UserError):
    hint = "Pass a message with -m, or type one at the prompt."

    def __init__(self, message: str = "Commit message is empty"):
        super().__init__(message)


# --- unimplemented ---

class FeatureNotImplemented(GtError):
    category = "not implemented"
