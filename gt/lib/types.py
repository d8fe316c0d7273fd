"""
Shared data types for gt.

Kept separate from the modules that use them to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class MergeStrategy(str, Enum):
    """How a shipped branch is reconciled into main. Default is REBASE."""
    REBASE = "rebase"
    SQUASH = "squash"
    MERGE = "merge"

    @property
    def gh_flag(self) -> str:
        return f"--{self.value}"


@dataclass
class PullRequestOptions:
    """Options for creating a pull request."""
    title: str | None = None
    body: str | None = None
    base: str | None = None
    draft: bool = False
    reviewers: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)

    @property
    def fill(self) -> bool:
        """Let gh fill title/body from commits when no title is given."""
        return self.title is None
