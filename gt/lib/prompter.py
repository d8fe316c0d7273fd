"""
Operator interaction for orchestrators.

Orchestrators never call input() directly; they ask a Prompter. The CLI
picks ConsolePrompter for terminals and AutoPrompter for --yes or
non-interactive runs. Tests drive orchestrators with ScriptedPrompter.
"""

import logging
from typing import Iterable, Protocol

from gt.lib.errors import UserCancelled

logger = logging.getLogger(__name__)


class Prompter(Protocol):
    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        ...

    def collect_lines(self, header: str) -> list[str]:
        """Collect multi-line text, terminated by a blank line."""
        ...


class ConsolePrompter:
    """Prompts on the terminal via input()."""

    def confirm(self, question: str, default: bool = False) -> bool:
        suffix = "[Y/n]" if default else "[y/N]"
        try:
            response = input(f"{question} {suffix}: ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            raise UserCancelled() from None
        if not response:
            return default
        return response in ('y', 'yes')

    def collect_lines(self, header: str) -> list[str]:
        print(header)
        print("(finish with an empty line)")
        lines = []
        while True:
            try:
                line = input("> ")
            except EOFError:
                break
            except KeyboardInterrupt:
                print()
                raise UserCancelled() from None
            if not line.strip():
                break
            lines.append(line.rstrip())
        return lines


class AutoPrompter:
    """Answers every confirmation with a fixed answer; collects no text."""

    def __init__(self, answer: bool = True):
        self.answer = answer

    def confirm(self, question: str, default: bool = False) -> bool:
        logger.info(f"Non-interactive: answering {'yes' if self.answer else 'no'} to '{question}'")
        return self.answer

    def collect_lines(self, header: str) -> list[str]:
        logger.info(f"Non-interactive: no input for '{header}'")
        return []


class ScriptedPrompter:
    """Replays pre-recorded answers. Records every question asked."""

    def __init__(self, confirmations: Iterable[bool] = (), lines: Iterable[str] = ()):
        self.confirmations = list(confirmations)
        self.lines = list(lines)
        self.questions: list[str] = []

    def confirm(self, question: str, default: bool = False) -> bool:
        self.questions.append(question)
        if not self.confirmations:
            raise RuntimeError(f"No scripted answer for: {question}")
        return self.confirmations.pop(0)

    def collect_lines(self, header: str) -> list[str]:
        self.questions.append(header)
        collected = []
        while self.lines:
            line = self.lines.pop(0)
            if not line.strip():
                break
            collected.append(line)
        return collected
