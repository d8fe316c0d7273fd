"""Merge/rebase operation state machine using transitions library.

One MergeOperationFSM tracks a single merge or rebase invocation:

    idle -> validating -> {fast_forward | three_way_merge | rebasing}
         -> {committed | conflicted | aborted}

No-op outcomes (already up to date) go straight from validating to
committed. Committed and aborted are final. Conflicted ends the automatic
flow (is_finished is True) and is never retried; its only exit is an
explicit abort, which BranchEngine.abort_operation issues.

Usage:
    from gt.engine.fsm import MergeOperationFSM

    op = MergeOperationFSM("merge", "feature/x")
    op.validate()
    op.choose_fast_forward()
    op.commit()
"""

import logging
from typing import Callable

from transitions import Machine

logger = logging.getLogger(__name__)


STATES = [
    "idle",
    "validating",
    "fast_forward",
    "three_way_merge",
    "rebasing",
    "committed",
    "conflicted",
    "aborted",
]

# No automatic trigger fires from these
TERMINAL_STATES = {"committed", "conflicted", "aborted"}

# No trigger at all fires from these
FINAL_STATES = {"committed", "aborted"}

WORKING_STATES = ["fast_forward", "three_way_merge", "rebasing"]

TRANSITIONS = [
    {"trigger": "validate", "source": "idle", "dest": "validating"},

    # Strategy selection
    {"trigger": "choose_fast_forward", "source": "validating", "dest": "fast_forward"},
    {"trigger": "choose_three_way", "source": "validating", "dest": "three_way_merge"},
    {"trigger": "choose_rebase", "source": "validating", "dest": "rebasing"},

    # Nothing to do
    {"trigger": "up_to_date", "source": "validating", "dest": "committed"},

    # Outcomes
    {"trigger": "commit", "source": WORKING_STATES, "dest": "committed"},
    {"trigger": "conflict", "source": ["three_way_merge", "rebasing"], "dest": "conflicted"},
    {"trigger": "abort", "source": ["validating"] + WORKING_STATES + ["conflicted"], "dest": "aborted"},
]


class MergeOperationFSM:
    """State machine for a single merge or rebase operation.

    Wraps the transitions library and logs every transition.
    """

    def __init__(
        self,
        kind: str,
        target: str,
        on_transition: Callable[[str, str, str], None] | None = None,
    ):
        """Initialize FSM for one operation.

        Args:
            kind: "merge" or "rebase"
            target: Ref being merged/rebased onto
            on_transition: Optional callback(from_state, to_state, trigger)
        """
        self.kind = kind
        self.target = target
        self.on_transition = on_transition
        self.history: list[tuple[str, str, str]] = []

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Callback after any state transition."""
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] {self.kind} {self.target}: {from_state} -> {to_state} ({trigger})")
        self.history.append((from_state, to_state, trigger))

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)
