# PATH: execution/state_machine.py
"""
Orchestration loop state machine.

LOOP STATE CONTRACT:
====================

States (LoopState):
  WAITING_FOR_READY_BLOCK  → idle, pulling the next ready block
  EXECUTING                → one block's pipeline in flight
  REPORTING                → block succeeded, outcome recorded
  ALERTING                 → block failed, failure being dispatched

Transitions:
  WAITING_FOR_READY_BLOCK → EXECUTING                (begin)
  EXECUTING               → REPORTING                (succeeded)
  EXECUTING               → ALERTING                 (failed)
  REPORTING               → WAITING_FOR_READY_BLOCK  (finish)
  ALERTING                → WAITING_FOR_READY_BLOCK  (finish)

The in-flight block number (the processing cursor) is set on begin and
cleared on finish. Entering EXECUTING while a block is in flight is an
InvalidTransitionError, which is what keeps execution single-flight.
====================
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from core.constants import LoopState
from core.time import now_iso


VALID_TRANSITIONS: Dict[LoopState, List[LoopState]] = {
    LoopState.WAITING_FOR_READY_BLOCK: [LoopState.EXECUTING],
    LoopState.EXECUTING: [LoopState.REPORTING, LoopState.ALERTING],
    LoopState.REPORTING: [LoopState.WAITING_FOR_READY_BLOCK],
    LoopState.ALERTING: [LoopState.WAITING_FOR_READY_BLOCK],
}

HISTORY_LIMIT = 100


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: LoopState
    to_state: LoopState
    block_number: Optional[int] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = now_iso()


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


@dataclass
class LoopStateMachine:
    """
    Tracks the loop state and the in-flight block.

    Only the most recent transitions are kept.
    """
    state: LoopState = LoopState.WAITING_FOR_READY_BLOCK
    current_block: Optional[int] = None
    history: Deque[StateTransition] = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))

    def can_transition_to(self, new_state: LoopState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in VALID_TRANSITIONS.get(self.state, [])

    def _transition(self, new_state: LoopState) -> StateTransition:
        if not self.can_transition_to(new_state):
            raise InvalidTransitionError(
                f"Cannot transition from {self.state.value} to {new_state.value}. "
                f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(self.state, [])]}"
            )

        transition = StateTransition(
            from_state=self.state,
            to_state=new_state,
            block_number=self.current_block,
        )
        self.history.append(transition)
        self.state = new_state
        return transition

    def begin(self, block_number: int) -> StateTransition:
        """Start executing a block."""
        if self.current_block is not None:
            raise InvalidTransitionError(
                f"Block {self.current_block} is still in flight, cannot begin {block_number}"
            )
        transition = self._transition(LoopState.EXECUTING)
        self.current_block = block_number
        transition.block_number = block_number
        return transition

    def succeeded(self) -> StateTransition:
        return self._transition(LoopState.REPORTING)

    def failed(self) -> StateTransition:
        return self._transition(LoopState.ALERTING)

    def finish(self) -> StateTransition:
        """Back to waiting; clears the cursor."""
        transition = self._transition(LoopState.WAITING_FOR_READY_BLOCK)
        self.current_block = None
        return transition

    @property
    def is_idle(self) -> bool:
        return self.state == LoopState.WAITING_FOR_READY_BLOCK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "state": self.state.value,
            "current_block": self.current_block,
            "history": [
                {
                    "from_state": t.from_state.value,
                    "to_state": t.to_state.value,
                    "block_number": t.block_number,
                    "timestamp": t.timestamp,
                }
                for t in self.history
            ],
        }
