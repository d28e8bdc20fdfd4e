"""
Phase machine for the Blank Wars battle engine.

Only ONE battle phase may be active at any time. Every phase change is
validated against VALID_TRANSITIONS and logged; an invalid trigger is a
programming error and raises InvalidTransitionError.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
import logging

from blank_wars.data_models import BattlePhase, TransitionLog
from blank_wars.observability.run_log import RunLog

logger = logging.getLogger(__name__)


class BattleEngineError(Exception):
    """Base class for engine misuse errors raised outside a running battle."""

    pass


class InvalidTransitionError(BattleEngineError):
    """Raised when an invalid phase transition is attempted."""

    pass


class BattleNotActiveError(BattleEngineError):
    """Raised when a battle operation is called with no battle in progress."""

    pass


@dataclass
class StateTransition:
    """Defines a valid phase transition."""

    from_state: BattlePhase
    to_state: BattlePhase
    trigger: str
    description: str = ""

    def __hash__(self) -> int:
        return hash((self.from_state, self.to_state, self.trigger))


VALID_TRANSITIONS: list[StateTransition] = [
    # Starting a battle
    StateTransition(
        BattlePhase.IDLE,
        BattlePhase.PRE_BATTLE,
        "start_battle",
        "A BattleSetup is accepted",
    ),
    StateTransition(
        BattlePhase.BATTLE_COMPLETE,
        BattlePhase.PRE_BATTLE,
        "start_battle",
        "A new battle on the same machine",
    ),
    StateTransition(
        BattlePhase.PRE_BATTLE,
        BattlePhase.PRE_BATTLE_HUDDLE,
        "begin_huddle",
        "Teams validated and psychology initialized",
    ),
    # Strategy
    StateTransition(
        BattlePhase.PRE_BATTLE_HUDDLE,
        BattlePhase.STRATEGY_SELECTION,
        "huddle_complete",
        "Huddle delay elapsed",
    ),
    StateTransition(
        BattlePhase.STRATEGY_SELECTION,
        BattlePhase.COMBAT,
        "strategy_locked",
        "Coach confirmed or the strategy deadline passed",
    ),
    # Round loop
    StateTransition(
        BattlePhase.COMBAT,
        BattlePhase.ROUND_RESOLUTION,
        "round_started",
        "One round is being resolved",
    ),
    StateTransition(
        BattlePhase.ROUND_RESOLUTION,
        BattlePhase.COMBAT,
        "next_round",
        "Round narrated and no termination condition met",
    ),
    StateTransition(
        BattlePhase.ROUND_RESOLUTION,
        BattlePhase.BATTLE_COMPLETE,
        "battle_ended",
        "A termination condition was met",
    ),
]

# Reset and abandon are allowed from every in-battle phase
_IN_BATTLE_PHASES = (
    BattlePhase.PRE_BATTLE,
    BattlePhase.PRE_BATTLE_HUDDLE,
    BattlePhase.STRATEGY_SELECTION,
    BattlePhase.COMBAT,
    BattlePhase.ROUND_RESOLUTION,
    BattlePhase.BATTLE_COMPLETE,
)
for _phase in _IN_BATTLE_PHASES:
    VALID_TRANSITIONS.append(
        StateTransition(_phase, BattlePhase.PRE_BATTLE, "reset", "Battle rebuilt from its setup")
    )
    VALID_TRANSITIONS.append(
        StateTransition(_phase, BattlePhase.IDLE, "abandon", "Battle dropped")
    )


class PhaseMachine:
    """
    Tracks the current battle phase with validation and history.

    Attributes:
        current_state: The active phase
        previous_state: The phase before the last transition
        state_history: Every transition made so far
    """

    def __init__(
        self,
        initial_state: BattlePhase = BattlePhase.IDLE,
        run_log: Optional[RunLog] = None,
    ):
        """
        Args:
            initial_state: Starting phase (default: IDLE)
            run_log: Optional RunLog receiving every transition
        """
        self._current_state: BattlePhase = initial_state
        self._previous_state: Optional[BattlePhase] = None
        self._state_history: list[TransitionLog] = []
        self._run_log = run_log

        self._valid_transitions: dict[tuple[BattlePhase, str], BattlePhase] = {}
        for transition in VALID_TRANSITIONS:
            self._valid_transitions[(transition.from_state, transition.trigger)] = transition.to_state

        self._log_transition(
            from_state="INIT", to_state=initial_state.value, trigger="initialization"
        )

    @property
    def current_state(self) -> BattlePhase:
        return self._current_state

    @property
    def previous_state(self) -> Optional[BattlePhase]:
        return self._previous_state

    @property
    def state_history(self) -> list[TransitionLog]:
        return self._state_history.copy()

    def can_transition(self, trigger: str) -> bool:
        return (self._current_state, trigger) in self._valid_transitions

    def get_valid_triggers(self) -> list[str]:
        """Triggers usable from the current phase."""
        return [
            trigger
            for (state, trigger) in self._valid_transitions
            if state == self._current_state
        ]

    def transition(self, trigger: str, context: Optional[dict[str, Any]] = None) -> BattlePhase:
        """
        Move to the next phase.

        Args:
            trigger: The trigger event causing the transition
            context: Optional context data for the log

        Returns:
            The new phase

        Raises:
            InvalidTransitionError: If the trigger is not valid from the current phase
        """
        key = (self._current_state, trigger)
        if key not in self._valid_transitions:
            raise InvalidTransitionError(
                f"Invalid transition: Cannot trigger '{trigger}' from phase "
                f"'{self._current_state.value}'. Valid triggers: {self.get_valid_triggers()}"
            )

        old_state = self._current_state
        new_state = self._valid_transitions[key]
        self._previous_state = old_state
        self._current_state = new_state

        self._log_transition(
            from_state=old_state.value, to_state=new_state.value, trigger=trigger, context=context
        )
        return new_state

    def _log_transition(
        self, from_state: str, to_state: str, trigger: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        entry = TransitionLog(
            timestamp=datetime.now(),
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            context=context or {},
        )
        self._state_history.append(entry)
        logger.debug(f"Phase {from_state} -> {to_state} ({trigger})")

        if self._run_log is not None:
            self._run_log.log_transition(
                from_state=from_state,
                to_state=to_state,
                trigger=trigger,
                context=context,
            )

    def is_in_battle(self) -> bool:
        return self._current_state not in (BattlePhase.IDLE, BattlePhase.BATTLE_COMPLETE)

    def __repr__(self) -> str:
        return f"PhaseMachine(current={self._current_state.value}, previous={self._previous_state})"
