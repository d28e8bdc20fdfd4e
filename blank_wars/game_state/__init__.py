"""
Battle flow: phases, scheduling and the battle state machine.
"""

from blank_wars.game_state.state_machine import (
    BattleEngineError,
    BattleNotActiveError,
    InvalidTransitionError,
    PhaseMachine,
    StateTransition,
    VALID_TRANSITIONS,
)
from blank_wars.game_state.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledHandle,
    Scheduler,
)
from blank_wars.game_state.battle_state_machine import (
    BattleEvent,
    BattleReport,
    BattleSnapshot,
    BattleStateMachine,
    FighterView,
)

__all__ = [
    "BattleEngineError",
    "BattleNotActiveError",
    "InvalidTransitionError",
    "PhaseMachine",
    "StateTransition",
    "VALID_TRANSITIONS",
    "AsyncioScheduler",
    "ManualScheduler",
    "ScheduledHandle",
    "Scheduler",
    "BattleEvent",
    "BattleReport",
    "BattleSnapshot",
    "BattleStateMachine",
    "FighterView",
]
