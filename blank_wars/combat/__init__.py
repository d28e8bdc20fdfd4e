"""
Battle state and round resolution.
"""

from blank_wars.combat.battle_state import BattleState
from blank_wars.combat.round_resolver import (
    RoundResolver,
    check_termination,
    compute_momentum,
    default_plan,
    side_hp_fraction,
)

__all__ = [
    "BattleState",
    "RoundResolver",
    "check_termination",
    "compute_momentum",
    "default_plan",
    "side_hp_fraction",
]
