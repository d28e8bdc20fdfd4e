"""
Versioned battle state for the Blank Wars battle engine.

BattleState is a frozen value. RoundResolver.commit() and the
BattleStateMachine build the next version with dataclasses.replace; only the
machine decides which version is current.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from blank_wars.data_models import (
    BattleEndReason,
    BattleOutcome,
    BattlePhase,
    BattleSetup,
    BattleSide,
    Character,
    PlannedAction,
    RoundResult,
    Team,
    TeamMorale,
)
from blank_wars.judge.judge_adjudicator import JudgePersona
from blank_wars.psychology.psychology_manager import PsychologyState


@dataclass(frozen=True)
class BattleState:
    """
    Everything the engine knows about one battle.

    Attributes:
        battle_id: Stable id for the battle (kept across resets)
        generation: Bumped on every reset; scheduled callbacks from an older
            generation are ignored
        version: Bumped on every committed change
        player_team / opponent_team: Rosters with live HP
        player_fighter_id / opponent_fighter_id: The active fighter on each side
        psychology: character_id -> PsychologyState for every fighter
        standing_plans: Plans that carry over from round to round
        pending_plans: Plans submitted for the next round only
        next_attacker: Side that acts in the next round
    """
    battle_id: str
    setup: BattleSetup
    player_team: Team
    opponent_team: Team
    player_fighter_id: str
    opponent_fighter_id: str
    generation: int = 0
    version: int = 0
    phase: BattlePhase = BattlePhase.PRE_BATTLE
    current_round: int = 0
    player_morale: TeamMorale = field(default_factory=TeamMorale)
    opponent_morale: TeamMorale = field(default_factory=TeamMorale)
    psychology: dict[str, PsychologyState] = field(default_factory=dict)
    standing_plans: dict[str, PlannedAction] = field(default_factory=dict)
    pending_plans: dict[str, PlannedAction] = field(default_factory=dict)
    round_results: tuple[RoundResult, ...] = ()
    judge: Optional[JudgePersona] = None
    next_attacker: BattleSide = BattleSide.PLAYER
    winner: Optional[BattleOutcome] = None
    end_reason: Optional[BattleEndReason] = None
    latest_narrative: str = ""
    dialogue_degraded: bool = False

    # -------------------------------------------------------------------------
    # Side lookups
    # -------------------------------------------------------------------------

    def team_for(self, side: BattleSide) -> Team:
        return self.player_team if side == BattleSide.PLAYER else self.opponent_team

    def fighter_id_for(self, side: BattleSide) -> str:
        return self.player_fighter_id if side == BattleSide.PLAYER else self.opponent_fighter_id

    def fighter_for(self, side: BattleSide) -> Character:
        """The active fighter on a side."""
        team = self.team_for(side)
        fighter = team.get_character(self.fighter_id_for(side))
        if fighter is None:
            raise KeyError(f"Active fighter {self.fighter_id_for(side)} not on {team.team_id}")
        return fighter

    def morale_for(self, side: BattleSide) -> TeamMorale:
        return self.player_morale if side == BattleSide.PLAYER else self.opponent_morale

    def side_of(self, character_id: str) -> Optional[BattleSide]:
        if self.player_team.get_character(character_id) is not None:
            return BattleSide.PLAYER
        if self.opponent_team.get_character(character_id) is not None:
            return BattleSide.OPPONENT
        return None

    @property
    def latest_result(self) -> Optional[RoundResult]:
        return self.round_results[-1] if self.round_results else None

    # -------------------------------------------------------------------------
    # Copy helpers
    # -------------------------------------------------------------------------

    def with_team(self, side: BattleSide, team: Team) -> "BattleState":
        if side == BattleSide.PLAYER:
            return replace(self, player_team=team)
        return replace(self, opponent_team=team)

    def with_morale(self, side: BattleSide, morale: TeamMorale) -> "BattleState":
        if side == BattleSide.PLAYER:
            return replace(self, player_morale=morale)
        return replace(self, opponent_morale=morale)

    def with_fighter(self, side: BattleSide, character_id: str) -> "BattleState":
        if side == BattleSide.PLAYER:
            return replace(self, player_fighter_id=character_id)
        return replace(self, opponent_fighter_id=character_id)

    def bumped(self, **changes: Any) -> "BattleState":
        """Return a copy with the changes applied and the version incremented."""
        return replace(self, version=self.version + 1, **changes)
