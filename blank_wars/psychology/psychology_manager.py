"""
Character psychology for the Blank Wars battle engine.

Builds each fighter's PsychologyState at the start of a battle from their
archetype, innate traits, team chemistry, teammate relationships and any
home-team environment modifiers, and evolves it after every round they take
part in.

The manager is stateless: initialize() and update() return new frozen
PsychologyState values and the BattleStateMachine stores them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional
import logging

from blank_wars.config import RiskWeights
from blank_wars.data_models import (
    Archetype,
    Character,
    DeviationOutcome,
    RoundResult,
    Severity,
    Stakes,
    Team,
    clamp,
    clamp_percent,
)
from blank_wars.psychology.adherence import compute_deviation_risk

logger = logging.getLogger(__name__)


class Mood(str, Enum):
    """Coarse emotional state derived from the stress/trust pair."""
    CONFIDENT = "confident"
    FOCUSED = "focused"
    NEUTRAL = "neutral"
    ANXIOUS = "anxious"
    DEFIANT = "defiant"
    BREAKING = "breaking"


def derive_mood(stress: float, trust: float) -> Mood:
    """Mood for a stress/trust pair (both 0-100)."""
    if stress >= 80:
        return Mood.BREAKING
    if stress >= 60:
        return Mood.DEFIANT if trust < 35 else Mood.ANXIOUS
    if trust < 30:
        return Mood.DEFIANT
    if stress < 30 and trust >= 70:
        return Mood.CONFIDENT
    if trust >= 55:
        return Mood.FOCUSED
    return Mood.NEUTRAL


@dataclass(frozen=True)
class PsychologyState:
    """
    A fighter's per-battle psychology.

    All factors are 0-100. relationships maps teammate id to affinity in
    [-100, 100] and is a read-only view. deviation_risk is the baseline risk
    with no coaching applied.
    """
    character_id: str
    trust_in_coach: float
    ego: float
    stress: float
    fatigue: float
    mood: Mood
    relationships: Mapping[str, float] = field(default_factory=dict)
    deviation_risk: float = 0.0

    def __post_init__(self):
        if not isinstance(self.relationships, MappingProxyType):
            object.__setattr__(self, "relationships", MappingProxyType(dict(self.relationships)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "character_id": self.character_id,
            "trust_in_coach": round(self.trust_in_coach, 2),
            "ego": round(self.ego, 2),
            "stress": round(self.stress, 2),
            "fatigue": round(self.fatigue, 2),
            "mood": self.mood.value,
            "relationships": dict(self.relationships),
            "deviation_risk": round(self.deviation_risk, 4),
        }


# =============================================================================
# ARCHETYPE TABLES
# =============================================================================


@dataclass(frozen=True)
class ArchetypeBias:
    """Additive starting offsets for one archetype."""
    trust: float = 0.0
    ego: float = 0.0
    stress: float = 0.0
    fatigue: float = 0.0


ARCHETYPE_BIASES: dict[Archetype, ArchetypeBias] = {
    Archetype.WARRIOR: ArchetypeBias(trust=5, ego=5, stress=-5),
    Archetype.MAGE: ArchetypeBias(trust=0, ego=10, stress=0, fatigue=5),
    Archetype.TRICKSTER: ArchetypeBias(trust=-10, ego=10, stress=-5),
    Archetype.BEAST: ArchetypeBias(trust=-10, ego=0, stress=10),
    Archetype.LEADER: ArchetypeBias(trust=10, ego=5, stress=-10),
    Archetype.DETECTIVE: ArchetypeBias(trust=-5, ego=15, stress=0),
    Archetype.MONSTER: ArchetypeBias(trust=-15, ego=15, stress=5),
    Archetype.ALIEN: ArchetypeBias(trust=-10, ego=5, stress=10),
    Archetype.MERCENARY: ArchetypeBias(trust=-5, ego=0, stress=0),
    Archetype.COWBOY: ArchetypeBias(trust=0, ego=10, stress=-5),
    Archetype.BIKER: ArchetypeBias(trust=-10, ego=10, stress=5),
}

# Archetype pairs that get along (+) or clash (-)
ARCHETYPE_AFFINITIES: dict[frozenset, float] = {
    frozenset({Archetype.LEADER, Archetype.WARRIOR}): 15,
    frozenset({Archetype.WARRIOR}): 10,
    frozenset({Archetype.MAGE, Archetype.ALIEN}): 10,
    frozenset({Archetype.COWBOY, Archetype.BIKER}): 10,
    frozenset({Archetype.LEADER, Archetype.MONSTER}): -20,
    frozenset({Archetype.DETECTIVE, Archetype.MONSTER}): -15,
    frozenset({Archetype.DETECTIVE, Archetype.TRICKSTER}): -20,
    frozenset({Archetype.MERCENARY, Archetype.LEADER}): -10,
    frozenset({Archetype.BEAST, Archetype.MAGE}): -10,
}

NEUTRAL_AFFINITY = 0.0

STAKES_STRESS: dict[Stakes, float] = {
    Stakes.NORMAL: 0.0,
    Stakes.HIGH: 10.0,
    Stakes.DEATH_MATCH: 20.0,
}

SEVERITY_TRUST_PENALTY: dict[Severity, float] = {
    Severity.MINOR: 0.0,
    Severity.MODERATE: 2.0,
    Severity.MAJOR: 5.0,
    Severity.EXTREME: 8.0,
}

# Per-round update deltas
PLAN_SUCCESS_STRESS = -5.0
PLAN_SUCCESS_TRUST = 3.0
IMPROVISE_STRESS = -1.0
ROGUE_PUNISHED_TRUST = -8.0
ROGUE_PUNISHED_STRESS = 6.0
ROGUE_PAYOFF_EGO = 5.0
ROGUE_PAYOFF_TRUST = -2.0
ROGUE_PAYOFF_STRESS = -3.0
ACTING_FATIGUE = 4.0
DEFENDING_FATIGUE = 2.0
DAMAGE_STRESS_SCALE = 50.0
BACKLASH_STRESS_SCALE = 40.0
MORALE_STRESS_SCALE = 0.2
COHESION_STRESS_SCALE = 0.2


# =============================================================================
# ENVIRONMENT MODIFIERS
# =============================================================================


class EnvironmentModifiers:
    """
    Opaque bundle of home-team environment effects.

    Keys are psychology factors ("trust", "ego", "stress", "fatigue") for an
    additive shift, or "<factor>_multiplier" for a multiplicative one;
    "morale" shifts the team's starting morale. Unknown keys are ignored.
    """

    FACTORS = ("trust", "ego", "stress", "fatigue")

    def __init__(self, values: Optional[Mapping[str, float]] = None):
        self._values: dict[str, float] = {}
        for key, value in (values or {}).items():
            try:
                self._values[key] = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-numeric environment modifier {key}={value!r}")

    @classmethod
    def coerce(cls, value: Any) -> "EnvironmentModifiers":
        """Accept an EnvironmentModifiers, a mapping, a zero-arg provider, or None."""
        if value is None:
            return cls()
        if isinstance(value, EnvironmentModifiers):
            return value
        if callable(value):
            return cls.coerce(value())
        return cls(value)

    @property
    def morale_shift(self) -> float:
        return self._values.get("morale", 0.0)

    def apply(self, factor: str, value: float) -> float:
        """Apply the additive then multiplicative modifier for one factor."""
        value += self._values.get(factor, 0.0)
        value *= self._values.get(f"{factor}_multiplier", 1.0)
        return value

    def unknown_keys(self) -> list[str]:
        known = set(self.FACTORS) | {f"{f}_multiplier" for f in self.FACTORS} | {"morale"}
        return sorted(k for k in self._values if k not in known)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __repr__(self) -> str:
        return f"EnvironmentModifiers({self._values})"


# =============================================================================
# MANAGER
# =============================================================================


class PsychologyStateManager:
    """
    Creates and evolves PsychologyState values.

    Stateless apart from its configuration tables; safe to share between
    battles.
    """

    def __init__(
        self,
        risk_weights: Optional[RiskWeights] = None,
        relationship_pairs: Optional[Mapping[frozenset, float]] = None,
    ):
        """
        Args:
            risk_weights: Weights for the baseline deviation risk
            relationship_pairs: Extra affinity offsets keyed by frozenset of two
                character ids
        """
        self.risk_weights = risk_weights or RiskWeights()
        self.relationship_pairs: dict[frozenset, float] = dict(relationship_pairs or {})

    def initialize(
        self,
        character: Character,
        team: Team,
        environment_modifiers: Optional[Any] = None,
        stakes: Stakes = Stakes.NORMAL,
    ) -> PsychologyState:
        """
        Build a fighter's starting psychology.

        Args:
            character: The fighter
            team: The fighter's team (chemistry and teammates)
            environment_modifiers: Home-team modifiers, or None for the away team
            stakes: Battle stakes; higher stakes raise starting stress

        Returns:
            A fresh PsychologyState
        """
        modifiers = EnvironmentModifiers.coerce(environment_modifiers)
        bias = ARCHETYPE_BIASES.get(character.archetype, ArchetypeBias())
        psych = character.psych

        relationships = self.seed_relationships(character, team)
        cohesion = (
            sum(relationships.values()) / len(relationships) if relationships else NEUTRAL_AFFINITY
        )

        trust = (
            0.6 * psych.training
            + 0.25 * psych.team_player
            + 0.15 * psych.communication
            + bias.trust
            + (team.team_chemistry - 50) * 0.2
        )
        ego = psych.ego + bias.ego
        stress = 20 + (100 - psych.mental_health) * 0.5 + bias.stress + STAKES_STRESS[stakes]
        if cohesion < 0:
            stress += -cohesion * COHESION_STRESS_SCALE
        fatigue = bias.fatigue + (1 - character.hp_fraction) * 50

        if modifiers:
            trust = modifiers.apply("trust", trust)
            ego = modifiers.apply("ego", ego)
            stress = modifiers.apply("stress", stress)
            fatigue = modifiers.apply("fatigue", fatigue)

        return self._build(
            character_id=character.character_id,
            trust=trust,
            ego=ego,
            stress=stress,
            fatigue=fatigue,
            relationships=relationships,
        )

    def seed_relationships(self, character: Character, team: Team) -> dict[str, float]:
        """Starting affinity toward every teammate."""
        relationships: dict[str, float] = {}
        for mate in team.characters:
            if mate.character_id == character.character_id:
                continue
            affinity = NEUTRAL_AFFINITY
            affinity += ARCHETYPE_AFFINITIES.get(
                frozenset({character.archetype, mate.archetype}), 0.0
            )
            affinity += self.relationship_pairs.get(
                frozenset({character.character_id, mate.character_id}), 0.0
            )
            relationships[mate.character_id] = clamp(affinity, -100.0, 100.0)
        return relationships

    def update(
        self,
        state: PsychologyState,
        round_result: RoundResult,
        max_hp: Optional[int] = None,
    ) -> PsychologyState:
        """
        Evolve psychology after a round.

        Fighters not involved in the round are returned unchanged.

        Args:
            state: Current psychology
            round_result: The round just resolved
            max_hp: The fighter's max HP, used to scale damage-driven stress

        Returns:
            Updated PsychologyState
        """
        is_attacker = state.character_id == round_result.attacker_id
        is_defender = state.character_id == round_result.defender_id
        if not (is_attacker or is_defender):
            return state

        trust = state.trust_in_coach
        ego = state.ego
        stress = state.stress
        fatigue = state.fatigue

        if is_attacker:
            hp_scale = max_hp or max(1, round_result.attacker_hp_after + round_result.backlash_damage)
            fatigue += ACTING_FATIGUE

            if round_result.outcome == DeviationOutcome.FOLLOWS_PLAN:
                stress += PLAN_SUCCESS_STRESS
                trust += PLAN_SUCCESS_TRUST
            elif round_result.outcome == DeviationOutcome.IMPROVISES:
                stress += IMPROVISE_STRESS
            else:
                ruling = round_result.judge_ruling
                if ruling is not None and ruling.paid_off:
                    ego += ROGUE_PAYOFF_EGO
                    trust += ROGUE_PAYOFF_TRUST
                    stress += ROGUE_PAYOFF_STRESS
                else:
                    severity = (
                        round_result.rogue_action.severity
                        if round_result.rogue_action
                        else Severity.MINOR
                    )
                    trust += ROGUE_PUNISHED_TRUST - SEVERITY_TRUST_PENALTY[severity]
                    stress += ROGUE_PUNISHED_STRESS

            if round_result.backlash_damage > 0:
                stress += round_result.backlash_damage / hp_scale * BACKLASH_STRESS_SCALE
            stress -= round_result.morale_change * MORALE_STRESS_SCALE

        if is_defender:
            hp_scale = max_hp or max(1, round_result.defender_hp_after + round_result.damage)
            fatigue += DEFENDING_FATIGUE
            if round_result.damage > 0:
                stress += max(1.0, round_result.damage / hp_scale * DAMAGE_STRESS_SCALE)

        updated = self._build(
            character_id=state.character_id,
            trust=trust,
            ego=ego,
            stress=stress,
            fatigue=fatigue,
            relationships=state.relationships,
        )
        if updated.mood != state.mood:
            logger.debug(f"{state.character_id} mood {state.mood.value} -> {updated.mood.value}")
        return updated

    def with_factors(self, state: PsychologyState, **factors: float) -> PsychologyState:
        """Return a copy with some factors overridden and mood/risk recomputed."""
        merged = replace(state, **factors)
        return self._build(
            character_id=merged.character_id,
            trust=merged.trust_in_coach,
            ego=merged.ego,
            stress=merged.stress,
            fatigue=merged.fatigue,
            relationships=merged.relationships,
        )

    def _build(
        self,
        character_id: str,
        trust: float,
        ego: float,
        stress: float,
        fatigue: float,
        relationships: Mapping[str, float],
    ) -> PsychologyState:
        trust = clamp_percent(trust)
        ego = clamp_percent(ego)
        stress = clamp_percent(stress)
        fatigue = clamp_percent(fatigue)
        return PsychologyState(
            character_id=character_id,
            trust_in_coach=trust,
            ego=ego,
            stress=stress,
            fatigue=fatigue,
            mood=derive_mood(stress, trust),
            relationships=dict(relationships),
            deviation_risk=compute_deviation_risk(
                stress=stress,
                ego=ego,
                fatigue=fatigue,
                trust=trust,
                weights=self.risk_weights,
            ),
        )
