"""
Rogue action generation for the Blank Wars battle engine.

When a fighter goes rogue, this module decides WHAT they do instead of the
coach's plan. The choice is drawn from an archetype-weighted table, biased by
how the battle is going and by the fighter's current psychology. The result
describes the deviation only; the judge decides what it costs.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union
import logging

from blank_wars.data_models import (
    Archetype,
    Character,
    DiceRoller,
    Momentum,
    RogueAction,
    RogueActionType,
    RogueTarget,
    Severity,
    TeamMorale,
    clamp,
)

if TYPE_CHECKING:
    from blank_wars.psychology.psychology_manager import PsychologyState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RogueProfile:
    """Static shape of a rogue action type."""
    base_intensity: float
    target: RogueTarget
    self_sabotaging: bool = False
    audacious: bool = False


ROGUE_PROFILES: dict[RogueActionType, RogueProfile] = {
    RogueActionType.RECKLESS_ATTACK: RogueProfile(0.55, RogueTarget.OPPONENT),
    RogueActionType.BERSERKER_RAGE: RogueProfile(0.75, RogueTarget.OPPONENT),
    RogueActionType.GRANDSTANDING: RogueProfile(0.45, RogueTarget.ARENA, audacious=True),
    RogueActionType.CREATIVE_STRATEGY: RogueProfile(0.40, RogueTarget.OPPONENT, audacious=True),
    RogueActionType.EVASIVE_RETREAT: RogueProfile(0.30, RogueTarget.ARENA),
    RogueActionType.SELF_SABOTAGE: RogueProfile(0.60, RogueTarget.SELF, self_sabotaging=True),
    RogueActionType.REFUSE_FIGHT: RogueProfile(0.45, RogueTarget.SELF, self_sabotaging=True),
    RogueActionType.PANIC_FLEE: RogueProfile(0.50, RogueTarget.ARENA, self_sabotaging=True),
    RogueActionType.PROTECTIVE_SACRIFICE: RogueProfile(0.35, RogueTarget.SELF),
}

DESPERATE_TYPES = (
    RogueActionType.SELF_SABOTAGE,
    RogueActionType.PANIC_FLEE,
    RogueActionType.REFUSE_FIGHT,
)

HIGH_VARIANCE_TYPES = (
    RogueActionType.GRANDSTANDING,
    RogueActionType.CREATIVE_STRATEGY,
)


def _weights(
    reckless: float = 1,
    berserker: float = 1,
    grandstanding: float = 1,
    creative: float = 1,
    evasive: float = 1,
    sabotage: float = 1,
    refuse: float = 1,
    panic: float = 1,
    protective: float = 1,
) -> dict[RogueActionType, float]:
    return {
        RogueActionType.RECKLESS_ATTACK: reckless,
        RogueActionType.BERSERKER_RAGE: berserker,
        RogueActionType.GRANDSTANDING: grandstanding,
        RogueActionType.CREATIVE_STRATEGY: creative,
        RogueActionType.EVASIVE_RETREAT: evasive,
        RogueActionType.SELF_SABOTAGE: sabotage,
        RogueActionType.REFUSE_FIGHT: refuse,
        RogueActionType.PANIC_FLEE: panic,
        RogueActionType.PROTECTIVE_SACRIFICE: protective,
    }


# Aggressive archetypes lean reckless, cerebral ones evasive/creative,
# tricksters creative/grandstanding, leaders protective.
ARCHETYPE_ROGUE_WEIGHTS: dict[Archetype, dict[RogueActionType, float]] = {
    Archetype.WARRIOR: _weights(reckless=5, berserker=4, grandstanding=2, evasive=0.5, panic=0.5),
    Archetype.BEAST: _weights(reckless=4, berserker=6, creative=0.5, grandstanding=0.5, panic=2),
    Archetype.MONSTER: _weights(reckless=4, berserker=5, grandstanding=3, protective=0.25),
    Archetype.BIKER: _weights(reckless=5, berserker=3, grandstanding=3, refuse=1.5),
    Archetype.MERCENARY: _weights(reckless=3, berserker=2, refuse=3, evasive=2, protective=0.5),
    Archetype.MAGE: _weights(reckless=1, berserker=0.5, creative=5, evasive=3, sabotage=2),
    Archetype.DETECTIVE: _weights(reckless=0.5, berserker=0.25, creative=5, evasive=3, grandstanding=2),
    Archetype.ALIEN: _weights(reckless=1, berserker=1, creative=4, evasive=4, panic=2, sabotage=2),
    Archetype.TRICKSTER: _weights(reckless=1, berserker=0.5, creative=5, grandstanding=4, evasive=2),
    Archetype.LEADER: _weights(reckless=1, berserker=0.5, grandstanding=3, protective=5, refuse=0.5),
    Archetype.COWBOY: _weights(reckless=4, berserker=1, grandstanding=5, creative=2),
}

SEVERITY_BANDS: list[tuple[float, Severity]] = [
    (0.30, Severity.MINOR),
    (0.55, Severity.MODERATE),
    (0.80, Severity.MAJOR),
]

LOW_MORALE = 40.0


def severity_for_intensity(intensity: float) -> Severity:
    """Map a 0-1 intensity onto a severity band."""
    for upper, severity in SEVERITY_BANDS:
        if intensity < upper:
            return severity
    return Severity.EXTREME


_DESCRIPTIONS: dict[RogueActionType, str] = {
    RogueActionType.RECKLESS_ATTACK: "{name} ignores the gameplan and charges {opponent} with no thought for defense",
    RogueActionType.BERSERKER_RAGE: "{name} flies into a berserker rage and tears into {opponent}",
    RogueActionType.GRANDSTANDING: "{name} turns to the crowd and starts showboating instead of fighting {opponent}",
    RogueActionType.CREATIVE_STRATEGY: "{name} abandons the plan for an unorthodox gambit against {opponent}",
    RogueActionType.EVASIVE_RETREAT: "{name} disengages from {opponent} to re-think the fight alone",
    RogueActionType.SELF_SABOTAGE: "{name} fumbles the approach and undermines their own position",
    RogueActionType.REFUSE_FIGHT: "{name} refuses to engage {opponent} at all",
    RogueActionType.PANIC_FLEE: "{name} panics and bolts for the edge of the arena",
    RogueActionType.PROTECTIVE_SACRIFICE: "{name} throws themself between {opponent} and a teammate",
}


class RogueActionGenerator:
    """
    Chooses an archetype-flavored rogue action.

    Never produces damage numbers; JudgeAdjudicator owns consequences.
    """

    def __init__(self, dice: DiceRoller):
        self.dice = dice

    def generate(
        self,
        character: Character,
        opponent: Character,
        team_morale: Union[TeamMorale, float],
        momentum: Momentum,
        psychology: Optional["PsychologyState"] = None,
    ) -> RogueAction:
        """
        Generate a rogue action for a fighter who has gone off-plan.

        Args:
            character: The deviating fighter
            opponent: Who they were supposed to fight
            team_morale: The fighter's team morale (TeamMorale or raw value)
            momentum: Which way the battle is going for the fighter's side
            psychology: Current psychology, if available

        Returns:
            RogueAction
        """
        morale = team_morale.current if isinstance(team_morale, TeamMorale) else float(team_morale)
        weights = self.action_weights(character.archetype, morale, momentum, psychology)

        options = list(RogueActionType)
        action_type = self.dice.weighted_choice(
            options,
            [weights[t] for t in options],
            reason=f"rogue action for {character.character_id}",
        )

        intensity = self._intensity(action_type, morale, momentum, psychology)
        severity = severity_for_intensity(intensity)
        profile = ROGUE_PROFILES[action_type]

        action = RogueAction(
            action_type=action_type,
            character_id=character.character_id,
            description=_DESCRIPTIONS[action_type].format(
                name=character.name, opponent=opponent.name
            ),
            target=profile.target,
            intensity=intensity,
            severity=severity,
            reason=self._reason(character, morale, psychology),
        )
        logger.info(
            f"{character.name} goes rogue: {action_type.value} "
            f"({severity.value}, intensity {intensity:.2f})"
        )
        return action

    def action_weights(
        self,
        archetype: Archetype,
        morale: float,
        momentum: Momentum,
        psychology: Optional["PsychologyState"] = None,
    ) -> dict[RogueActionType, float]:
        """Weight table after momentum, morale and psychology biases."""
        weights = dict(ARCHETYPE_ROGUE_WEIGHTS[archetype])

        if momentum == Momentum.LOSING:
            for action_type in DESPERATE_TYPES + (RogueActionType.RECKLESS_ATTACK,):
                weights[action_type] *= 1.5
            if morale < LOW_MORALE:
                for action_type in DESPERATE_TYPES:
                    weights[action_type] *= 2.0
        elif momentum == Momentum.WINNING:
            for action_type in HIGH_VARIANCE_TYPES:
                weights[action_type] *= 2.0

        if psychology is not None:
            if psychology.stress >= 80:
                weights[RogueActionType.PANIC_FLEE] *= 1.5
                weights[RogueActionType.SELF_SABOTAGE] *= 1.5
            if psychology.ego > 80:
                weights[RogueActionType.GRANDSTANDING] *= 1.5
        return weights

    def _intensity(
        self,
        action_type: RogueActionType,
        morale: float,
        momentum: Momentum,
        psychology: Optional["PsychologyState"],
    ) -> float:
        intensity = ROGUE_PROFILES[action_type].base_intensity
        if psychology is not None:
            intensity += (psychology.stress - 50) / 250
        if momentum == Momentum.LOSING and morale < LOW_MORALE:
            intensity += 0.1
        intensity += self.dice.uniform(-0.15, 0.15, reason="rogue intensity jitter")
        return clamp(intensity, 0.0, 1.0)

    def _reason(
        self, character: Character, morale: float, psychology: Optional["PsychologyState"]
    ) -> str:
        if psychology is not None and psychology.stress >= 80:
            return "Mental strain overrides decision making"
        if (psychology.ego if psychology is not None else character.psych.ego) > 80:
            return "Believes their approach is better than the gameplan"
        if character.hp_fraction < 0.3:
            return "Pain and emotion override strategic thinking"
        if morale < 30:
            return "Low team morale leads to independent decisions"
        return "Prefers to adapt strategy based on field conditions"
