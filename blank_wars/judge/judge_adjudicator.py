"""
Judge adjudication for the Blank Wars battle engine.

Every rogue action is ruled on by the battle's judge persona. The judge
never vetoes: whatever the fighter did happens, and the ruling decides what
it cost. Personas differ in how much they like damage, how much they reward
audacity, and how hard they punish indiscipline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union
import logging

from blank_wars.data_models import (
    Character,
    DiceRoller,
    JudgeRuling,
    RogueAction,
    RogueActionType,
    Severity,
    TeamMorale,
    clamp,
)
from blank_wars.judge.rogue_actions import ROGUE_PROFILES

logger = logging.getLogger(__name__)


class JudgeStyle(str, Enum):
    """Ruling styles."""
    STRICT = "strict"
    CHAOTIC = "chaotic"
    LOGICAL = "logical"
    THEATRICAL = "theatrical"
    LENIENT = "lenient"


@dataclass(frozen=True)
class JudgePersona:
    """
    A judge personality. Held for the whole battle.

    All tendencies are 0-1.
    """
    name: str
    style: JudgeStyle
    description: str
    leniency: float
    favors_damage: float
    favors_creativity: float
    strictness: float
    narrative_focus: float


JUDGE_ROSTER: tuple[JudgePersona, ...] = (
    JudgePersona(
        name="Judge Executioner",
        style=JudgeStyle.STRICT,
        description="A no-nonsense military judge who values order and discipline",
        leniency=0.1,
        favors_damage=0.7,
        favors_creativity=0.2,
        strictness=0.9,
        narrative_focus=0.4,
    ),
    JudgePersona(
        name="Judge Chaos",
        style=JudgeStyle.CHAOTIC,
        description="A wild card who embraces unpredictability and rewards bold moves",
        leniency=0.8,
        favors_damage=0.6,
        favors_creativity=0.95,
        strictness=0.1,
        narrative_focus=0.8,
    ),
    JudgePersona(
        name="Judge Wisdom",
        style=JudgeStyle.LOGICAL,
        description="A calculated judge who makes decisions based on pure logic",
        leniency=0.4,
        favors_damage=0.5,
        favors_creativity=0.6,
        strictness=0.7,
        narrative_focus=0.3,
    ),
    JudgePersona(
        name="Judge Spectacle",
        style=JudgeStyle.THEATRICAL,
        description="A showman who prioritizes entertainment value above all else",
        leniency=0.7,
        favors_damage=0.8,
        favors_creativity=0.85,
        strictness=0.3,
        narrative_focus=0.95,
    ),
    JudgePersona(
        name="Judge Mercy",
        style=JudgeStyle.LENIENT,
        description="A compassionate judge who tries to minimize harm while maintaining fairness",
        leniency=0.9,
        favors_damage=0.2,
        favors_creativity=0.7,
        strictness=0.4,
        narrative_focus=0.6,
    ),
)


def get_persona(name: str) -> JudgePersona:
    """Look up a roster persona by name."""
    for persona in JUDGE_ROSTER:
        if persona.name == name:
            return persona
    raise KeyError(f"Unknown judge persona: {name}")


def select_persona(dice: DiceRoller) -> JudgePersona:
    """Pick the judge for a battle."""
    persona = dice.choice(JUDGE_ROSTER, reason="judge selection")
    logger.info(f"{persona.name} will preside over this battle")
    return persona


# =============================================================================
# RULING TABLES
# =============================================================================


DAMAGE_MULTIPLIERS: dict[RogueActionType, float] = {
    RogueActionType.RECKLESS_ATTACK: 1.5,
    RogueActionType.BERSERKER_RAGE: 2.0,
    RogueActionType.GRANDSTANDING: 1.2,
    RogueActionType.CREATIVE_STRATEGY: 1.3,
    RogueActionType.EVASIVE_RETREAT: 0.3,
    RogueActionType.SELF_SABOTAGE: 0.2,
    RogueActionType.REFUSE_FIGHT: 0.0,
    RogueActionType.PANIC_FLEE: 0.0,
    RogueActionType.PROTECTIVE_SACRIFICE: 0.8,
}

# Fraction of the actor's max HP lost at full intensity
BACKLASH_FACTORS: dict[RogueActionType, float] = {
    RogueActionType.RECKLESS_ATTACK: 0.10,
    RogueActionType.BERSERKER_RAGE: 0.15,
    RogueActionType.GRANDSTANDING: 0.05,
    RogueActionType.CREATIVE_STRATEGY: 0.05,
    RogueActionType.EVASIVE_RETREAT: 0.0,
    RogueActionType.SELF_SABOTAGE: 0.15,
    RogueActionType.REFUSE_FIGHT: 0.05,
    RogueActionType.PANIC_FLEE: 0.03,
    RogueActionType.PROTECTIVE_SACRIFICE: 0.08,
}

# Fraction of the opponent's attack landed as a free counter-hit
COUNTER_HIT_FACTORS: dict[RogueActionType, float] = {
    RogueActionType.RECKLESS_ATTACK: 0.3,
    RogueActionType.REFUSE_FIGHT: 0.5,
    RogueActionType.PANIC_FLEE: 0.2,
}

BASE_MORALE_CHANGES: dict[RogueActionType, float] = {
    RogueActionType.RECKLESS_ATTACK: -8.0,
    RogueActionType.BERSERKER_RAGE: -5.0,
    RogueActionType.GRANDSTANDING: -6.0,
    RogueActionType.CREATIVE_STRATEGY: -4.0,
    RogueActionType.EVASIVE_RETREAT: -6.0,
    RogueActionType.SELF_SABOTAGE: -12.0,
    RogueActionType.REFUSE_FIGHT: -15.0,
    RogueActionType.PANIC_FLEE: -20.0,
    RogueActionType.PROTECTIVE_SACRIFICE: 10.0,
}

SEVERITY_SCALES: dict[Severity, float] = {
    Severity.MINOR: 0.6,
    Severity.MODERATE: 1.0,
    Severity.MAJOR: 1.4,
    Severity.EXTREME: 1.8,
}

MORALE_CHANGE_FLOOR = -30.0
MORALE_CHANGE_CEILING = 20.0

_PERSONA_FLAVOR: dict[JudgeStyle, tuple[str, str, str]] = {
    # (minor/moderate, major, extreme)
    JudgeStyle.STRICT: (
        "Maintain discipline, combatant.",
        "This disruption will not be tolerated!",
        "UNACCEPTABLE CONDUCT!",
    ),
    JudgeStyle.CHAOTIC: (
        "Spice things up, why don't you?",
        "I LOVE the creativity!",
        "NOW WE'RE COOKING WITH FIRE!",
    ),
    JudgeStyle.THEATRICAL: (
        "The crowd is on the edge of their seats!",
        "What a spectacular display!",
        "LADIES AND GENTLEMEN, WITNESS PURE CHAOS!",
    ),
    JudgeStyle.LOGICAL: (
        "Standard protocols apply.",
        "Logical analysis suggests adaptive ruling required.",
        "Probability calculations indicate unprecedented outcomes.",
    ),
    JudgeStyle.LENIENT: (
        "Everyone deserves a second chance.",
        "Perhaps rehabilitation rather than punishment?",
        "While concerning, we must show understanding.",
    ),
}


def persona_flavor(persona: JudgePersona, severity: Severity) -> str:
    """The persona's signature line for a given severity."""
    minor, major, extreme = _PERSONA_FLAVOR[persona.style]
    if severity == Severity.EXTREME:
        return extreme
    if severity == Severity.MAJOR:
        return major
    return minor


class JudgeAdjudicator:
    """
    Rules on rogue actions under one persona.

    Attributes:
        persona: The presiding judge
        dice: Randomization source for variance and payoff rolls
    """

    def __init__(self, persona: JudgePersona, dice: DiceRoller):
        self.persona = persona
        self.dice = dice

    def payoff_chance(self, rogue_action: RogueAction) -> float:
        """Chance that an audacious action is rewarded instead of punished."""
        if not ROGUE_PROFILES[rogue_action.action_type].audacious:
            return 0.0
        p = self.persona
        chance = 0.2 + 0.4 * p.leniency + 0.3 * p.favors_creativity - 0.2 * rogue_action.intensity
        return clamp(chance, 0.05, 0.9)

    def rule(
        self,
        rogue_action: RogueAction,
        actor: Character,
        opponent: Character,
        acting_team_morale: Union[TeamMorale, float],
    ) -> JudgeRuling:
        """
        Produce the ruling for a rogue action.

        Args:
            rogue_action: What the fighter did
            actor: The deviating fighter
            opponent: The fighter they faced
            acting_team_morale: The deviating side's morale

        Returns:
            JudgeRuling with damage, backlash, morale change and narrative
        """
        persona = self.persona
        action_type = rogue_action.action_type
        intensity = rogue_action.intensity
        severity_scale = SEVERITY_SCALES[rogue_action.severity]
        morale = (
            acting_team_morale.current
            if isinstance(acting_team_morale, TeamMorale)
            else float(acting_team_morale)
        )

        paid_off = False
        chance = self.payoff_chance(rogue_action)
        if chance > 0:
            paid_off = self.dice.random(reason=f"{persona.name} payoff check") < chance

        # Damage to opponent
        damage = 0
        multiplier = DAMAGE_MULTIPLIERS[action_type]
        if multiplier > 0:
            variance = self.dice.uniform(0.8, 1.2, reason="judge damage variance")
            raw = (
                actor.attack
                * multiplier
                * (0.75 + 0.5 * intensity)
                * (0.8 + 0.4 * persona.favors_damage)
                * variance
                - opponent.defense * 0.25
            )
            if ROGUE_PROFILES[action_type].audacious:
                raw *= 1.25 if paid_off else 0.5
            damage = max(1, int(raw))

        # Backlash on the actor
        backlash = 0
        if not paid_off:
            self_harm = (
                actor.max_hp
                * BACKLASH_FACTORS[action_type]
                * intensity
                * severity_scale
                * (0.5 + persona.strictness)
            )
            counter = opponent.attack * COUNTER_HIT_FACTORS.get(action_type, 0.0) * intensity
            backlash = max(0, int(self_harm + counter))

        # Morale
        if paid_off:
            morale_change = 5.0 + 10.0 * persona.favors_creativity
        else:
            base = BASE_MORALE_CHANGES[action_type]
            if base < 0:
                morale_change = base * severity_scale * (0.75 + 0.5 * persona.strictness)
            else:
                morale_change = base * (0.75 + 0.5 * persona.leniency)
            # A team already on the floor has less left to lose
            if morale < 20 and morale_change < 0:
                morale_change *= 0.5
        morale_change = round(clamp(morale_change, MORALE_CHANGE_FLOOR, MORALE_CHANGE_CEILING), 1)

        narrative = self._narrative(rogue_action, actor, opponent, damage, backlash, paid_off)
        explanation = self._coach_explanation(
            rogue_action, actor, damage, backlash, morale_change, paid_off
        )

        ruling = JudgeRuling(
            persona_name=persona.name,
            action_type=action_type,
            damage_to_opponent=damage,
            backlash_damage=backlash,
            morale_change=morale_change,
            paid_off=paid_off,
            narrative_description=narrative,
            coach_explanation=explanation,
        )
        logger.info(
            f"{persona.name} rules on {actor.name}'s {action_type.value}: "
            f"{damage} dmg, {backlash} backlash, morale {morale_change:+.1f}"
        )
        return ruling

    def _narrative(
        self,
        rogue_action: RogueAction,
        actor: Character,
        opponent: Character,
        damage: int,
        backlash: int,
        paid_off: bool,
    ) -> str:
        parts = [rogue_action.description + "."]
        if paid_off:
            parts.append(f"Against all odds it works, and {opponent.name} reels.")
        elif damage > 0 and backlash > 0:
            parts.append(f"It lands on {opponent.name}, but {actor.name} pays for it.")
        elif damage > 0:
            parts.append(f"{opponent.name} takes the brunt of it.")
        elif backlash > 0:
            parts.append(f"{opponent.name} punishes the lapse.")
        else:
            parts.append("Nothing comes of it but lost time.")
        parts.append(f"{self.persona.name}: {persona_flavor(self.persona, rogue_action.severity)}")
        return " ".join(parts)

    def _coach_explanation(
        self,
        rogue_action: RogueAction,
        actor: Character,
        damage: int,
        backlash: int,
        morale_change: float,
        paid_off: bool,
    ) -> str:
        verdict = "rewards" if paid_off else "penalizes"
        label = rogue_action.action_type.value.replace("_", " ")
        return (
            f"{self.persona.name} {verdict} {actor.name}'s {label} "
            f"({rogue_action.severity.value}): {damage} damage dealt, "
            f"{backlash} backlash, team morale {morale_change:+.0f}. "
            f"Reason: {rogue_action.reason or 'unstated'}."
        )
