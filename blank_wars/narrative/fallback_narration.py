"""
Procedural narration for the Blank Wars battle engine.

The authoritative description of every round comes from here, built only
from the RoundResult and the fighters involved. It is also what players see
when the dialogue generator is slow or down.

Template choice is keyed on the round number, never on the battle's dice,
so narration cannot change the random stream.
"""

from typing import Optional
import logging

from blank_wars.ai.dialogue_generator import FlavorContext
from blank_wars.data_models import (
    Archetype,
    BattleEndReason,
    BattleOutcome,
    Character,
    DeviationOutcome,
    JudgeRuling,
    MentalHealthLevel,
    RogueAction,
    RogueActionType,
    RoundResult,
    Team,
    get_mental_health_level,
)

logger = logging.getLogger(__name__)


_STRIKE_VERBS: dict[Archetype, tuple[str, ...]] = {
    Archetype.WARRIOR: ("hammers", "cleaves into", "drives forward against"),
    Archetype.MAGE: ("blasts", "unleashes arcane force on", "hexes"),
    Archetype.TRICKSTER: ("feints and stabs at", "wrong-foots", "sucker-punches"),
    Archetype.BEAST: ("mauls", "savages", "pounces on"),
    Archetype.LEADER: ("leads a disciplined strike on", "presses", "rallies and hits"),
    Archetype.DETECTIVE: ("exploits an observed weakness in", "precisely strikes", "outthinks"),
    Archetype.MONSTER: ("rends", "looms over and batters", "terrorizes"),
    Archetype.ALIEN: ("disintegrates part of", "baffles and zaps", "phases through the guard of"),
    Archetype.MERCENARY: ("professionally dismantles", "earns their fee against", "cuts down"),
    Archetype.COWBOY: ("draws on", "lassos and slugs", "fans the hammer at"),
    Archetype.BIKER: ("rams", "chains", "runs down"),
}

_IMPROVISED_OPENERS: tuple[str, ...] = (
    "Half-following the plan,",
    "Adapting on the fly,",
    "With a twist of their own,",
)

_CHARACTER_LINES: dict[DeviationOutcome, dict[Archetype, str]] = {
    DeviationOutcome.FOLLOWS_PLAN: {
        Archetype.WARRIOR: "Just as we drilled it!",
        Archetype.MAGE: "The formula holds.",
        Archetype.TRICKSTER: "Told you the boring plan could work.",
        Archetype.BEAST: "*a satisfied growl*",
        Archetype.LEADER: "Stay with me, team!",
        Archetype.DETECTIVE: "Elementary, as predicted.",
        Archetype.MONSTER: "Your coach chose well. This time.",
        Archetype.ALIEN: "Directive executed.",
        Archetype.MERCENARY: "Worth every coin.",
        Archetype.COWBOY: "Steady hand, steady aim.",
        Archetype.BIKER: "Full throttle, by the book.",
    },
    DeviationOutcome.IMPROVISES: {
        Archetype.WARRIOR: "Close enough to the plan.",
        Archetype.MAGE: "A small variation on the spell.",
        Archetype.TRICKSTER: "Plans are more like suggestions.",
        Archetype.BEAST: "*an impatient snarl*",
        Archetype.LEADER: "Adjusting to the field!",
        Archetype.DETECTIVE: "The data demanded a refinement.",
        Archetype.MONSTER: "I do things my way.",
        Archetype.ALIEN: "Recalculating.",
        Archetype.MERCENARY: "Same job, different angle.",
        Archetype.COWBOY: "Had to improvise, partner.",
        Archetype.BIKER: "Took a shortcut.",
    },
    DeviationOutcome.GOES_ROGUE: {
        Archetype.WARRIOR: "No more waiting!",
        Archetype.MAGE: "I know better than your plan!",
        Archetype.TRICKSTER: "Watch THIS!",
        Archetype.BEAST: "*an unhinged roar*",
        Archetype.LEADER: "I'll handle this myself!",
        Archetype.DETECTIVE: "Your strategy is beneath me.",
        Archetype.MONSTER: "I answer to no coach!",
        Archetype.ALIEN: "Your instructions are irrelevant.",
        Archetype.MERCENARY: "You don't pay me enough for this.",
        Archetype.COWBOY: "This town ain't big enough for your plan.",
        Archetype.BIKER: "Nobody tells me how to ride!",
    },
}

_COACH_REACTIONS: dict[RogueActionType, tuple[str, ...]] = {
    RogueActionType.RECKLESS_ATTACK: (
        "{name}! What are you doing?! Stick to the plan!",
        "That's not what we practiced! Control yourself!",
        "Brilliant damage, but you're going to get yourself killed!",
    ),
    RogueActionType.REFUSE_FIGHT: (
        "Get back in there! This is not the time for this!",
        "{name}, your team needs you! Fight!",
        "What's gotten into you? We talked about this!",
    ),
    RogueActionType.CREATIVE_STRATEGY: (
        "That wasn't the plan, but... not bad!",
        "Improvisation! I like the creativity!",
        "Next time warn me before you try something like that!",
    ),
    RogueActionType.PANIC_FLEE: (
        "Come back here! We can work through this!",
        "{name}! Remember your training!",
        "It's okay to be scared, but don't abandon your team!",
    ),
}

_DEFAULT_COACH_REACTIONS: tuple[str, ...] = (
    "What are you thinking?! Get it together!",
    "{name}, that is NOT the gameplan!",
    "We'll be talking about this after the match.",
)


class FallbackNarrator:
    """Deterministic narration from resolved round data."""

    def describe_round(
        self,
        result: RoundResult,
        attacker: Character,
        defender: Character,
    ) -> str:
        """
        Authoritative description of a round.

        Rogue rounds use the judge's narrative; adherent rounds are built from
        archetype templates.
        """
        if result.outcome == DeviationOutcome.GOES_ROGUE and result.judge_ruling is not None:
            return result.judge_ruling.narrative_description

        verbs = _STRIKE_VERBS[attacker.archetype]
        verb = verbs[result.round_number % len(verbs)]
        action = result.action_taken.replace("ability:", "").replace("_", " ")

        opener = ""
        if result.outcome == DeviationOutcome.IMPROVISES:
            opener = _IMPROVISED_OPENERS[result.round_number % len(_IMPROVISED_OPENERS)] + " "

        text = f"{opener}{attacker.name} {verb} {defender.name} with {action} for {result.damage} damage."
        if result.defender_hp_after == 0:
            text += f" {defender.name} goes down!"
        return text

    def character_line(self, context: FlavorContext) -> str:
        """A canned in-character line for the context."""
        try:
            outcome = DeviationOutcome(context.outcome)
            archetype = Archetype(context.archetype)
        except ValueError:
            logger.warning(f"Unknown outcome/archetype in flavor context: {context}")
            return f'{context.character_name}: "..."'
        return f'{context.character_name}: "{_CHARACTER_LINES[outcome][archetype]}"'

    def coach_reaction(
        self, rogue_action: RogueAction, character: Character, coach_name: str, round_number: int
    ) -> str:
        """The coach's outburst after a rogue action."""
        lines = _COACH_REACTIONS.get(rogue_action.action_type, _DEFAULT_COACH_REACTIONS)
        line = lines[round_number % len(lines)].format(name=character.name)
        return f"{coach_name}: {line}"

    def character_response(
        self, character: Character, ruling: JudgeRuling, stress: Optional[float] = None
    ) -> str:
        """
        The fighter's excuse after being ruled on.

        High-ego fighters get defensive, fighters under crisis-level strain
        ramble, everyone else apologizes.
        """
        if ruling.paid_off:
            return f'{character.name}: "Results speak for themselves."'
        if character.psych.ego > 80:
            return f'{character.name}: "I know what I\'m doing. Trust my instincts!"'
        in_crisis = get_mental_health_level(character.psych.mental_health) == MentalHealthLevel.CRISIS
        if in_crisis or (stress is not None and stress >= 80):
            return f'{character.name}: "I... I don\'t know what came over me..."'
        return f'{character.name}: "Sorry, coach. I got carried away."'

    def battle_summary(
        self,
        outcome: BattleOutcome,
        reason: BattleEndReason,
        player_team: Team,
        opponent_team: Team,
        rounds: int,
    ) -> str:
        """One-line end-of-battle announcement."""
        if outcome == BattleOutcome.DRAW:
            if reason == BattleEndReason.MUTUAL_DESTRUCTION:
                return f"Both {player_team.name} and {opponent_team.name} collapse. It's a draw!"
            return f"After {rounds} rounds, {player_team.name} and {opponent_team.name} are dead even. Draw!"
        winner = player_team if outcome == BattleOutcome.PLAYER else opponent_team
        loser = opponent_team if outcome == BattleOutcome.PLAYER else player_team
        if reason == BattleEndReason.TIME_LIMIT:
            return f"Time! {winner.name} takes it on the judges' cards over {loser.name} after {rounds} rounds."
        return f"{winner.name} defeats {loser.name} in {rounds} rounds!"
