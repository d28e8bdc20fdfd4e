"""
Tests for procedural round narration.
"""

import pytest

from blank_wars.ai.dialogue_generator import FlavorContext
from blank_wars.data_models import (
    Archetype,
    BattleEndReason,
    BattleOutcome,
    BattleSide,
    DeviationOutcome,
    JudgeRuling,
    PsychProfile,
    RogueAction,
    RogueActionType,
    RogueTarget,
    RoundResult,
    Severity,
)
from blank_wars.narrative.fallback_narration import FallbackNarrator


def round_result(outcome=DeviationOutcome.FOLLOWS_PLAN, **overrides):
    fields = dict(
        round_number=1,
        attacker_id="a",
        defender_id="b",
        attacker_side=BattleSide.PLAYER,
        action_taken="ability:haymaker",
        outcome=outcome,
        damage=42,
        backlash_damage=0,
        was_plan_adherent=outcome == DeviationOutcome.FOLLOWS_PLAN,
        attacker_hp_after=100,
        defender_hp_after=58,
        morale_change=2.0,
        risk_used=0.1,
        narrative_description="",
    )
    fields.update(overrides)
    return RoundResult(**fields)


def ruling(paid_off=False):
    return JudgeRuling(
        persona_name="Judge Mercy",
        action_type=RogueActionType.GRANDSTANDING,
        damage_to_opponent=10,
        backlash_damage=0,
        morale_change=-5.0,
        paid_off=paid_off,
        narrative_description="Judge Mercy sighs at the showboating.",
        coach_explanation="Showboating costs focus.",
    )


def context(outcome="follows_plan", archetype="warrior"):
    return FlavorContext(
        round_number=1,
        character_id="a",
        character_name="Brunhild",
        archetype=archetype,
        opponent_name="Grendel",
        outcome=outcome,
        action_label="basic_attack",
    )


@pytest.fixture
def narrator():
    return FallbackNarrator()


class TestDescribeRound:
    """Tests for FallbackNarrator.describe_round."""

    def test_planned_round(self, narrator, character_factory):
        """Test an adherent round mentions both fighters, the move and the damage."""
        text = narrator.describe_round(
            round_result(), character_factory("a", name="Brunhild"), character_factory("b", name="Grendel")
        )
        assert text.startswith("Brunhild ")
        assert "Grendel" in text
        assert "haymaker" in text
        assert "42 damage" in text
        assert "goes down" not in text

    def test_knockout_announced(self, narrator, character_factory):
        """Test a finishing blow."""
        text = narrator.describe_round(
            round_result(defender_hp_after=0), character_factory("a"), character_factory("b", name="Grendel")
        )
        assert text.endswith("Grendel goes down!")

    def test_improvised_opener(self, narrator, character_factory):
        """Test improvised rounds read differently from planned ones."""
        planned = narrator.describe_round(round_result(), character_factory("a"), character_factory("b"))
        improvised = narrator.describe_round(
            round_result(DeviationOutcome.IMPROVISES), character_factory("a"), character_factory("b")
        )
        assert improvised != planned
        assert improvised.endswith(planned)

    def test_rogue_round_uses_ruling(self, narrator, character_factory):
        """Test rogue rounds defer to the judge's narrative."""
        result = round_result(DeviationOutcome.GOES_ROGUE, judge_ruling=ruling())
        text = narrator.describe_round(result, character_factory("a"), character_factory("b"))
        assert text == "Judge Mercy sighs at the showboating."

    def test_every_archetype_has_verbs(self, narrator, character_factory):
        """Test every archetype can be narrated."""
        for archetype in Archetype:
            text = narrator.describe_round(
                round_result(), character_factory("a", archetype=archetype), character_factory("b")
            )
            assert text


class TestLines:
    """Tests for character lines, coach reactions and summaries."""

    @pytest.mark.parametrize("outcome", [o.value for o in DeviationOutcome])
    @pytest.mark.parametrize("archetype", [a.value for a in Archetype])
    def test_character_line_coverage(self, narrator, outcome, archetype):
        """Test every outcome and archetype has a canned line."""
        line = narrator.character_line(context(outcome, archetype))
        assert line.startswith('Brunhild: "')

    def test_unknown_context_values(self, narrator):
        """Test junk values still produce a line."""
        assert narrator.character_line(context("dancing", "pirate")) == 'Brunhild: "..."'

    def test_coach_reaction(self, narrator, character_factory):
        """Test the coach's outburst names the coach and fighter."""
        action = RogueAction(
            action_type=RogueActionType.RECKLESS_ATTACK,
            character_id="a",
            description="charges",
            target=RogueTarget.OPPONENT,
            intensity=0.5,
            severity=Severity.MODERATE,
        )
        text = narrator.coach_reaction(action, character_factory("a", name="Brunhild"), "Coach Vex", 2)
        assert text == "Coach Vex: Brilliant damage, but you're going to get yourself killed!"
        first = narrator.coach_reaction(action, character_factory("a", name="Brunhild"), "Coach Vex", 0)
        assert "Brunhild" in first

    def test_character_response_branches(self, narrator, character_factory):
        """Test payoff, ego, strain and apology responses."""
        calm = character_factory("a", name="Calm")
        diva = character_factory("d", name="Diva", psych=PsychProfile(ego=95))
        assert "Results speak" in narrator.character_response(calm, ruling(paid_off=True))
        assert "Trust my instincts" in narrator.character_response(diva, ruling())
        assert "came over me" in narrator.character_response(calm, ruling(), stress=85)
        assert "Sorry, coach" in narrator.character_response(calm, ruling(), stress=10)

    def test_battle_summaries(self, narrator, team_factory):
        """Test summaries for each kind of ending."""
        home = team_factory("home")
        away = team_factory("away")
        assert narrator.battle_summary(
            BattleOutcome.PLAYER, BattleEndReason.TOTAL_VICTORY, home, away, 4
        ) == "Home defeats Away in 4 rounds!"
        assert "judges' cards" in narrator.battle_summary(
            BattleOutcome.OPPONENT, BattleEndReason.TIME_LIMIT, home, away, 10
        )
        assert "collapse" in narrator.battle_summary(
            BattleOutcome.DRAW, BattleEndReason.MUTUAL_DESTRUCTION, home, away, 6
        )
        assert "dead even" in narrator.battle_summary(
            BattleOutcome.DRAW, BattleEndReason.TIME_LIMIT, home, away, 10
        )
