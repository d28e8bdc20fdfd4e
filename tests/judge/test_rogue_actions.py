"""
Tests for archetype-weighted rogue action generation.
"""

from collections import Counter

import pytest

from blank_wars.data_models import (
    Archetype,
    DiceRoller,
    Momentum,
    PsychProfile,
    RogueAction,
    RogueActionType,
    Severity,
    TeamMorale,
)
from blank_wars.judge.rogue_actions import (
    ARCHETYPE_ROGUE_WEIGHTS,
    DESPERATE_TYPES,
    ROGUE_PROFILES,
    RogueActionGenerator,
    severity_for_intensity,
)
from blank_wars.psychology.psychology_manager import Mood, PsychologyState


def stressed(stress=90.0, ego=50.0):
    return PsychologyState(
        character_id="x", trust_in_coach=20, ego=ego, stress=stress, fatigue=0, mood=Mood.BREAKING
    )


class TestTables:
    """Tests for the static rogue tables."""

    def test_every_archetype_has_weights(self):
        """Test that each archetype weights every action type."""
        for archetype in Archetype:
            weights = ARCHETYPE_ROGUE_WEIGHTS[archetype]
            assert set(weights) == set(RogueActionType)
            assert sum(weights.values()) > 0

    def test_every_type_has_profile(self):
        """Test profile coverage."""
        assert set(ROGUE_PROFILES) == set(RogueActionType)

    @pytest.mark.parametrize(
        "intensity,severity",
        [
            (0.0, Severity.MINOR),
            (0.29, Severity.MINOR),
            (0.30, Severity.MODERATE),
            (0.54, Severity.MODERATE),
            (0.55, Severity.MAJOR),
            (0.79, Severity.MAJOR),
            (0.80, Severity.EXTREME),
            (1.0, Severity.EXTREME),
        ],
    )
    def test_severity_bands(self, intensity, severity):
        """Test severity band edges."""
        assert severity_for_intensity(intensity) == severity


class TestActionWeights:
    """Tests for situational weight biases."""

    def test_losing_with_low_morale_boosts_desperation(self):
        """Test that a losing, demoralised side leans desperate."""
        generator = RogueActionGenerator(DiceRoller(seed=1))
        even = generator.action_weights(Archetype.MAGE, 50, Momentum.EVEN)
        losing = generator.action_weights(Archetype.MAGE, 30, Momentum.LOSING)
        for action_type in DESPERATE_TYPES:
            assert losing[action_type] == pytest.approx(even[action_type] * 3.0)

    def test_winning_boosts_high_variance(self):
        """Test that a winning side grandstands more."""
        generator = RogueActionGenerator(DiceRoller(seed=1))
        even = generator.action_weights(Archetype.COWBOY, 50, Momentum.EVEN)
        winning = generator.action_weights(Archetype.COWBOY, 50, Momentum.WINNING)
        assert winning[RogueActionType.GRANDSTANDING] == pytest.approx(
            even[RogueActionType.GRANDSTANDING] * 2
        )
        assert winning[RogueActionType.RECKLESS_ATTACK] == even[RogueActionType.RECKLESS_ATTACK]

    def test_psychology_biases(self):
        """Test stress and ego biases."""
        generator = RogueActionGenerator(DiceRoller(seed=1))
        base = generator.action_weights(Archetype.WARRIOR, 50, Momentum.EVEN)
        biased = generator.action_weights(
            Archetype.WARRIOR, 50, Momentum.EVEN, stressed(stress=90, ego=90)
        )
        assert biased[RogueActionType.PANIC_FLEE] > base[RogueActionType.PANIC_FLEE]
        assert biased[RogueActionType.GRANDSTANDING] > base[RogueActionType.GRANDSTANDING]

    def test_table_not_mutated(self):
        """Test that biasing works on a copy of the archetype table."""
        before = dict(ARCHETYPE_ROGUE_WEIGHTS[Archetype.BEAST])
        RogueActionGenerator(DiceRoller(seed=1)).action_weights(Archetype.BEAST, 10, Momentum.LOSING)
        assert ARCHETYPE_ROGUE_WEIGHTS[Archetype.BEAST] == before


class TestGenerate:
    """Tests for RogueActionGenerator.generate."""

    def test_action_fields(self, character_factory):
        """Test a generated action is complete and consistent."""
        hero = character_factory("hero", name="Hero")
        villain = character_factory("villain", name="Villain")
        action = RogueActionGenerator(DiceRoller(seed=5)).generate(
            hero, villain, TeamMorale(current=50), Momentum.EVEN, stressed()
        )
        assert isinstance(action, RogueAction)
        assert action.character_id == "hero"
        assert 0.0 <= action.intensity <= 1.0
        assert action.severity == severity_for_intensity(action.intensity)
        assert action.target == ROGUE_PROFILES[action.action_type].target
        assert "Hero" in action.description
        assert action.reason

    def test_accepts_raw_morale(self, character_factory):
        """Test morale can be passed as a number."""
        action = RogueActionGenerator(DiceRoller(seed=5)).generate(
            character_factory("a"), character_factory("b"), 15.0, Momentum.LOSING
        )
        assert action.action_type in RogueActionType

    def test_deterministic_for_seed(self, character_factory):
        """Test identical actions for identical seeds."""
        hero = character_factory("hero")
        villain = character_factory("villain")

        def run():
            generator = RogueActionGenerator(DiceRoller(seed=77))
            return [generator.generate(hero, villain, 50.0, Momentum.EVEN) for _ in range(20)]

        assert run() == run()

    def test_warriors_lean_aggressive(self, character_factory):
        """Test that a warrior's rogue actions are mostly reckless or berserk."""
        generator = RogueActionGenerator(DiceRoller(seed=3))
        hero = character_factory("hero", archetype=Archetype.WARRIOR)
        villain = character_factory("villain")
        counts = Counter(
            generator.generate(hero, villain, 50.0, Momentum.EVEN).action_type for _ in range(500)
        )
        aggressive = counts[RogueActionType.RECKLESS_ATTACK] + counts[RogueActionType.BERSERKER_RAGE]
        assert aggressive / 500 > 0.45
        assert counts.most_common(1)[0][0] in (
            RogueActionType.RECKLESS_ATTACK,
            RogueActionType.BERSERKER_RAGE,
        )

    def test_detectives_lean_cerebral(self, character_factory):
        """Test that a detective rarely rages."""
        generator = RogueActionGenerator(DiceRoller(seed=4))
        sleuth = character_factory("sleuth", archetype=Archetype.DETECTIVE)
        villain = character_factory("villain")
        counts = Counter(
            generator.generate(sleuth, villain, 50.0, Momentum.EVEN).action_type for _ in range(500)
        )
        assert counts[RogueActionType.CREATIVE_STRATEGY] > counts[RogueActionType.BERSERKER_RAGE]

    def test_high_ego_reason(self, character_factory):
        """Test the ego-driven reason."""
        diva = character_factory("diva", psych=PsychProfile(ego=95))
        action = RogueActionGenerator(DiceRoller(seed=9)).generate(
            diva, character_factory("b"), 50.0, Momentum.EVEN
        )
        assert "better than the gameplan" in action.reason
