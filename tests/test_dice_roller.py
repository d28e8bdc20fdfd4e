"""
Unit tests for the per-battle DiceRoller in blank_wars/data_models.py.
"""

import pytest

from blank_wars.data_models import DiceResult, DiceRoller
from blank_wars.observability.run_log import EventType


class TestDiceRoller:
    """Tests for DiceRoller."""

    def test_instances_are_independent(self):
        """Test that two rollers do not share state."""
        first = DiceRoller(seed=1)
        second = DiceRoller(seed=1)
        assert first is not second
        first.roll("1d20")
        assert len(first.get_roll_log()) == 1
        assert second.get_roll_log() == []

    def test_roll_with_positive_modifier(self, seeded_dice):
        """Test rolling with a positive modifier."""
        result = seeded_dice.roll("1d20+5", "attack roll")
        assert isinstance(result, DiceResult)
        assert result.modifier == 5
        assert result.total == result.rolls[0] + 5

    def test_roll_with_negative_modifier(self, seeded_dice):
        """Test rolling with a negative modifier."""
        result = seeded_dice.roll("1d8-2", "weak attack")
        assert result.modifier == -2
        assert result.total == result.rolls[0] - 2

    def test_roll_multiple_dice(self, seeded_dice):
        """Test rolling several dice."""
        result = seeded_dice.roll("3d6")
        assert len(result.rolls) == 3
        assert all(1 <= r <= 6 for r in result.rolls)

    def test_seeded_reproducibility(self):
        """Test that the same seed produces the same stream across draw kinds."""

        def draw(roller):
            return (
                roller.roll("2d10").total,
                roller.random(),
                roller.uniform(0.8, 1.2),
                roller.choice(["a", "b", "c"]),
                roller.weighted_choice(["x", "y"], [1, 3]),
            )

        assert draw(DiceRoller(seed=99)) == draw(DiceRoller(seed=99))

    def test_set_seed_restarts_stream(self):
        """Test that reseeding replays the stream and clears the roll log."""
        roller = DiceRoller(seed=5)
        first = [roller.random() for _ in range(3)]
        roller.roll("1d6")
        roller.set_seed(5)
        assert [roller.random() for _ in range(3)] == first
        assert roller.get_roll_log() == []

    def test_uniform_bounds(self, seeded_dice):
        """Test uniform draws stay in range."""
        for _ in range(200):
            assert 0.8 <= seeded_dice.uniform(0.8, 1.2) <= 1.2

    def test_choice_empty_raises(self, seeded_dice):
        """Test choosing from nothing."""
        with pytest.raises(ValueError):
            seeded_dice.choice([])

    def test_weighted_choice_skips_zero_weights(self, seeded_dice):
        """Test that zero-weight options are never picked."""
        picks = {seeded_dice.weighted_choice(["never", "always"], [0, 1]) for _ in range(100)}
        assert picks == {"always"}

    def test_weighted_choice_rejects_bad_weights(self, seeded_dice):
        """Test mismatched or all-zero weights."""
        with pytest.raises(ValueError):
            seeded_dice.weighted_choice(["a", "b"], [1])
        with pytest.raises(ValueError):
            seeded_dice.weighted_choice(["a", "b"], [0, 0])

    def test_draws_reach_run_log(self, run_log):
        """Test that every roll and draw is recorded in an attached RunLog."""
        roller = DiceRoller(seed=3, run_log=run_log)
        roller.roll("1d6", "roll")
        roller.random("random")
        roller.choice([1, 2], "choice")
        assert len(run_log.get_events(EventType.ROLL)) == 1
        assert [e.reason for e in run_log.get_draws()] == ["random", "choice"]
