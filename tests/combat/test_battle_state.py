"""
Tests for the versioned BattleState value.
"""

import dataclasses

import pytest

from blank_wars.data_models import BattleSide, TeamMorale


class TestBattleState:
    """Tests for BattleState lookups and copy helpers."""

    def test_side_lookups(self, duel_state):
        """Test team, fighter and morale lookups per side."""
        assert duel_state.team_for(BattleSide.PLAYER).team_id == "home"
        assert duel_state.fighter_for(BattleSide.PLAYER).character_id == "warrior_001"
        assert duel_state.fighter_for(BattleSide.OPPONENT).character_id == "brawler_001"
        assert duel_state.morale_for(BattleSide.OPPONENT).current == 50.0

    def test_side_of(self, duel_state):
        """Test finding a character's side."""
        assert duel_state.side_of("warrior_001") == BattleSide.PLAYER
        assert duel_state.side_of("brawler_001") == BattleSide.OPPONENT
        assert duel_state.side_of("nobody") is None

    def test_missing_active_fighter_raises(self, duel_state):
        """Test an active fighter id that is not on the roster."""
        broken = dataclasses.replace(duel_state, player_fighter_id="ghost")
        with pytest.raises(KeyError) as exc_info:
            broken.fighter_for(BattleSide.PLAYER)
        assert "ghost" in str(exc_info.value)

    def test_frozen(self, duel_state):
        """Test that BattleState cannot be mutated in place."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            duel_state.current_round = 5

    def test_copy_helpers_leave_original(self, duel_state):
        """Test with_team, with_morale and with_fighter return new values."""
        hurt = duel_state.fighter_for(BattleSide.OPPONENT).with_hp(1)
        team = duel_state.opponent_team.with_character(hurt)
        changed = (
            duel_state.with_team(BattleSide.OPPONENT, team)
            .with_morale(BattleSide.PLAYER, TeamMorale(current=80))
            .with_fighter(BattleSide.PLAYER, "warrior_001")
        )
        assert changed.fighter_for(BattleSide.OPPONENT).current_hp == 1
        assert changed.player_morale.current == 80
        assert duel_state.fighter_for(BattleSide.OPPONENT).current_hp == 100
        assert duel_state.player_morale.current == 50

    def test_bumped_increments_version(self, duel_state):
        """Test that bumped applies changes and advances the version."""
        bumped = duel_state.bumped(current_round=3)
        assert bumped.version == duel_state.version + 1
        assert bumped.current_round == 3
        assert duel_state.current_round == 0

    def test_latest_result_empty(self, duel_state):
        """Test a fresh battle has no rounds."""
        assert duel_state.latest_result is None
