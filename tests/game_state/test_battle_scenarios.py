"""
End-to-end battle scenarios and the properties every battle must keep.

Battles here run to completion on a ManualScheduler, so each one is a
deterministic replay of its seed.
"""

import pytest

from blank_wars.config import BattleConfig
from blank_wars.content.rosters import create_demo_opponent_team, create_demo_player_team
from blank_wars.data_models import (
    BattleEndReason,
    BattleMode,
    BattleOutcome,
    BattleType,
    DeviationOutcome,
)
from blank_wars.observability.run_log import EventType


def run_battle(machine, setup):
    machine.start_battle(setup)
    return machine.run_until_complete()


@pytest.fixture
def demo_setup(setup_factory):
    def factory(mode=BattleMode.ACTIVE_FIGHTER):
        return setup_factory(create_demo_player_team(), create_demo_opponent_team(), mode=mode)

    return factory


class TestDecisiveBattles:
    """Tests for battles that end with a clear winner."""

    def test_calm_duel(self, machine_factory, calm_duel_setup):
        """Test calm fighters always follow the plan and the stronger side wins."""
        report = run_battle(machine_factory(), calm_duel_setup)

        assert all(r.outcome == DeviationOutcome.FOLLOWS_PLAN for r in report.round_results)
        assert all(r.rogue_action is None for r in report.round_results)
        assert report.outcome == BattleOutcome.PLAYER
        assert report.end_reason == BattleEndReason.TOTAL_VICTORY
        assert report.round_results[-1].defender_hp_after == 0

    def test_tournament_doubles_chemistry(self, machine_factory, calm_duel_setup, setup_factory):
        """Test the chemistry swing scales with the battle format."""
        setup = setup_factory(
            calm_duel_setup.player_team,
            calm_duel_setup.opponent_team,
            battle_type=BattleType.TOURNAMENT,
        )
        report = run_battle(machine_factory(), setup)
        assert report.player_chemistry_change == pytest.approx(6.0)
        assert report.opponent_chemistry_change == pytest.approx(-6.0)

    def test_time_limit_victory(self, machine_factory, character_factory, team_factory, setup_factory):
        """Test the round cap awards the side with more HP left."""
        setup = setup_factory(
            team_factory("home", character_factory("hitter", attack=80, hp=10000)),
            team_factory("away", character_factory("pillow", attack=20, hp=10000)),
        )
        report = run_battle(machine_factory(), setup)
        assert report.outcome == BattleOutcome.PLAYER
        assert report.end_reason == BattleEndReason.TIME_LIMIT
        assert report.rounds == 10

    def test_time_limit_draw(self, machine_factory, character_factory, team_factory, setup_factory):
        """Test identical fighters trading minimum hits draw at the cap."""
        setup = setup_factory(
            team_factory("home", character_factory("left", attack=1, defense=100, hp=10000)),
            team_factory("away", character_factory("right", attack=1, defense=100, hp=10000)),
        )
        report = run_battle(machine_factory(), setup)
        assert report.outcome == BattleOutcome.DRAW
        assert report.end_reason == BattleEndReason.TIME_LIMIT
        assert report.rounds == 10
        assert all(r.damage == 1 for r in report.round_results)
        assert report.player_chemistry_change == 0.0
        assert report.opponent_chemistry_change == 0.0

    def test_custom_round_cap(self, machine_factory, character_factory, team_factory, setup_factory):
        """Test a configured cap ends the battle sooner."""
        config = BattleConfig()
        config.combat.round_cap = 4
        setup = setup_factory(
            team_factory("home", character_factory("left", hp=10000)),
            team_factory("away", character_factory("right", hp=10000)),
        )
        report = run_battle(machine_factory(config=config), setup)
        assert report.rounds == 4
        assert report.end_reason == BattleEndReason.TIME_LIMIT


class TestBattleProperties:
    """Properties that hold for every seed and mode."""

    @pytest.mark.parametrize("mode", list(BattleMode), ids=lambda m: m.value)
    @pytest.mark.parametrize("seed", range(25))
    def test_every_battle_terminates_consistently(self, machine_factory, demo_setup, mode, seed):
        """Test termination, HP bounds, rogue bookkeeping and morale bounds."""
        machine = machine_factory(seed=seed)
        report = run_battle(machine, demo_setup(mode))

        assert report is not None
        assert 1 <= report.rounds <= 10
        assert machine.scheduler.pending_count() == 0

        max_hp = {
            c.character_id: c.max_hp
            for team in (report.player_team, report.opponent_team)
            for c in team.characters
        }
        rogue_rounds = 0
        for result in report.round_results:
            assert 0 <= result.attacker_hp_after <= max_hp[result.attacker_id]
            assert 0 <= result.defender_hp_after <= max_hp[result.defender_id]
            is_rogue = result.outcome == DeviationOutcome.GOES_ROGUE
            assert (result.rogue_action is not None) == is_rogue
            assert (result.judge_ruling is not None) == is_rogue
            assert result.was_plan_adherent == (result.outcome == DeviationOutcome.FOLLOWS_PLAN)
            assert 0.0 <= result.risk_used <= 1.0
            rogue_rounds += is_rogue

        assert len(machine.run_log.get_rulings()) == rogue_rounds
        state = machine.state
        for morale in (state.player_morale, state.opponent_morale):
            assert 0.0 <= morale.current <= 100.0
            for event in morale.history:
                assert 0.0 <= event.resulting_morale <= 100.0

    def test_same_seed_same_battle(self, machine_factory, demo_setup):
        """Test a seed fully determines the battle."""
        first = run_battle(machine_factory(seed=11), demo_setup())
        second = run_battle(machine_factory(seed=11), demo_setup())
        assert [r.to_dict() for r in first.round_results] == [r.to_dict() for r in second.round_results]
        assert first.outcome == second.outcome
        assert first.judge_name == second.judge_name

    def test_demo_teams_go_rogue_sometimes(self, machine_factory, demo_setup):
        """Test the volatile demo roster deviates across a spread of seeds."""
        outcomes = set()
        for seed in range(25):
            report = run_battle(machine_factory(seed=seed), demo_setup())
            outcomes.update(r.outcome for r in report.round_results)
        assert DeviationOutcome.FOLLOWS_PLAN in outcomes
        assert outcomes - {DeviationOutcome.FOLLOWS_PLAN}


class TestDialogue:
    """Tests for flavor text during a battle."""

    def test_scripted_lines_used(self, machine_factory, calm_duel_setup, scripted_dialogue):
        """Test generated lines reach listeners without affecting the battle."""
        machine = machine_factory(dialogue_generator=scripted_dialogue)
        lines = []
        machine.subscribe(lambda e: lines.append(e.text) if e.kind == "dialogue" else None)
        report = run_battle(machine, calm_duel_setup)

        assert lines == ["For glory!"] * report.rounds
        assert [c.round_number for c in scripted_dialogue.contexts] == [1, 2, 3]
        assert not machine.snapshot().dialogue_degraded
        narration = machine.run_log.get_events(EventType.NARRATION)
        assert {e.source for e in narration} == {"dialogue"}

    def test_failing_dialogue_degrades(self, machine_factory, calm_duel_setup, failing_dialogue):
        """Test a broken generator falls back without changing the outcome."""
        plain = run_battle(machine_factory(seed=3), calm_duel_setup)

        machine = machine_factory(seed=3, dialogue_generator=failing_dialogue)
        events = []
        machine.subscribe(events.append)
        report = run_battle(machine, calm_duel_setup)

        assert failing_dialogue.calls == report.rounds
        assert [r.to_dict() for r in report.round_results] == [r.to_dict() for r in plain.round_results]
        assert machine.snapshot().dialogue_degraded
        dialogue = [e for e in events if e.kind == "dialogue"]
        assert dialogue and all(e.degraded and e.text for e in dialogue)
        narration = machine.run_log.get_events(EventType.NARRATION)
        assert all(e.degraded and e.detail == "dialogue service down" for e in narration)
