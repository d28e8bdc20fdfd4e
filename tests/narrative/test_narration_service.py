"""
Tests for time-boxed dialogue collection.
"""

import subprocess
import sys
import textwrap
import threading
import time

import pytest

from blank_wars.ai.dialogue_generator import FlavorContext, NullDialogueGenerator
from blank_wars.narrative.narration_service import NarrationService


class EmptyDialogue:
    def generate_line(self, context):
        return "   "


@pytest.fixture
def flavor_context():
    return FlavorContext(
        round_number=4,
        character_id="joan_001",
        character_name="Joan of Arc",
        archetype="leader",
        opponent_name="Erik the Red",
        outcome="follows_plan",
        action_label="basic_attack",
    )


@pytest.fixture
def service_factory():
    services = []

    def factory(generator, timeout_seconds=2.0):
        service = NarrationService(generator=generator, timeout_seconds=timeout_seconds)
        services.append(service)
        return service

    yield factory
    for service in services:
        service.shutdown()


class TestNarrationService:
    """Tests for NarrationService.request and resolve."""

    def test_generated_line(self, service_factory, scripted_dialogue, flavor_context):
        """Test a working generator's line is used."""
        service = service_factory(scripted_dialogue)
        result = service.resolve(service.request(flavor_context))
        assert result.text == "For glory!"
        assert result.source == "dialogue"
        assert not result.degraded
        assert scripted_dialogue.contexts == [flavor_context]

    def test_no_generator(self, flavor_context):
        """Test procedural lines without a generator are not degraded."""
        service = NarrationService()
        pending = service.request(flavor_context)
        assert pending.future is None
        result = service.resolve(pending)
        assert result.source == "fallback"
        assert not result.degraded
        assert result.text.startswith("Joan of Arc:")

    def test_failure_degrades(self, service_factory, failing_dialogue, flavor_context):
        """Test a raising generator falls back with the error as detail."""
        service = service_factory(failing_dialogue)
        result = service.resolve(service.request(flavor_context))
        assert result.source == "fallback"
        assert result.degraded
        assert result.detail == "dialogue service down"
        assert result.text.startswith("Joan of Arc:")

    def test_null_generator_degrades(self, service_factory, flavor_context):
        """Test the offline generator degrades every line."""
        service = service_factory(NullDialogueGenerator())
        result = service.resolve(service.request(flavor_context))
        assert result.degraded
        assert "No dialogue generator" in result.detail

    def test_empty_line_degrades(self, service_factory, flavor_context):
        """Test a blank line is not shown."""
        service = service_factory(EmptyDialogue())
        result = service.resolve(service.request(flavor_context))
        assert result.degraded
        assert result.detail == "empty"

    def test_timeout_degrades(self, service_factory, blocking_dialogue, flavor_context):
        """Test a slow generator misses its deadline."""
        service = service_factory(blocking_dialogue, timeout_seconds=0.05)
        result = service.resolve(service.request(flavor_context))
        assert result.source == "fallback"
        assert result.degraded
        assert result.detail == "timeout"

    def test_shutdown_is_idempotent(self, service_factory, scripted_dialogue, flavor_context):
        """Test shutting down twice and requesting again."""
        service = service_factory(scripted_dialogue)
        service.resolve(service.request(flavor_context))
        service.shutdown()
        service.shutdown()
        assert service.resolve(service.request(flavor_context)).text == "For glory!"

    def test_hung_generator_is_abandoned(self, service_factory, blocking_dialogue, flavor_context):
        """Test a call stuck past its deadline runs on a daemon thread and is dropped on shutdown."""
        service = service_factory(blocking_dialogue, timeout_seconds=0.05)
        pending = service.request(flavor_context)
        assert service.resolve(pending).detail == "timeout"
        assert service.in_flight == 1

        workers = [t for t in threading.enumerate() if t.name == "dialogue-round-4"]
        assert workers and all(t.daemon for t in workers)

        started = time.monotonic()
        service.shutdown()
        assert time.monotonic() - started < 0.5
        assert service.in_flight == 0


HUNG_BATTLE_SCRIPT = textwrap.dedent(
    """
    import time

    from blank_wars.config import BattleConfig
    from blank_wars.content.rosters import create_demo_opponent_team, create_demo_player_team
    from blank_wars.data_models import BattleSetup
    from blank_wars.game_state.battle_state_machine import BattleStateMachine
    from blank_wars.game_state.scheduler import ManualScheduler


    class HungDialogue:
        def generate_line(self, context):
            time.sleep(60)
            return "far too late"


    config = BattleConfig()
    config.pacing.dialogue_timeout_seconds = 0.05
    machine = BattleStateMachine(
        config=config, scheduler=ManualScheduler(), seed=3, dialogue_generator=HungDialogue()
    )
    machine.start_battle(
        BattleSetup(player_team=create_demo_player_team(), opponent_team=create_demo_opponent_team())
    )
    report = machine.run_until_complete()
    machine.narration.shutdown()
    print(report.outcome.value)
    """
)


class TestProcessExit:
    """Tests that stalled dialogue never holds the process open."""

    def test_process_exits_while_dialogue_hangs(self, tmp_path):
        """Test a battle with a hung generator exits long before the call returns."""
        script = tmp_path / "hung_battle.py"
        script.write_text(HUNG_BATTLE_SCRIPT)

        started = time.monotonic()
        completed = subprocess.run(
            [sys.executable, str(script)], capture_output=True, text=True, timeout=50
        )
        elapsed = time.monotonic() - started

        assert completed.returncode == 0, completed.stderr
        assert completed.stdout.strip() in {"player", "opponent", "draw"}
        assert elapsed < 20
