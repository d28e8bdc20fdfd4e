"""
Pytest fixtures for the Blank Wars battle engine test suite.

Provides seeded dice, character and team factories, ready-made battle
states, a manual-clock battle machine, and scripted dialogue generators.
"""

import threading
from typing import Optional

import pytest

from blank_wars.ai.dialogue_generator import FlavorContext
from blank_wars.combat.battle_state import BattleState
from blank_wars.config import BattleConfig
from blank_wars.data_models import (
    Ability,
    AbilityKind,
    Archetype,
    BattleMode,
    BattleSetup,
    BattleType,
    Character,
    DiceRoller,
    PsychProfile,
    Stakes,
    Team,
    TeamMorale,
)
from blank_wars.game_state.battle_state_machine import BattleStateMachine
from blank_wars.game_state.scheduler import ManualScheduler
from blank_wars.judge.judge_adjudicator import get_persona
from blank_wars.observability.run_log import RunLog
from blank_wars.psychology.psychology_manager import PsychologyStateManager


# Trained, selfless and stable: deviation risk stays at 0 for these fighters
CALM_PSYCH = PsychProfile(training=100, team_player=100, ego=0, mental_health=100, communication=100)

# Untrained, egotistical and fragile
VOLATILE_PSYCH = PsychProfile(training=10, team_player=10, ego=95, mental_health=10, communication=10)


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    return DiceRoller(seed=42)


@pytest.fixture
def run_log():
    """Provide a fresh RunLog."""
    return RunLog()


# =============================================================================
# CHARACTER AND TEAM FIXTURES
# =============================================================================


def make_character(
    character_id: str = "fighter",
    name: Optional[str] = None,
    archetype: Archetype = Archetype.WARRIOR,
    attack: int = 50,
    defense: int = 50,
    speed: int = 50,
    hp: int = 100,
    max_hp: Optional[int] = None,
    abilities: tuple = (),
    psych: PsychProfile = CALM_PSYCH,
) -> Character:
    return Character(
        character_id=character_id,
        name=name or character_id.replace("_", " ").title(),
        archetype=archetype,
        attack=attack,
        defense=defense,
        speed=speed,
        current_hp=hp,
        max_hp=max_hp or hp,
        abilities=abilities,
        psych=psych,
    )


def make_team(
    team_id: str,
    *characters: Character,
    chemistry: float = 50.0,
    coach_name: str = "Coach",
) -> Team:
    return Team(
        team_id=team_id,
        name=team_id.replace("_", " ").title(),
        characters=tuple(characters),
        coach_name=coach_name,
        team_chemistry=chemistry,
    )


@pytest.fixture
def calm_psych():
    return CALM_PSYCH


@pytest.fixture
def volatile_psych():
    return VOLATILE_PSYCH


@pytest.fixture
def character_factory():
    """Factory for Character records (calm psychology by default)."""
    return make_character


@pytest.fixture
def team_factory():
    """Factory for Team records."""
    return make_team


@pytest.fixture
def warrior():
    """A calm warrior with two attack abilities."""
    return make_character(
        "warrior_001",
        name="Brunhild",
        attack=60,
        defense=40,
        speed=60,
        abilities=(
            Ability("jab", "Jab", power=10),
            Ability("haymaker", "Haymaker", power=30),
            Ability("shield_wall", "Shield Wall", power=40, kind=AbilityKind.DEFENSE),
        ),
    )


@pytest.fixture
def brawler():
    """A calm warrior with no abilities."""
    return make_character("brawler_001", name="Grendel", attack=50, defense=40, speed=50)


@pytest.fixture
def battle_config():
    """Default engine configuration."""
    return BattleConfig()


# =============================================================================
# BATTLE STATE FIXTURES
# =============================================================================


def make_battle_state(
    player_team: Team,
    opponent_team: Team,
    mode: BattleMode = BattleMode.ACTIVE_FIGHTER,
    current_round: int = 0,
    judge_name: str = "Judge Mercy",
    manager: Optional[PsychologyStateManager] = None,
    **overrides,
) -> BattleState:
    manager = manager or PsychologyStateManager()
    psychology = {}
    for team in (player_team, opponent_team):
        for character in team.characters:
            psychology[character.character_id] = manager.initialize(character, team)
    fields = dict(
        battle_id="battle-test",
        setup=BattleSetup(player_team=player_team, opponent_team=opponent_team, mode=mode),
        player_team=player_team,
        opponent_team=opponent_team,
        player_fighter_id=player_team.characters[0].character_id,
        opponent_fighter_id=opponent_team.characters[0].character_id,
        current_round=current_round,
        player_morale=TeamMorale(current=50.0),
        opponent_morale=TeamMorale(current=50.0),
        psychology=psychology,
        judge=get_persona(judge_name),
    )
    fields.update(overrides)
    return BattleState(**fields)


@pytest.fixture
def battle_state_factory():
    """Factory for BattleState values built from two teams."""
    return make_battle_state


@pytest.fixture
def duel_state(warrior, brawler):
    """A fresh one-on-one battle between two calm fighters."""
    return make_battle_state(make_team("home", warrior), make_team("away", brawler))


# =============================================================================
# MACHINE FIXTURES
# =============================================================================


@pytest.fixture
def manual_scheduler():
    """Provide a virtual-clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def machine_factory():
    """
    Factory for BattleStateMachine instances on a ManualScheduler.

    Machines created here have their dialogue worker shut down after the test.
    """
    created: list[BattleStateMachine] = []

    def factory(seed: Optional[int] = 42, config: Optional[BattleConfig] = None, **kwargs):
        kwargs.setdefault("scheduler", ManualScheduler())
        machine = BattleStateMachine(config=config, seed=seed, **kwargs)
        created.append(machine)
        return machine

    yield factory
    for machine in created:
        machine.narration.shutdown()


def make_setup(
    player_team: Team,
    opponent_team: Team,
    mode: BattleMode = BattleMode.ACTIVE_FIGHTER,
    battle_type: BattleType = BattleType.FRIENDLY,
    stakes: Stakes = Stakes.NORMAL,
) -> BattleSetup:
    return BattleSetup(
        player_team=player_team,
        opponent_team=opponent_team,
        battle_type=battle_type,
        stakes=stakes,
        mode=mode,
    )


@pytest.fixture
def setup_factory():
    """Factory for BattleSetup records."""
    return make_setup


@pytest.fixture
def calm_duel_setup():
    """Two calm warriors; the faster, stronger player side wins in two hits."""
    home = make_character("champion", attack=90, defense=40, speed=60)
    away = make_character("challenger", attack=50, defense=40, speed=50)
    return make_setup(make_team("home", home), make_team("away", away))


# =============================================================================
# DIALOGUE FIXTURES
# =============================================================================


class ScriptedDialogue:
    """Returns the same line every time and records what it was asked."""

    def __init__(self, line: str = "For glory!"):
        self.line = line
        self.contexts: list[FlavorContext] = []

    def generate_line(self, context: FlavorContext) -> str:
        self.contexts.append(context)
        return self.line


class FailingDialogue:
    """Raises on every request."""

    def __init__(self):
        self.calls = 0

    def generate_line(self, context: FlavorContext) -> str:
        self.calls += 1
        raise RuntimeError("dialogue service down")


class BlockingDialogue:
    """Blocks until released; used to force timeouts."""

    def __init__(self):
        self.release = threading.Event()

    def generate_line(self, context: FlavorContext) -> str:
        self.release.wait(timeout=5)
        return "Too late to matter."


@pytest.fixture
def scripted_dialogue():
    return ScriptedDialogue()


@pytest.fixture
def failing_dialogue():
    return FailingDialogue()


@pytest.fixture
def blocking_dialogue():
    generator = BlockingDialogue()
    yield generator
    generator.release.set()
