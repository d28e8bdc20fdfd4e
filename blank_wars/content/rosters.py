"""
Demo rosters and team loading for the Blank Wars battle engine.

The demo teams are the default matchup for the CLI; load_team() reads any
other roster from JSON in the shape accepted by Team.from_dict().
"""

from pathlib import Path
from typing import Union
import json
import logging

from blank_wars.data_models import (
    Ability,
    AbilityKind,
    Archetype,
    Character,
    PsychProfile,
    Team,
    calculate_team_chemistry,
)

logger = logging.getLogger(__name__)


# Known rivalries and friendships between demo characters
DEMO_RELATIONSHIPS: dict[frozenset, float] = {
    frozenset({"holmes_001", "dracula_001"}): -25.0,
    frozenset({"joan_001", "dracula_001"}): -30.0,
    frozenset({"holmes_001", "joan_001"}): 10.0,
}


def create_demo_player_team() -> Team:
    """Holmes, Dracula and Joan of Arc, coached by the player."""
    holmes = Character(
        character_id="holmes_001",
        name="Sherlock Holmes",
        archetype=Archetype.DETECTIVE,
        attack=60,
        defense=70,
        speed=85,
        current_hp=280,
        max_hp=280,
        abilities=(
            Ability(
                ability_id="deduction",
                name="Deductive Strike",
                power=25,
                kind=AbilityKind.ATTACK,
                description="Analyzes opponent weakness for precise attack",
            ),
        ),
        psych=PsychProfile(
            training=85, team_player=45, ego=90, mental_health=75, communication=60
        ),
    )
    dracula = Character(
        character_id="dracula_001",
        name="Dracula",
        archetype=Archetype.MONSTER,
        attack=85,
        defense=90,
        speed=75,
        current_hp=360,
        max_hp=360,
        psych=PsychProfile(
            training=40, team_player=25, ego=95, mental_health=60, communication=80
        ),
    )
    joan = Character(
        character_id="joan_001",
        name="Joan of Arc",
        archetype=Archetype.LEADER,
        attack=75,
        defense=80,
        speed=70,
        current_hp=320,
        max_hp=320,
        psych=PsychProfile(
            training=95, team_player=90, ego=30, mental_health=85, communication=95
        ),
    )
    characters = (holmes, dracula, joan)
    return Team(
        team_id="demo_team_001",
        name="Legendary Squad",
        characters=characters,
        coach_name="Demo Coach",
        team_chemistry=calculate_team_chemistry(characters),
    )


def create_demo_opponent_team() -> Team:
    """A one-warrior team led by Erik the Red."""
    erik = Character(
        character_id="viking_001",
        name="Erik the Red",
        archetype=Archetype.WARRIOR,
        attack=90,
        defense=85,
        speed=60,
        current_hp=340,
        max_hp=340,
        psych=PsychProfile(
            training=70, team_player=80, ego=60, mental_health=80, communication=70
        ),
    )
    return Team(
        team_id="demo_opponent_001",
        name="Nordic Raiders",
        characters=(erik,),
        coach_name="AI Coach",
        team_chemistry=75,
    )


def load_team(path: Union[str, Path]) -> Team:
    """
    Load a team roster from a JSON file.

    Args:
        path: JSON file with team_id, name, coach_name, characters and
            optionally team_chemistry

    Returns:
        Team

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON is malformed or a character is invalid
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid team file {path}: {e}") from e
    try:
        team = Team.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid team file {path}: missing or bad field {e}") from e
    logger.info(f"Loaded team {team.name} ({len(team.characters)} characters) from {path}")
    return team
