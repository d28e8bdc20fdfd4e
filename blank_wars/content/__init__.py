"""
Rosters for the Blank Wars battle engine.
"""

from blank_wars.content.rosters import (
    DEMO_RELATIONSHIPS,
    create_demo_opponent_team,
    create_demo_player_team,
    load_team,
)

__all__ = [
    "DEMO_RELATIONSHIPS",
    "create_demo_opponent_team",
    "create_demo_player_team",
    "load_team",
]
