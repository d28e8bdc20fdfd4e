"""
Rogue actions and judge adjudication.
"""

from blank_wars.judge.rogue_actions import (
    ARCHETYPE_ROGUE_WEIGHTS,
    ROGUE_PROFILES,
    RogueActionGenerator,
    RogueProfile,
    severity_for_intensity,
)
from blank_wars.judge.judge_adjudicator import (
    JUDGE_ROSTER,
    JudgeAdjudicator,
    JudgePersona,
    JudgeStyle,
    get_persona,
    persona_flavor,
    select_persona,
)

__all__ = [
    "ARCHETYPE_ROGUE_WEIGHTS",
    "ROGUE_PROFILES",
    "RogueActionGenerator",
    "RogueProfile",
    "severity_for_intensity",
    "JUDGE_ROSTER",
    "JudgeAdjudicator",
    "JudgePersona",
    "JudgeStyle",
    "get_persona",
    "persona_flavor",
    "select_persona",
]
