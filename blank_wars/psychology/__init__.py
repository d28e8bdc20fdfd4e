"""
Character psychology and gameplan adherence.
"""

from blank_wars.psychology.adherence import (
    AdherenceEvaluator,
    AdherenceResult,
    adherence_thresholds,
    classify_roll,
    compute_deviation_risk,
)
from blank_wars.psychology.psychology_manager import (
    ARCHETYPE_BIASES,
    EnvironmentModifiers,
    Mood,
    PsychologyState,
    PsychologyStateManager,
    derive_mood,
)

__all__ = [
    "AdherenceEvaluator",
    "AdherenceResult",
    "adherence_thresholds",
    "classify_roll",
    "compute_deviation_risk",
    "ARCHETYPE_BIASES",
    "EnvironmentModifiers",
    "Mood",
    "PsychologyState",
    "PsychologyStateManager",
    "derive_mood",
]
