"""
Round narration: procedural descriptions and time-boxed dialogue.
"""

from blank_wars.narrative.fallback_narration import FallbackNarrator
from blank_wars.narrative.narration_service import (
    NarrationResult,
    NarrationService,
    PendingNarration,
)

__all__ = [
    "FallbackNarrator",
    "NarrationResult",
    "NarrationService",
    "PendingNarration",
]
