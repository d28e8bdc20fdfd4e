"""
Observability for the Blank Wars battle engine.

Provides a per-battle log of every deterministic event (rolls, draws,
transitions, rounds, rulings, narration outcomes).
"""

from blank_wars.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    DrawEvent,
    TransitionEvent,
    RoundEvent,
    RulingEvent,
    NarrationEvent,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "DrawEvent",
    "TransitionEvent",
    "RoundEvent",
    "RulingEvent",
    "NarrationEvent",
]
