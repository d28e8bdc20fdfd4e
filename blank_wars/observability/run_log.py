"""
Run Log for battle event tracking.

Captures every deterministic event in a battle (dice rolls, random draws,
phase transitions, resolved rounds, judge rulings, narration fallbacks) so a
seeded battle can be inspected and compared after the fact.

Each BattleStateMachine owns its own RunLog; there is no process-wide log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Callable
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    ROLL = "roll"  # Dice notation roll
    DRAW = "draw"  # Uniform/choice draw
    TRANSITION = "transition"  # Battle phase transition
    ROUND = "round"  # Resolved round
    RULING = "ruling"  # Judge ruling on a rogue action
    NARRATION = "narration"  # Flavor text outcome
    CUSTOM = "custom"


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Subclasses set the correct event_type in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    round_number: Optional[int] = None
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "round_number": self.round_number,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {name.upper()} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A dice roll event."""

    notation: str = ""
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "notation": self.notation,
                "rolls": self.rolls,
                "modifier": self.modifier,
                "total": self.total,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            notation=data.get("notation", ""),
            rolls=data.get("rolls", []),
            modifier=data.get("modifier", 0),
            total=data.get("total", 0),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} + {self.modifier} = {self.total} ({self.reason})"
        elif self.modifier < 0:
            return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total} ({self.reason})"
        return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} = {self.total} ({self.reason})"


@dataclass
class DrawEvent(LogEvent):
    """A uniform, choice or weighted draw."""

    method: str = ""
    value: float = 0.0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.DRAW

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update({"method": self.method, "value": self.value, "reason": self.reason})
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DrawEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            method=data.get("method", ""),
            value=data.get("value", 0.0),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] DRAW {self.method}: {self.value:.4f} ({self.reason})"


@dataclass
class TransitionEvent(LogEvent):
    """A battle phase transition event."""

    from_state: str = ""
    to_state: str = ""
    trigger: str = ""

    def __post_init__(self):
        self.event_type = EventType.TRANSITION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "from_state": self.from_state,
                "to_state": self.to_state,
                "trigger": self.trigger,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransitionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            from_state=data.get("from_state", ""),
            to_state=data.get("to_state", ""),
            trigger=data.get("trigger", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] TRANSITION {self.from_state} -> {self.to_state} (trigger: {self.trigger})"


@dataclass
class RoundEvent(LogEvent):
    """A resolved round."""

    attacker_id: str = ""
    defender_id: str = ""
    outcome: str = ""
    damage: int = 0
    backlash_damage: int = 0

    def __post_init__(self):
        self.event_type = EventType.ROUND

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "attacker_id": self.attacker_id,
                "defender_id": self.defender_id,
                "outcome": self.outcome,
                "damage": self.damage,
                "backlash_damage": self.backlash_damage,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoundEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            attacker_id=data.get("attacker_id", ""),
            defender_id=data.get("defender_id", ""),
            outcome=data.get("outcome", ""),
            damage=data.get("damage", 0),
            backlash_damage=data.get("backlash_damage", 0),
        )

    def __str__(self) -> str:
        backlash = f", backlash {self.backlash_damage}" if self.backlash_damage else ""
        return (
            f"[{self.sequence_number}] ROUND {self.round_number} {self.attacker_id} -> "
            f"{self.defender_id}: {self.outcome}, {self.damage} dmg{backlash}"
        )


@dataclass
class RulingEvent(LogEvent):
    """A judge ruling on a rogue action."""

    persona_name: str = ""
    action_type: str = ""
    damage_to_opponent: int = 0
    backlash_damage: int = 0
    morale_change: float = 0.0

    def __post_init__(self):
        self.event_type = EventType.RULING

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "persona_name": self.persona_name,
                "action_type": self.action_type,
                "damage_to_opponent": self.damage_to_opponent,
                "backlash_damage": self.backlash_damage,
                "morale_change": self.morale_change,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RulingEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            persona_name=data.get("persona_name", ""),
            action_type=data.get("action_type", ""),
            damage_to_opponent=data.get("damage_to_opponent", 0),
            backlash_damage=data.get("backlash_damage", 0),
            morale_change=data.get("morale_change", 0.0),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] RULING {self.persona_name} on {self.action_type}: "
            f"{self.damage_to_opponent} dmg, {self.backlash_damage} backlash, "
            f"morale {self.morale_change:+.0f}"
        )


@dataclass
class NarrationEvent(LogEvent):
    """Where a round's flavor text came from."""

    source: str = ""  # "dialogue" or "fallback"
    degraded: bool = False
    detail: str = ""

    def __post_init__(self):
        self.event_type = EventType.NARRATION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update({"source": self.source, "degraded": self.degraded, "detail": self.detail})
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NarrationEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            source=data.get("source", ""),
            degraded=data.get("degraded", False),
            detail=data.get("detail", ""),
        )

    def __str__(self) -> str:
        flag = " (degraded)" if self.degraded else ""
        return f"[{self.sequence_number}] NARRATION round {self.round_number}: {self.source}{flag} {self.detail}"


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.ROLL: RollEvent,
    EventType.DRAW: DrawEvent,
    EventType.TRANSITION: TransitionEvent,
    EventType.ROUND: RoundEvent,
    EventType.RULING: RulingEvent,
    EventType.NARRATION: NarrationEvent,
}


class RunLog:
    """
    Event log for a single battle engine instance.

    Captures rolls, draws, transitions, rounds, rulings and narration events.
    """

    def __init__(self):
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._round_provider: Optional[Callable[[], Optional[int]]] = None
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new battle."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: int) -> None:
        """Record the RNG seed used for this battle."""
        self._seed = seed
        logger.debug(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def set_round_provider(self, provider: Callable[[], Optional[int]]) -> None:
        """Set a callback returning the current round number, stamped on every event."""
        self._round_provider = provider

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _get_round(self) -> Optional[int]:
        if self._round_provider:
            try:
                return self._round_provider()
            except Exception as e:
                logger.debug(f"Round provider failed: {e}")
                return None
        return None

    def _log_event(self, event: LogEvent) -> None:
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        if event.round_number is None:
            event.round_number = self._get_round()
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        modifier: int,
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a dice roll."""
        event = RollEvent(
            notation=notation,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_draw(self, method: str, value: float, reason: str = "") -> DrawEvent:
        """Log a uniform or choice draw."""
        event = DrawEvent(method=method, value=value, reason=reason)
        self._log_event(event)
        return event

    def log_transition(
        self,
        from_state: str,
        to_state: str,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> TransitionEvent:
        """Log a phase transition."""
        event = TransitionEvent(
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_round(self, result: Any) -> RoundEvent:
        """Log a resolved RoundResult."""
        event = RoundEvent(
            round_number=result.round_number,
            attacker_id=result.attacker_id,
            defender_id=result.defender_id,
            outcome=result.outcome.value,
            damage=result.damage,
            backlash_damage=result.backlash_damage,
            context={"action_taken": result.action_taken, "risk_used": result.risk_used},
        )
        self._log_event(event)
        return event

    def log_ruling(self, ruling: Any, round_number: Optional[int] = None) -> RulingEvent:
        """Log a JudgeRuling."""
        event = RulingEvent(
            round_number=round_number,
            persona_name=ruling.persona_name,
            action_type=ruling.action_type.value,
            damage_to_opponent=ruling.damage_to_opponent,
            backlash_damage=ruling.backlash_damage,
            morale_change=ruling.morale_change,
            context={"paid_off": ruling.paid_off},
        )
        self._log_event(event)
        return event

    def log_narration(
        self, round_number: int, source: str, degraded: bool = False, detail: str = ""
    ) -> NarrationEvent:
        """Log where a round's flavor text came from."""
        event = NarrationEvent(
            round_number=round_number, source=source, degraded=degraded, detail=detail
        )
        self._log_event(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_draws(self) -> list[DrawEvent]:
        return [e for e in self._events if isinstance(e, DrawEvent)]

    def get_transitions(self) -> list[TransitionEvent]:
        return [e for e in self._events if isinstance(e, TransitionEvent)]

    def get_rounds(self) -> list[RoundEvent]:
        return [e for e in self._events if isinstance(e, RoundEvent)]

    def get_rulings(self) -> list[RulingEvent]:
        return [e for e in self._events if isinstance(e, RulingEvent)]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        narration = [e for e in self._events if isinstance(e, NarrationEvent)]
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "draws": len(self.get_draws()),
            "transitions": len(self.get_transitions()),
            "rounds": len(self.get_rounds()),
            "rulings": len(self.get_rulings()),
            "degraded_narrations": sum(1 for e in narration if e.degraded),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file into a new RunLog."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = cls()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_cls = _EVENT_CLASSES.get(EventType(event_data["event_type"]), LogEvent)
            log._events.append(event_cls.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Maximum number of events to include

        Returns:
            Formatted log string
        """
        lines = [
            "=== Battle Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)
