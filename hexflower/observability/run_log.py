"""
Run Log for Hex Flower navigation.

Every 2d6 navigation roll and every navigation attempt (move, wrap or a
blocked step at the edge) is appended here with a sequence number. The log
can be filtered per flower, summarised, written to JSON and read back, which
makes a session's weather or mood walk inspectable after the fact.

Usage:
    log = get_run_log()
    log.subscribe(print)
    ...
    print(log.format_log(flower_id=flower.id))
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import json
import logging

logger = logging.getLogger(__name__)

Position = tuple[int, int]


class EventType(str, Enum):
    """Kinds of entries in the run log."""
    ROLL = "roll"
    NAVIGATION = "navigation"
    CUSTOM = "custom"


class NavigationOutcome(str, Enum):
    """How a navigation attempt ended."""
    MOVED = "moved"
    WRAPPED = "wrapped"
    BLOCKED = "blocked"


# =============================================================================
# EVENTS
# =============================================================================


@dataclass
class LogEvent:
    """
    One run log entry.

    Subclasses fix ``event_type`` in ``__post_init__``; it has a default only
    so that subclass fields may have defaults too.
    """
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @staticmethod
    def _common_fields(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "timestamp": datetime.fromisoformat(data["timestamp"]),
            "sequence_number": data.get("sequence_number", 0),
            "context": data.get("context", {}),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        return cls(event_type=EventType(data["event_type"]), **cls._common_fields(data))

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {name.upper()}"


@dataclass
class RollEvent(LogEvent):
    """A navigation roll. ``rolls`` is empty when the total came from a provider."""
    notation: str = "2d6"
    rolls: list[int] = field(default_factory=list)
    total: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["notation"] = self.notation
        data["rolls"] = list(self.rolls)
        data["total"] = self.total
        data["reason"] = self.reason
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollEvent":
        return cls(
            notation=data.get("notation", "2d6"),
            rolls=list(data.get("rolls", [])),
            total=data.get("total", 0),
            reason=data.get("reason", ""),
            **cls._common_fields(data),
        )

    def __str__(self) -> str:
        dice = self.rolls if self.rolls else "provided"
        return f"[{self.sequence_number}] ROLL {self.notation}: {dice} = {self.total} ({self.reason})"


@dataclass
class NavigationEvent(LogEvent):
    """A navigation attempt on one Hex Flower."""
    flower_id: str = ""
    flower_name: str = ""
    roll_total: int = 0
    direction: str = ""
    from_position: Position = (0, 0)
    to_position: Position = (0, 0)
    outcome: NavigationOutcome = NavigationOutcome.MOVED

    def __post_init__(self):
        self.event_type = EventType.NAVIGATION

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["flower_id"] = self.flower_id
        data["flower_name"] = self.flower_name
        data["roll_total"] = self.roll_total
        data["direction"] = self.direction
        data["from_position"] = list(self.from_position)
        data["to_position"] = list(self.to_position)
        data["outcome"] = self.outcome.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NavigationEvent":
        return cls(
            flower_id=data.get("flower_id", ""),
            flower_name=data.get("flower_name", ""),
            roll_total=data.get("roll_total", 0),
            direction=data.get("direction", ""),
            from_position=tuple(data.get("from_position", (0, 0))),
            to_position=tuple(data.get("to_position", (0, 0))),
            outcome=NavigationOutcome(data.get("outcome", "moved")),
            **cls._common_fields(data),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] NAV {self.flower_name} [{self.roll_total}] "
            f"{self.direction}: {self.from_position} -> {self.to_position} ({self.outcome.value})"
        )


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.ROLL: RollEvent,
    EventType.NAVIGATION: NavigationEvent,
    EventType.CUSTOM: LogEvent,
}


# =============================================================================
# RUN LOG
# =============================================================================


class RunLog:
    """
    Process-wide log of navigation activity.

    Singleton: construct it or call get_run_log(), both return the same
    instance. Engines may also be handed this instance explicitly.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence = 0
        self._seed: Optional[int] = None
        self._session_start = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused = False

    # -------------------------------------------------------------------------
    # Session control
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Drop all events and start a new session. Subscribers are kept."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.info("RunLog reset")

    def set_seed(self, seed: int) -> None:
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def pause(self) -> None:
        """Stop recording; events logged while paused are discarded."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def _record(self, event: LogEvent) -> LogEvent:
        if self._paused:
            return event

        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"RunLog subscriber failed on event {event.sequence_number}: {e}")
        return event

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Record a navigation roll."""
        event = RollEvent(
            notation=notation,
            rolls=list(rolls),
            total=total,
            reason=reason,
            context=context or {},
        )
        self._record(event)
        return event

    def log_navigation(
        self,
        flower_id: str,
        flower_name: str,
        roll_total: int,
        direction: str,
        from_position: Position,
        to_position: Position,
        outcome: NavigationOutcome,
        context: Optional[dict[str, Any]] = None,
    ) -> NavigationEvent:
        """
        Record a navigation attempt.

        Args:
            flower_id: Flower that was navigated
            flower_name: Display name at the time of the attempt
            roll_total: 2d6 total that selected the direction
            direction: Direction letter (a-f)
            from_position: Cursor (q, r) before the attempt
            to_position: Cursor (q, r) after it; equal to from_position when blocked
            outcome: Moved, wrapped or blocked
            context: Extra data for the entry
        """
        event = NavigationEvent(
            flower_id=flower_id,
            flower_name=flower_name,
            roll_total=roll_total,
            direction=direction,
            from_position=tuple(from_position),
            to_position=tuple(to_position),
            outcome=outcome,
            context=context or {},
        )
        self._record(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        """Record a free-form entry (e.g. a referee note)."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._record(event)
        return event

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get recorded events in order.

        Args:
            event_type: Only this kind of event (None = all)
            since_sequence: Only events with a higher sequence number
        """
        return [
            e for e in self._events
            if e.sequence_number > since_sequence
            and (event_type is None or e.event_type == event_type)
        ]

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_navigations(self, flower_id: Optional[str] = None) -> list[NavigationEvent]:
        """Navigation attempts, optionally for one flower only."""
        return [
            e for e in self._events
            if isinstance(e, NavigationEvent)
            and (flower_id is None or e.flower_id == flower_id)
        ]

    def get_trail(self, flower_id: str) -> list[Position]:
        """Cursor positions visited by a flower, starting with the first origin."""
        trail: list[Position] = []
        for event in self.get_navigations(flower_id):
            if not trail:
                trail.append(event.from_position)
            if event.outcome != NavigationOutcome.BLOCKED:
                trail.append(event.to_position)
        return trail

    def get_direction_counts(self, flower_id: Optional[str] = None) -> dict[str, int]:
        """How often each direction letter was rolled, blocked attempts included."""
        counts = Counter(e.direction for e in self.get_navigations(flower_id))
        return dict(sorted(counts.items()))

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        navigations = self.get_navigations()
        outcomes = Counter(e.outcome for e in navigations)
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "navigations": len(navigations),
            "blocked": outcomes[NavigationOutcome.BLOCKED],
            "wrapped": outcomes[NavigationOutcome.WRAPPED],
            "flowers": len({e.flower_id for e in navigations}),
            "directions": self.get_direction_counts(),
            "last_sequence": self._sequence,
        }

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath} ({len(self._events)} events)")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Replace the global log's contents with a saved session."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)
        for event_data in data.get("events", []):
            event_class = _EVENT_CLASSES[EventType(event_data["event_type"])]
            log._events.append(event_class.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
        flower_id: Optional[str] = None,
    ) -> str:
        """
        Render the log as text.

        Args:
            event_types: Only these kinds of events (None = all)
            max_events: Keep only the most recent N events
            flower_id: Only navigation events of this flower
        """
        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if flower_id is not None:
            events = [
                e for e in events
                if isinstance(e, NavigationEvent) and e.flower_id == flower_id
            ]
        if max_events:
            events = events[-max_events:]

        seed = self._seed if self._seed is not None else "not set"
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {seed}",
            f"Total Events: {len(self._events)}",
            "",
        ]
        lines.extend(str(event) for event in events)
        return "\n".join(lines)


_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
