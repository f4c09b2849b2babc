"""
Test helpers for the Hex Flower Engine test suite.

Provides deterministic collaborators:
- ScriptedRollProvider: returns queued 2d6 totals and counts calls
- TickClock: monotonically increasing millisecond timestamps
- EventRecorder: collects engine events
"""

from dataclasses import dataclass, field
from typing import Optional

from hexflower.navigation import EngineEvent, EngineEventType


class ScriptedRollProvider:
    """Roll provider returning queued totals."""

    def __init__(self, totals: Optional[list[int]] = None):
        self._totals = list(totals or [])
        self.calls = 0

    def queue(self, *totals: int) -> None:
        self._totals.extend(totals)

    def __call__(self) -> int:
        self.calls += 1
        if not self._totals:
            raise AssertionError("ScriptedRollProvider ran out of totals")
        return self._totals.pop(0)


class TickClock:
    """Clock returning 1000, 2000, 3000, ..."""

    def __init__(self, start: int = 0, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@dataclass
class EventRecorder:
    """Listener that keeps every event it receives."""
    events: list[EngineEvent] = field(default_factory=list)

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[EngineEventType]:
        return [e.event_type for e in self.events]

    def clear(self) -> None:
        self.events.clear()


def move_cursor(engine, flower_id: str, *totals: int) -> None:
    """Navigate with explicit totals, one step per total."""
    for total in totals:
        engine.navigate(flower_id, total)
