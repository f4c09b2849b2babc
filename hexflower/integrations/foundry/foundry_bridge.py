"""
Foundry VTT Integration Bridge.

This module provides the seam between the Hex Flower Engine and a Foundry VTT
module. It translates engine events into Foundry hook calls, exports flower
state for rendering, and builds the module API object.

Supports two export modes:
- Snapshot mode: full flower state each call
- Delta mode: only the sections that changed since the last export
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING
import copy
import json

from hexflower.navigation.navigation_engine import EngineEvent, EngineEventType
from hexflower.navigation.navigation_key import (
    DIRECTION_VECTORS,
    NAVIGATION_KEY,
    navigation_probabilities,
)
from hexflower.observability.run_log import (
    LogEvent,
    NavigationEvent,
    NavigationOutcome,
    RollEvent,
    RunLog,
)

if TYPE_CHECKING:
    from hexflower.navigation.navigation_engine import HexFlowerEngine

MODULE_ID = "hexflower-engine"

HOOK_NAMES: dict[EngineEventType, str] = {
    EngineEventType.CREATED: f"{MODULE_ID}.hexFlowerCreated",
    EngineEventType.NAVIGATED: f"{MODULE_ID}.hexFlowerNavigated",
    EngineEventType.CONTENT_UPDATED: f"{MODULE_ID}.hexContentUpdated",
    EngineEventType.RESET: f"{MODULE_ID}.hexFlowerReset",
    EngineEventType.IMPORTED: f"{MODULE_ID}.hexFlowerImported",
    EngineEventType.DELETED: f"{MODULE_ID}.hexFlowerDeleted",
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FoundryExportMode(str, Enum):
    """Export mode for Foundry integration."""
    SNAPSHOT = "snapshot"  # Full state each call
    DELTA = "delta"  # Only changes


class FoundryEventType(str, Enum):
    """Types of events sent to Foundry."""
    HOOK = "hook"
    ROLL_RESULT = "roll_result"
    NOTIFICATION = "notification"


@dataclass
class FoundryEvent:
    """
    An event to be sent to Foundry VTT.

    Matches Foundry's socket message format.
    """
    event_type: FoundryEventType
    data: dict[str, Any]
    timestamp: str = field(default_factory=_utc_now)
    source: str = MODULE_ID

    def to_socket_message(self) -> dict[str, Any]:
        """Convert to Foundry socket message format."""
        return {
            "type": self.event_type.value,
            "data": self.data,
            "timestamp": self.timestamp,
            "source": self.source,
        }


@dataclass
class FoundryStateExport:
    """State of one Hex Flower for a Foundry dialog."""
    version: int = 1
    mode: str = "snapshot"
    timestamp: str = field(default_factory=_utc_now)

    flower_id: str = ""
    name: str = ""
    radius: int = 0
    current_position: dict[str, int] = field(default_factory=dict)
    current_hex: Optional[dict[str, Any]] = None
    hexes: list[dict[str, Any]] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    # Delta only: history was cleared, so history holds the whole trail
    history_reset: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    # Pending events
    events: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class FoundryBridge:
    """
    Bridge between the Hex Flower Engine and Foundry VTT.

    Handles:
    - Hook translation of engine events
    - Roll and edge-reached messages from the run log
    - State export (snapshot or delta mode)
    """

    def __init__(
        self,
        engine: HexFlowerEngine,
        mode: FoundryExportMode = FoundryExportMode.SNAPSHOT,
        run_log: Optional[RunLog] = None,
        show_navigation_roll: Optional[bool] = None,
    ):
        self.engine = engine
        self.mode = mode
        if show_navigation_roll is None:
            show_navigation_roll = engine.config.show_navigation_roll
        self.show_navigation_roll = show_navigation_roll

        self._last_state: dict[str, dict[str, Any]] = {}
        self._pending_events: list[FoundryEvent] = []
        self._run_log = run_log

        engine.subscribe(self._on_engine_event)
        if run_log is not None:
            run_log.subscribe(self._on_log_event)

    def detach(self) -> None:
        """Stop listening to the engine and run log."""
        self.engine.unsubscribe(self._on_engine_event)
        if self._run_log is not None:
            self._run_log.unsubscribe(self._on_log_event)

    # -------------------------------------------------------------------------
    # Event translation
    # -------------------------------------------------------------------------

    def _on_engine_event(self, event: EngineEvent) -> None:
        data: dict[str, Any] = {
            "hook": HOOK_NAMES[event.event_type],
            "flower_id": event.flower.id,
            "name": event.flower.name,
        }
        if event.cell is not None:
            data["hex"] = event.cell.to_dict()
        if event.result is not None:
            data["direction"] = event.result.direction.value
            data["roll_total"] = event.result.roll_total
            data["wrapped"] = event.result.wrapped
        self._pending_events.append(FoundryEvent(event_type=FoundryEventType.HOOK, data=data))

    def _on_log_event(self, event: LogEvent) -> None:
        if isinstance(event, RollEvent) and self.show_navigation_roll:
            self._pending_events.append(FoundryEvent(
                event_type=FoundryEventType.ROLL_RESULT,
                data={
                    "dice": event.notation,
                    "rolls": list(event.rolls),
                    "result": event.total,
                    "flavor": event.reason,
                    "flower_id": event.context.get("flower_id"),
                },
            ))
        elif isinstance(event, NavigationEvent) and event.outcome == NavigationOutcome.BLOCKED:
            self._pending_events.append(FoundryEvent(
                event_type=FoundryEventType.NOTIFICATION,
                data={
                    "level": "info",
                    "message": "HEXFLOWER.Notifications.EdgeReached",
                    "flower_id": event.flower_id,
                },
            ))

    def clear_pending_events(self) -> list[FoundryEvent]:
        """Clear and return pending events."""
        events = self._pending_events
        self._pending_events = []
        return events

    def _take_events(self, flower_id: str) -> list[FoundryEvent]:
        """Remove and return the events for one flower and those tied to none."""
        taken: list[FoundryEvent] = []
        kept: list[FoundryEvent] = []
        for event in self._pending_events:
            if event.data.get("flower_id") in (flower_id, None):
                taken.append(event)
            else:
                kept.append(event)
        self._pending_events = kept
        return taken

    @property
    def pending_events(self) -> list[FoundryEvent]:
        return list(self._pending_events)

    # -------------------------------------------------------------------------
    # State export
    # -------------------------------------------------------------------------

    def export_state(self, flower_id: str) -> Optional[FoundryStateExport]:
        """
        Export a flower's state for Foundry.

        In snapshot mode, exports full state. In delta mode, exports only
        changes since the last export of the same flower.

        Returns:
            The export, or None if the flower is unknown
        """
        current = self._build_current_state(flower_id)
        if current is None:
            return None

        last = self._last_state.get(flower_id)
        self._last_state[flower_id] = copy.deepcopy(current.to_dict())

        if self.mode == FoundryExportMode.DELTA and last:
            delta = self._compute_delta(last, current)
            delta.mode = "delta"
            return delta

        current.mode = "snapshot"
        return current

    def _build_current_state(self, flower_id: str) -> Optional[FoundryStateExport]:
        flower = self.engine.get_flower(flower_id)
        if flower is None:
            return None

        current_hex = flower.current_cell
        export = FoundryStateExport(
            flower_id=flower.id,
            name=flower.name,
            radius=flower.radius,
            current_position=flower.current_position.to_dict(),
            current_hex=current_hex.to_dict() if current_hex else None,
            hexes=[cell.to_dict() for cell in flower.hexes],
            history=[entry.to_dict() for entry in flower.history],
            metadata=dict(flower.metadata),
        )
        export.events = [e.to_socket_message() for e in self._take_events(flower_id)]
        return export

    def _compute_delta(
        self,
        old_state: dict[str, Any],
        new_state: FoundryStateExport,
    ) -> FoundryStateExport:
        """Only include sections that have changed."""
        new_dict = new_state.to_dict()
        delta = FoundryStateExport(
            flower_id=new_state.flower_id,
            timestamp=new_state.timestamp,
        )

        for section in ("name", "radius", "current_position", "current_hex", "metadata"):
            if old_state.get(section) != new_dict.get(section):
                setattr(delta, section, getattr(new_state, section))

        if old_state.get("hexes") != new_dict.get("hexes"):
            old_hexes = {(h["q"], h["r"]): h for h in old_state.get("hexes", [])}
            delta.hexes = [h for h in new_dict["hexes"] if old_hexes.get((h["q"], h["r"])) != h]

        old_history = old_state.get("history", [])
        new_history = new_dict.get("history", [])
        if new_history[:len(old_history)] == old_history:
            delta.history = new_history[len(old_history):]
        else:
            delta.history = new_history
            delta.history_reset = True

        delta.events = new_state.events
        return delta


def build_module_api(engine: HexFlowerEngine) -> dict[str, Any]:
    """
    Build the API object a Foundry module exposes to macros and other modules.

    Mirrors game.modules.get('hexflower-engine').api.
    """
    api: dict[str, Any] = {
        "engine": engine,
        "createHexFlower": engine.create,  # FlowerOptions or a plain dict
        "navigate": engine.navigate,
        "rollNavigation": engine.roll_navigation,
        "resolveDirection": engine.resolve_direction,
        "getCurrentHex": engine.current_cell,
        "setHexContent": engine.set_cell_content,
        "resetPosition": engine.reset,
        "exportToJSON": engine.export_to_json,
        "importFromJSON": engine.import_snapshot,
        "getNavigationProbabilities": navigation_probabilities,
        "NAVIGATION_KEY": NAVIGATION_KEY,
        "DIRECTION_VECTORS": DIRECTION_VECTORS,
    }
    return api
