"""
Navigation Engine for the Hex Flower Engine.

Owns a collection of Hex Flowers keyed by id and moves their cursors:

1. Obtain a 2d6 total (from the roll provider, or as given by the caller)
2. Map the total to a direction through the navigation key
3. Add the direction's displacement to the cursor
4. If the destination is a cell, move there and record a history entry
5. Otherwise apply the boundary policy (block, or wrap to the antipode)
6. Persist the collection and notify listeners

Error policy: create and navigate raise on bad input or unknown flowers;
set_cell_content and reset quietly do nothing for unknown flowers or cells
so UI call sites need no guards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union
import logging
import threading
import time
import uuid

from hexflower.data_models import (
    CENTER,
    Cell,
    CellPayload,
    DiceResult,
    DiceRoller,
    Direction,
    HexFlower,
    HistoryEntry,
    HistoryEntryType,
    InvalidParameterError,
    NavigationResult,
)
from hexflower.lattice.lattice_builder import build_lattice
from hexflower.navigation.boundary_policy import BoundaryPolicy, resolve_boundary
from hexflower.navigation.flower_state_export import (
    DEFAULT_FLOWER_NAME,
    SnapshotInput,
    build_flower_snapshot,
    parse_flower_snapshot,
    snapshot_to_json,
)
from hexflower.navigation.navigation_key import (
    DirectionOdds,
    displacement,
    navigation_probabilities,
    resolve_direction,
)
from hexflower.observability.run_log import NavigationOutcome, RunLog, get_run_log
from hexflower.persistence.flower_store import FlowerStore

logger = logging.getLogger(__name__)

RollProvider = Callable[[], int]
Clock = Callable[[], int]

NAVIGATION_ROLL_REASON = "Hex Flower navigation"


class HexFlowerNotFoundError(KeyError):
    """Raised when an operation that must report it addresses an unknown flower."""

    def __init__(self, flower_id: str):
        self.flower_id = flower_id
        super().__init__(flower_id)

    def __str__(self) -> str:
        return f"Hex Flower not found: {self.flower_id}"


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class EngineConfig:
    """Engine-wide settings."""

    default_radius: int = 2
    min_radius: int = 1
    max_radius: int = 5
    boundary_policy: BoundaryPolicy = BoundaryPolicy.BOUNDED
    show_navigation_roll: bool = True
    default_name: str = DEFAULT_FLOWER_NAME

    def __post_init__(self):
        if isinstance(self.boundary_policy, str):
            self.boundary_policy = BoundaryPolicy(self.boundary_policy)
        if self.min_radius < 1 or self.max_radius < self.min_radius:
            raise InvalidParameterError(
                f"Invalid radius range {self.min_radius}..{self.max_radius}"
            )
        if not self.min_radius <= self.default_radius <= self.max_radius:
            raise InvalidParameterError(
                f"Default radius {self.default_radius} outside "
                f"{self.min_radius}..{self.max_radius}"
            )

    @property
    def enable_edge_wrapping(self) -> bool:
        return self.boundary_policy == BoundaryPolicy.WRAPPING


@dataclass
class FlowerOptions:
    """Options for creating a Hex Flower. Unset fields use engine defaults."""

    name: Optional[str] = None
    radius: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FlowerOptions":
        return cls(
            name=data.get("name"),
            radius=data.get("radius"),
            metadata=dict(data.get("metadata") or {}),
        )


# =============================================================================
# EVENTS
# =============================================================================


class EngineEventType(str, Enum):
    """Notifications published by the engine."""
    CREATED = "created"
    NAVIGATED = "navigated"
    CONTENT_UPDATED = "contentUpdated"
    RESET = "reset"
    IMPORTED = "imported"
    DELETED = "deleted"


@dataclass
class EngineEvent:
    """A state change of one flower."""
    event_type: EngineEventType
    flower: HexFlower
    cell: Optional[Cell] = None
    result: Optional[NavigationResult] = None
    timestamp: datetime = field(default_factory=datetime.now)


EngineListener = Callable[[EngineEvent], None]


@dataclass
class NavigationRoll:
    """A navigation roll and the direction it selects."""
    total: int
    direction: Direction
    dice: Optional[DiceResult] = None


# =============================================================================
# ENGINE
# =============================================================================


class HexFlowerEngine:
    """
    Owns Hex Flowers and drives their navigation.

    Collaborators are injected:
        roll_provider: returns a 2d6 total; defaults to the engine's DiceRoller
        store: persistence provider with load()/save(entries)
        run_log: observability log; defaults to the global RunLog
        clock: epoch milliseconds for history timestamps
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        roll_provider: Optional[RollProvider] = None,
        store: Optional[FlowerStore] = None,
        run_log: Optional[RunLog] = None,
        dice_roller: Optional[DiceRoller] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or EngineConfig()
        self._roll_provider = roll_provider
        self._dice = dice_roller or DiceRoller()
        self._store = store
        self._run_log = run_log or get_run_log()
        self._clock = clock or (lambda: int(time.time() * 1000))

        self._flowers: dict[str, HexFlower] = {}
        self._listeners: list[tuple[EngineListener, Optional[EngineEventType]]] = []
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._save_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self) -> int:
        """
        Register flowers from the persistence provider, keeping their ids.

        Malformed entries are skipped with a warning.

        Returns:
            Number of flowers loaded
        """
        if self._store is None:
            return 0

        loaded = 0
        for entry in self._store.load():
            try:
                flower = parse_flower_snapshot(entry)
            except ValueError as e:
                logger.warning(f"Skipping stored Hex Flower: {e}")
                continue
            self._register(flower)
            loaded += 1

        logger.info(f"Loaded {loaded} Hex Flowers")
        return loaded

    def shutdown(self) -> None:
        """Persist the collection and drop listeners and flowers."""
        self._save()
        self._listeners.clear()
        self._flowers.clear()
        self._locks.clear()
        logger.info("Hex Flower Engine shut down")

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        callback: EngineListener,
        event_type: Optional[EngineEventType] = None,
    ) -> None:
        """
        Register a listener.

        Args:
            callback: Called with each EngineEvent
            event_type: Only deliver this event type (None = all)
        """
        self._listeners.append((callback, event_type))

    def unsubscribe(self, callback: EngineListener) -> None:
        self._listeners = [(cb, et) for cb, et in self._listeners if cb != callback]

    def _emit(
        self,
        event_type: EngineEventType,
        flower: HexFlower,
        cell: Optional[Cell] = None,
        result: Optional[NavigationResult] = None,
    ) -> None:
        event = EngineEvent(event_type=event_type, flower=flower, cell=cell, result=result)
        for callback, wanted in list(self._listeners):
            if wanted is not None and wanted != event_type:
                continue
            # State is committed before listeners run
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Listener error on {event_type.value}: {e}")

    # -------------------------------------------------------------------------
    # Collection access
    # -------------------------------------------------------------------------

    def get_flower(self, flower_id: str) -> Optional[HexFlower]:
        return self._flowers.get(flower_id)

    def list_flowers(self) -> list[HexFlower]:
        with self._registry_lock:
            return list(self._flowers.values())

    def __contains__(self, flower_id: object) -> bool:
        return flower_id in self._flowers

    def __len__(self) -> int:
        return len(self._flowers)

    def _require(self, flower_id: str) -> HexFlower:
        flower = self._flowers.get(flower_id)
        if flower is None:
            raise HexFlowerNotFoundError(flower_id)
        return flower

    def _lock_for(self, flower_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(flower_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[flower_id] = lock
            return lock

    def _register(self, flower: HexFlower) -> None:
        with self._registry_lock:
            self._flowers[flower.id] = flower

    def _save(self) -> None:
        if self._store is None:
            return
         # Snapshot and write under one lock so saves land in order
        with self._save_lock:
            with self._registry_lock:
                flowers = list(self._flowers.values())
            self._store.save([flower.to_dict() for flower in flowers])

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create(
        self, options: Union[FlowerOptions, Mapping[str, Any], None] = None
    ) -> HexFlower:
        """
        Create and register a new Hex Flower.

        Args:
            options: Name, radius and metadata (defaults from EngineConfig),
                as FlowerOptions or a plain mapping with the same keys

        Returns:
            The new flower with its cursor at the centre

        Raises:
            InvalidParameterError: If the radius is outside the configured range
        """
        if isinstance(options, Mapping):
            options = FlowerOptions.from_mapping(options)
        options = options or FlowerOptions()
        radius = self.config.default_radius if options.radius is None else options.radius

        if isinstance(radius, bool) or not isinstance(radius, int):
            raise InvalidParameterError(f"Radius must be an integer, got {radius!r}")
        if not self.config.min_radius <= radius <= self.config.max_radius:
            raise InvalidParameterError(
                f"Radius {radius} outside {self.config.min_radius}..{self.config.max_radius}"
            )

        flower = HexFlower(
            id=self._new_id(),
            name=options.name or self.config.default_name,
            radius=radius,
            hexes=build_lattice(radius),
            metadata=dict(options.metadata),
            current_position=CENTER,
            history=[],
        )

        self._register(flower)
        self._save()
        logger.info(f"Created Hex Flower '{flower.name}' ({flower.id}), radius {radius}")
        self._emit(EngineEventType.CREATED, flower)
        return flower

    def delete(self, flower_id: str) -> bool:
        """Remove a flower. Returns False if it was not registered."""
        with self._registry_lock:
            flower = self._flowers.pop(flower_id, None)
            self._locks.pop(flower_id, None)
        if flower is None:
            return False
        self._save()
        logger.info(f"Deleted Hex Flower '{flower.name}' ({flower_id})")
        self._emit(EngineEventType.DELETED, flower)
        return True

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @staticmethod
    def resolve_direction(roll_total: int) -> Direction:
        """Direction for a 2d6 total; raises InvalidParameterError outside [2, 12]."""
        return resolve_direction(roll_total)

    @staticmethod
    def navigation_probabilities() -> dict[Direction, DirectionOdds]:
        return navigation_probabilities()

    def roll_navigation(self, flower_id: Optional[str] = None) -> NavigationRoll:
        """
        Roll 2d6 for navigation.

        Uses the injected roll provider when there is one, otherwise the
        engine's DiceRoller. The roll is recorded in the run log, tagged
        with flower_id when the roll belongs to a flower.
        """
        dice: Optional[DiceResult] = None
        if self._roll_provider is not None:
            total = self._roll_provider()
            rolls: list[int] = []
        else:
            dice = self._dice.roll_2d6(NAVIGATION_ROLL_REASON)
            total = dice.total
            rolls = dice.rolls

        direction = resolve_direction(total)
        context = {"flower_id": flower_id} if flower_id else None
        self._run_log.log_roll(
            "2d6", rolls, total, reason=NAVIGATION_ROLL_REASON, context=context
        )

        if self.config.show_navigation_roll:
            logger.info(
                f"Navigation roll {total}: direction {direction.value} ({direction.compass})"
            )

        return NavigationRoll(total=total, direction=direction, dice=dice)

    def navigate(self, flower_id: str, roll_total: Optional[int] = None) -> NavigationResult:
        """
        Move a flower's cursor by one step.

        Args:
            flower_id: Flower to navigate
            roll_total: Pre-rolled 2d6 total. When given, the roll provider is
                not consulted.

        Returns:
            NavigationResult with the cell now under the cursor

        Raises:
            HexFlowerNotFoundError: If flower_id is unknown
            InvalidParameterError: If roll_total is outside [2, 12]
        """
        flower = self._require(flower_id)

        if roll_total is not None:
            direction = resolve_direction(roll_total)
        else:
            roll = self.roll_navigation(flower_id)
            roll_total = roll.total
            direction = roll.direction

        with self._lock_for(flower_id):
            origin = flower.current_position
            destination = origin + displacement(direction)
            target = flower.cell_at(destination)

            if target is not None:
                flower.history.append(HistoryEntry(
                    from_position=origin,
                    to_position=destination,
                    direction=direction,
                    entry_type=HistoryEntryType.MOVE,
                    timestamp=self._clock(),
                ))
                flower.current_position = destination
                result = NavigationResult(
                    position=destination,
                    cell=target,
                    direction=direction,
                    roll_total=roll_total,
                )
                outcome = NavigationOutcome.MOVED
            else:
                result = self._handle_edge(flower, direction, roll_total)
                outcome = NavigationOutcome.BLOCKED if result.blocked else NavigationOutcome.WRAPPED

        self._run_log.log_navigation(
            flower_id=flower.id,
            flower_name=flower.name,
            roll_total=roll_total,
            direction=direction.value,
            from_position=(origin.q, origin.r),
            to_position=(result.position.q, result.position.r),
            outcome=outcome,
        )

        if result.blocked:
            return result

        self._save()
        logger.debug(f"'{flower.name}' {origin} -> {result.position} ({direction.value})")
        self._emit(EngineEventType.NAVIGATED, flower, cell=result.cell, result=result)
        return result

    def _handle_edge(
        self,
        flower: HexFlower,
        direction: Direction,
        roll_total: int,
    ) -> NavigationResult:
        """Apply the boundary policy to a move that left the lattice."""
        origin = flower.current_position
        outcome = resolve_boundary(flower, direction, self.config.boundary_policy)

        if outcome.wrapped:
            flower.history.append(HistoryEntry(
                from_position=origin,
                to_position=outcome.position,
                direction=direction,
                entry_type=HistoryEntryType.WRAP,
                timestamp=self._clock(),
            ))
            flower.current_position = outcome.position
            logger.info(f"'{flower.name}' wrapped from {origin} to {outcome.position}")
        else:
            logger.warning(f"'{flower.name}' reached the edge at {origin} moving {direction.value}")

        return NavigationResult(
            position=outcome.position,
            cell=outcome.cell,
            direction=direction,
            roll_total=roll_total,
            blocked=outcome.blocked,
            wrapped=outcome.wrapped,
        )

    # -------------------------------------------------------------------------
    # Cells and cursor
    # -------------------------------------------------------------------------

    def current_cell(self, flower_id: str) -> Optional[Cell]:
        """Cell under the cursor, or None if the flower is unknown."""
        flower = self._flowers.get(flower_id)
        if flower is None:
            return None
        return flower.current_cell

    def set_cell_content(
        self,
        flower_id: str,
        q: int,
        r: int,
        payload: Union[CellPayload, Mapping[str, Any]],
    ) -> Optional[Cell]:
        """
        Update a cell's payload. Only non-empty fields overwrite.

        Unknown flowers or cells are ignored.

        Returns:
            The updated cell, or None if nothing was found
        """
        flower = self._flowers.get(flower_id)
        if flower is None:
            logger.debug(f"set_cell_content: unknown Hex Flower {flower_id}")
            return None

        if not isinstance(payload, CellPayload):
            payload = CellPayload.from_mapping(dict(payload))

        with self._lock_for(flower_id):
            cell = flower.get_cell(q, r)
            if cell is None:
                logger.debug(f"set_cell_content: no cell ({q}, {r}) in '{flower.name}'")
                return None

            if payload.content:
                cell.content = payload.content
            if payload.label:
                cell.label = payload.label
            if payload.color:
                cell.color = payload.color

        self._save()
        self._emit(EngineEventType.CONTENT_UPDATED, flower, cell=cell)
        return cell

    def reset(self, flower_id: str) -> None:
        """Return the cursor to the centre and clear history. Unknown ids are ignored."""
        flower = self._flowers.get(flower_id)
        if flower is None:
            logger.debug(f"reset: unknown Hex Flower {flower_id}")
            return

        with self._lock_for(flower_id):
            flower.current_position = CENTER
            flower.history = []

        self._save()
        logger.info(f"Reset Hex Flower '{flower.name}'")
        self._emit(EngineEventType.RESET, flower, cell=flower.current_cell)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def export_snapshot(self, flower_id: str) -> Optional[dict[str, Any]]:
        """Full structural copy of a flower, or None if unknown."""
        flower = self._flowers.get(flower_id)
        if flower is None:
            return None
        return build_flower_snapshot(flower)

    def export_to_json(self, flower_id: str) -> Optional[str]:
        flower = self._flowers.get(flower_id)
        if flower is None:
            return None
        return snapshot_to_json(flower)

    def import_snapshot(self, serialized: SnapshotInput) -> HexFlower:
        """
        Register a flower from a snapshot under a new id.

        Raises:
            SnapshotParseError: If the snapshot is malformed or its radius is
                above config.max_radius; the engine is left unchanged
        """
        flower = parse_flower_snapshot(
            serialized, new_id=self._new_id, max_radius=self.config.max_radius
        )

        self._register(flower)
        self._save()
        logger.info(f"Imported Hex Flower '{flower.name}' as {flower.id}")
        self._emit(EngineEventType.IMPORTED, flower)
        return flower
