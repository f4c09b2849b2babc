"""
Navigation for the Hex Flower Engine.

Key components:
- HexFlowerEngine: owns flowers, moves cursors, publishes events
- NAVIGATION_KEY / DIRECTION_VECTORS: the fixed 2d6 direction key
- BoundaryPolicy: what happens when a move would leave the lattice
- Snapshot export/import with SnapshotParseError

Usage:
    from hexflower.navigation import HexFlowerEngine, FlowerOptions

    engine = HexFlowerEngine()
    flower = engine.create(FlowerOptions(name="Weather", radius=2))
    result = engine.navigate(flower.id)          # rolls 2d6
    result = engine.navigate(flower.id, 7)       # uses the given total
"""

from hexflower.navigation.navigation_key import (
    NAVIGATION_KEY,
    DIRECTION_VECTORS,
    MIN_ROLL_TOTAL,
    MAX_ROLL_TOTAL,
    DirectionOdds,
    resolve_direction,
    displacement,
    rolls_for_direction,
    navigation_probabilities,
)
from hexflower.navigation.boundary_policy import (
    BoundaryPolicy,
    BoundaryOutcome,
    resolve_boundary,
)
from hexflower.navigation.flower_state_export import (
    SnapshotParseError,
    build_flower_snapshot,
    snapshot_to_json,
    parse_flower_snapshot,
)
from hexflower.navigation.navigation_engine import (
    HexFlowerEngine,
    HexFlowerNotFoundError,
    EngineConfig,
    FlowerOptions,
    EngineEvent,
    EngineEventType,
    NavigationRoll,
)

__all__ = [
    # Navigation key
    "NAVIGATION_KEY",
    "DIRECTION_VECTORS",
    "MIN_ROLL_TOTAL",
    "MAX_ROLL_TOTAL",
    "DirectionOdds",
    "resolve_direction",
    "displacement",
    "rolls_for_direction",
    "navigation_probabilities",
    # Boundary policy
    "BoundaryPolicy",
    "BoundaryOutcome",
    "resolve_boundary",
    # Snapshots
    "SnapshotParseError",
    "build_flower_snapshot",
    "snapshot_to_json",
    "parse_flower_snapshot",
    # Engine
    "HexFlowerEngine",
    "HexFlowerNotFoundError",
    "EngineConfig",
    "FlowerOptions",
    "EngineEvent",
    "EngineEventType",
    "NavigationRoll",
]
