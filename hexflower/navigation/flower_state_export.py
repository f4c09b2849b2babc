"""
Hex Flower snapshot export and import.

The snapshot is a pure-JSON structure:

    {
      "id", "name", "radius",
      "hexes": [{"q", "r", "s", "content", "label", "color"}, ...],
      "metadata": {...},
      "currentPosition": {"q", "r"},
      "history": [{"from": {"q", "r"}, "to": {"q", "r"},
                   "direction", "type"?, "timestamp"}, ...]
    }

Parsing validates structure strictly but fills in missing optional fields,
so a bare ``{"radius": 2}`` is a valid (empty) flower.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Union
import json
import logging

from hexflower.data_models import (
    CENTER,
    Cell,
    Direction,
    HexCoord,
    HexFlower,
    HistoryEntry,
    HistoryEntryType,
    InvalidParameterError,
)
from hexflower.lattice.lattice_builder import build_lattice

logger = logging.getLogger(__name__)

DEFAULT_FLOWER_NAME = "New Hex Flower"

SnapshotInput = Union[str, bytes, bytearray, Mapping[str, Any]]


class SnapshotParseError(ValueError):
    """Raised when a Hex Flower snapshot is malformed."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.reason = reason
        self.field = field
        if field:
            message = f"Invalid Hex Flower snapshot ({field}): {reason}"
        else:
            message = f"Invalid Hex Flower snapshot: {reason}"
        super().__init__(message)


# =============================================================================
# EXPORT
# =============================================================================


def build_flower_snapshot(flower: HexFlower) -> dict[str, Any]:
    """Return a full structural copy of the flower as plain JSON data."""
    return json.loads(json.dumps(flower.to_dict()))


def snapshot_to_json(flower: HexFlower, indent: int = 2) -> str:
    return json.dumps(flower.to_dict(), indent=indent, ensure_ascii=False)


# =============================================================================
# IMPORT
# =============================================================================


def _require_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotParseError(f"expected an integer, got {value!r}", field)
    return value


def _optional_text(value: Any, field: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise SnapshotParseError(f"expected text or null, got {value!r}", field)


def _parse_coord(data: Any, field: str) -> HexCoord:
    if not isinstance(data, Mapping):
        raise SnapshotParseError("expected an object with q and r", field)
    if "q" not in data or "r" not in data:
        raise SnapshotParseError("missing q or r", field)
    return HexCoord(_require_int(data["q"], f"{field}.q"), _require_int(data["r"], f"{field}.r"))


def _parse_cell(data: Any, index: int) -> Cell:
    field = f"hexes[{index}]"
    coord = _parse_coord(data, field)
    if "s" in data and data["s"] is not None:
        s = _require_int(data["s"], f"{field}.s")
        if coord.q + coord.r + s != 0:
            raise SnapshotParseError(f"q + r + s must be 0, got s={s}", field)
    label = data.get("label")
    return Cell(
        q=coord.q,
        r=coord.r,
        content=_optional_text(data.get("content"), f"{field}.content"),
        label=_optional_text(label, f"{field}.label") or "",
        color=_optional_text(data.get("color"), f"{field}.color"),
    )


def _parse_history_entry(data: Any, index: int) -> HistoryEntry:
    field = f"history[{index}]"
    if not isinstance(data, Mapping):
        raise SnapshotParseError("expected an object", field)
    try:
        direction = Direction(data.get("direction"))
    except ValueError:
        raise SnapshotParseError(f"unknown direction {data.get('direction')!r}", field)
    entry_type_value = data.get("type") or HistoryEntryType.MOVE.value
    try:
        entry_type = HistoryEntryType(entry_type_value)
    except ValueError:
        raise SnapshotParseError(f"unknown entry type {entry_type_value!r}", field)
    timestamp = data.get("timestamp", 0)
    if isinstance(timestamp, float) and timestamp.is_integer():
        timestamp = int(timestamp)
    return HistoryEntry(
        from_position=_parse_coord(data.get("from"), f"{field}.from"),
        to_position=_parse_coord(data.get("to"), f"{field}.to"),
        direction=direction,
        entry_type=entry_type,
        timestamp=_require_int(timestamp, f"{field}.timestamp"),
    )


def _decode(serialized: SnapshotInput) -> Mapping[str, Any]:
    if isinstance(serialized, (str, bytes, bytearray)):
        try:
            data = json.loads(serialized)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SnapshotParseError(f"not valid JSON: {e}") from e
    else:
        data = serialized
    if not isinstance(data, Mapping):
        raise SnapshotParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_flower_snapshot(
    serialized: SnapshotInput,
    new_id: Optional[Callable[[], str]] = None,
    max_radius: Optional[int] = None,
) -> HexFlower:
    """
    Parse a snapshot into a HexFlower.

    Args:
        serialized: JSON text or an already-decoded mapping
        new_id: Factory for the flower id. If None, the stored id is kept
            (used when reloading from persistence).
        max_radius: Largest radius accepted (None = no limit)

    Returns:
        A detached HexFlower; the caller registers it

    Raises:
        SnapshotParseError: If the snapshot is malformed
    """
    data = _decode(serialized)

    if "radius" not in data:
        raise SnapshotParseError("missing radius", "radius")
    radius = _require_int(data["radius"], "radius")
    if radius < 1:
        raise SnapshotParseError(f"radius must be at least 1, got {radius}", "radius")
    if max_radius is not None and radius > max_radius:
        raise SnapshotParseError(f"radius must be at most {max_radius}, got {radius}", "radius")

    name = data.get("name") or DEFAULT_FLOWER_NAME
    if not isinstance(name, str):
        raise SnapshotParseError(f"expected text, got {name!r}", "name")

    metadata = data.get("metadata")
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, Mapping):
        raise SnapshotParseError("expected an object", "metadata")

    raw_hexes = data.get("hexes")
    if raw_hexes is None:
        try:
            hexes = build_lattice(radius)
        except InvalidParameterError as e:
            raise SnapshotParseError(str(e), "radius") from e
        logger.debug(f"Snapshot has no hexes; generated an empty radius {radius} lattice")
    else:
        if not isinstance(raw_hexes, list):
            raise SnapshotParseError("expected a list", "hexes")
        hexes = [_parse_cell(item, i) for i, item in enumerate(raw_hexes)]
        seen: set[tuple[int, int]] = set()
        for i, cell in enumerate(hexes):
            if cell.coord.distance_from_center() > radius:
                raise SnapshotParseError(
                    f"cell ({cell.q}, {cell.r}) lies outside radius {radius}", f"hexes[{i}]"
                )
            if (cell.q, cell.r) in seen:
                raise SnapshotParseError(f"duplicate cell ({cell.q}, {cell.r})", "hexes")
            seen.add((cell.q, cell.r))
        if not hexes:
            raise SnapshotParseError("lattice has no cells", "hexes")

    raw_position = data.get("currentPosition")
    position = CENTER if raw_position is None else _parse_coord(raw_position, "currentPosition")

    raw_history = data.get("history")
    if raw_history is None:
        raw_history = []
    if not isinstance(raw_history, list):
        raise SnapshotParseError("expected a list", "history")
    history = [_parse_history_entry(item, i) for i, item in enumerate(raw_history)]

    if new_id is not None:
        flower_id = new_id()
    else:
        flower_id = data.get("id")
        if not isinstance(flower_id, str) or not flower_id:
            raise SnapshotParseError("missing id", "id")

    flower = HexFlower(
        id=flower_id,
        name=name,
        radius=radius,
        hexes=hexes,
        metadata=dict(metadata),
        current_position=position,
        history=history,
    )
    if not flower.contains(position):
        raise SnapshotParseError(f"cursor {position} is not a cell of the lattice", "currentPosition")
    return flower
