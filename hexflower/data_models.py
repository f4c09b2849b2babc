"""
Shared data structures for the Hex Flower Engine.

A Hex Flower is a bounded hexagonal lattice with a movement cursor. These
structures are shared by the lattice builder, the navigation engine, the
snapshot exporter and the integration bridge; no component owns them
exclusively.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import random


# =============================================================================
# ERRORS
# =============================================================================


class InvalidParameterError(ValueError):
    """Raised when a radius or roll total is outside its valid range."""

    pass


# =============================================================================
# ENUMS
# =============================================================================


class Direction(str, Enum):
    """The six navigation directions of a Hex Flower (pointy-top)."""
    A = "a"  # North
    B = "b"  # Northeast
    C = "c"  # Southeast
    D = "d"  # South
    E = "e"  # Southwest
    F = "f"  # Northwest

    @property
    def compass(self) -> str:
        """Compass label for display (e.g. 'NE')."""
        return _COMPASS_LABELS[self]


_COMPASS_LABELS = {
    Direction.A: "N",
    Direction.B: "NE",
    Direction.C: "SE",
    Direction.D: "S",
    Direction.E: "SW",
    Direction.F: "NW",
}


class HistoryEntryType(str, Enum):
    """Kind of cursor movement recorded in history."""
    MOVE = "move"
    WRAP = "wrap"


# =============================================================================
# COORDINATES AND CELLS
# =============================================================================


@dataclass(frozen=True)
class HexCoord:
    """
    Axial hex coordinate.

    The third cube coordinate ``s`` is derived so that ``q + r + s == 0``
    always holds.
    """
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __add__(self, other: "HexCoord") -> "HexCoord":
        return HexCoord(self.q + other.q, self.r + other.r)

    def antipode(self) -> "HexCoord":
        """Point reflection through the lattice centre."""
        return HexCoord(-self.q, -self.r)

    def distance_from_center(self) -> int:
        """Cube distance from (0, 0)."""
        return max(abs(self.q), abs(self.r), abs(self.s))

    def to_dict(self) -> dict[str, int]:
        return {"q": self.q, "r": self.r}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HexCoord":
        return cls(q=data["q"], r=data["r"])

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"


CENTER = HexCoord(0, 0)


@dataclass
class Cell:
    """
    A single hex of a Hex Flower.

    Identity is the (q, r) pair. The payload (content, label, color) is
    edited by the referee and is the only mutable part.
    """
    q: int
    r: int
    content: Optional[str] = None
    label: str = ""
    color: Optional[str] = None

    @property
    def s(self) -> int:
        return -self.q - self.r

    @property
    def coord(self) -> HexCoord:
        return HexCoord(self.q, self.r)

    def to_dict(self) -> dict[str, Any]:
        return {
            "q": self.q,
            "r": self.r,
            "s": self.s,
            "content": self.content,
            "label": self.label,
            "color": self.color,
        }

    def __str__(self) -> str:
        text = self.label or self.content or "-"
        return f"{self.coord} {text}"


@dataclass
class CellPayload:
    """Partial update for a cell. Empty fields leave the cell unchanged."""
    content: Optional[str] = None
    label: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "CellPayload":
        return cls(
            content=data.get("content"),
            label=data.get("label"),
            color=data.get("color"),
        )


# =============================================================================
# HISTORY AND FLOWERS
# =============================================================================


@dataclass
class HistoryEntry:
    """One cursor movement. Timestamp is epoch milliseconds."""
    from_position: HexCoord
    to_position: HexCoord
    direction: Direction
    entry_type: HistoryEntryType = HistoryEntryType.MOVE
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "from": self.from_position.to_dict(),
            "to": self.to_position.to_dict(),
            "direction": self.direction.value,
            "timestamp": self.timestamp,
        }
        # Plain moves carry no type field in exported snapshots
        if self.entry_type != HistoryEntryType.MOVE:
            data["type"] = self.entry_type.value
        return data


@dataclass
class HexFlower:
    """
    A Hex Flower instance: the lattice, its cursor and its movement history.

    ``hexes`` keeps build order for deterministic export; lookups go through
    the coordinate index.
    """
    id: str
    name: str
    radius: int
    hexes: list[Cell] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    current_position: HexCoord = CENTER
    history: list[HistoryEntry] = field(default_factory=list)
    _index: dict[tuple[int, int], Cell] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        self._index = {(cell.q, cell.r): cell for cell in self.hexes}

    def get_cell(self, q: int, r: int) -> Optional[Cell]:
        """Get the cell at (q, r), or None if it is outside the lattice."""
        return self._index.get((q, r))

    def cell_at(self, coord: HexCoord) -> Optional[Cell]:
        return self._index.get((coord.q, coord.r))

    def contains(self, coord: HexCoord) -> bool:
        return (coord.q, coord.r) in self._index

    @property
    def current_cell(self) -> Optional[Cell]:
        return self.cell_at(self.current_position)

    @property
    def cell_count(self) -> int:
        return len(self.hexes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the snapshot structure."""
        return {
            "id": self.id,
            "name": self.name,
            "radius": self.radius,
            "hexes": [cell.to_dict() for cell in self.hexes],
            "metadata": dict(self.metadata),
            "currentPosition": self.current_position.to_dict(),
            "history": [entry.to_dict() for entry in self.history],
        }


@dataclass
class NavigationResult:
    """Outcome of a navigate call."""
    position: HexCoord
    cell: Cell
    direction: Direction
    roll_total: int
    blocked: bool = False
    wrapped: bool = False

    @property
    def moved(self) -> bool:
        return not self.blocked

    def __str__(self) -> str:
        if self.blocked:
            outcome = "blocked at edge"
        elif self.wrapped:
            outcome = "wrapped"
        else:
            outcome = "moved"
        return (
            f"Roll {self.roll_total} -> {self.direction.value} "
            f"({self.direction.compass}): {outcome}, now at {self.cell}"
        )


# =============================================================================
# DICE AND RANDOMIZATION
# =============================================================================

# Most recent rolls kept per roller
ROLL_LOG_LIMIT = 1000


class DiceRoller:
    """
    Randomization interface for navigation rolls.

    Each roller owns its own random.Random so that seeding one engine does
    not disturb another.
    """

    def __init__(self, seed: Optional[int] = None, roll_log_limit: int = ROLL_LOG_LIMIT):
        self._seed = seed
        self._rng = random.Random(seed)
        self._roll_log: deque["DiceResult"] = deque(maxlen=roll_log_limit)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: int) -> None:
        """Set random seed for reproducibility."""
        self._seed = seed
        self._rng.seed(seed)

    def roll(self, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total
        """
        modifier = 0
        if '+' in dice:
            dice_part, mod_part = dice.split('+')
            modifier = int(mod_part)
        elif '-' in dice:
            dice_part, mod_part = dice.split('-')
            modifier = -int(mod_part)
        else:
            dice_part = dice

        num_dice, die_size = dice_part.lower().split('d')
        num_dice = int(num_dice) if num_dice else 1
        die_size = int(die_size)

        rolls = [self._rng.randint(1, die_size) for _ in range(num_dice)]
        total = sum(rolls) + modifier

        result = DiceResult(
            notation=dice,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason
        )

        self._roll_log.append(result)
        return result

    def roll_2d6(self, reason: str = "") -> "DiceResult":
        """Convenience method for 2d6 navigation rolls."""
        return self.roll("2d6", reason)

    def get_roll_log(self) -> list["DiceResult"]:
        """Get the most recent rolls of this roller, oldest first."""
        return list(self._roll_log)

    def clear_roll_log(self) -> None:
        self._roll_log.clear()


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"
