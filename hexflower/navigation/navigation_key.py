"""
Hex Flower navigation key.

Maps 2d6 roll totals to one of six directions, and each direction to a unit
axial displacement (pointy-top orientation). The key is fixed; only its
read-only views are exported.

    Totals  Direction  dq  dr
    12      a (N)       0  -1
    2, 3    b (NE)      1  -1
    4, 5    c (SE)      1   0
    6, 7    d (S)       0   1
    8, 9    e (SW)     -1   1
    10, 11  f (NW)     -1   0
"""

from dataclasses import dataclass
from fractions import Fraction
from types import MappingProxyType
from typing import Mapping

from hexflower.data_models import Direction, HexCoord, InvalidParameterError


MIN_ROLL_TOTAL = 2
MAX_ROLL_TOTAL = 12


NAVIGATION_KEY: Mapping[int, Direction] = MappingProxyType({
    2: Direction.B,
    3: Direction.B,
    4: Direction.C,
    5: Direction.C,
    6: Direction.D,
    7: Direction.D,
    8: Direction.E,
    9: Direction.E,
    10: Direction.F,
    11: Direction.F,
    12: Direction.A,
})


DIRECTION_VECTORS: Mapping[Direction, HexCoord] = MappingProxyType({
    Direction.A: HexCoord(0, -1),
    Direction.B: HexCoord(1, -1),
    Direction.C: HexCoord(1, 0),
    Direction.D: HexCoord(0, 1),
    Direction.E: HexCoord(-1, 1),
    Direction.F: HexCoord(-1, 0),
})


@dataclass(frozen=True)
class DirectionOdds:
    """Roll totals that select a direction and the resulting probability."""
    direction: Direction
    rolls: tuple[int, ...]
    probability: Fraction

    @property
    def percent(self) -> float:
        return float(self.probability) * 100


def _ways_to_roll_2d6(total: int) -> int:
    return 6 - abs(7 - total)


def resolve_direction(roll_total: int) -> Direction:
    """
    Look up the direction for a 2d6 total.

    Raises:
        InvalidParameterError: If roll_total is not an integer in [2, 12]
    """
    if isinstance(roll_total, bool) or not isinstance(roll_total, int):
        raise InvalidParameterError(f"Roll total must be an integer, got {roll_total!r}")
    if not MIN_ROLL_TOTAL <= roll_total <= MAX_ROLL_TOTAL:
        raise InvalidParameterError(
            f"Roll total must be between {MIN_ROLL_TOTAL} and {MAX_ROLL_TOTAL}, got {roll_total}"
        )
    return NAVIGATION_KEY[roll_total]


def displacement(direction: Direction) -> HexCoord:
    return DIRECTION_VECTORS[Direction(direction)]


def rolls_for_direction(direction: Direction) -> tuple[int, ...]:
    """Roll totals that select the given direction, ascending."""
    return tuple(total for total, d in NAVIGATION_KEY.items() if d == direction)


def navigation_probabilities() -> dict[Direction, DirectionOdds]:
    """Probability of each direction under a fair 2d6 roll."""
    odds = {}
    for direction in Direction:
        rolls = rolls_for_direction(direction)
        ways = sum(_ways_to_roll_2d6(total) for total in rolls)
        odds[direction] = DirectionOdds(
            direction=direction,
            rolls=rolls,
            probability=Fraction(ways, 36),
        )
    return odds
