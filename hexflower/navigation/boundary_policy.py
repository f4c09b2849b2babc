"""
Boundary handling for moves that would leave the lattice.

Two policies, selected by engine configuration:
- BOUNDED: the cursor stays put and the result is flagged as blocked.
- WRAPPING: the cursor jumps to the antipode of its current position
  (reflection through the centre, not of the failed destination). If the
  antipode is missing, which only happens for imported non-symmetric
  lattices, BOUNDED behaviour applies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from hexflower.data_models import Cell, Direction, HexCoord, HexFlower

logger = logging.getLogger(__name__)


class BoundaryPolicy(str, Enum):
    """Policy applied when a move would exit the lattice."""
    BOUNDED = "bounded"
    WRAPPING = "wrapping"


@dataclass
class BoundaryOutcome:
    """Where the cursor ends up after an out-of-bounds move."""
    position: HexCoord
    cell: Cell
    blocked: bool
    wrapped: bool


def resolve_boundary(
    flower: HexFlower,
    direction: Direction,
    policy: BoundaryPolicy,
) -> BoundaryOutcome:
    """
    Decide the outcome of a move that left the lattice.

    Pure: does not touch the cursor or history. The engine applies the
    outcome.
    """
    current = flower.current_position
    current_cell = flower.cell_at(current)
    if current_cell is None:
        raise ValueError(f"Cursor {current} of '{flower.name}' is outside its lattice")

    if policy == BoundaryPolicy.WRAPPING:
        antipode = current.antipode()
        antipode_cell: Optional[Cell] = flower.cell_at(antipode)
        if antipode_cell is not None:
            return BoundaryOutcome(
                position=antipode,
                cell=antipode_cell,
                blocked=False,
                wrapped=True,
            )
        logger.debug(
            f"Antipode {antipode} missing from '{flower.name}', falling back to bounded"
        )

    return BoundaryOutcome(
        position=current,
        cell=current_cell,
        blocked=True,
        wrapped=False,
    )
