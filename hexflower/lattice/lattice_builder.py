"""
Lattice Builder for Hex Flowers.

Generates the hexagonal region of a given radius in axial coordinates:
every (q, r) with max(-N, -q-N) <= r <= min(N, -q+N) for q in [-N, N].
A radius N lattice holds 3N^2 + 3N + 1 cells.
"""

from typing import Iterator

from hexflower.data_models import Cell, HexCoord, InvalidParameterError


def _validate_radius(radius: int) -> None:
    if isinstance(radius, bool) or not isinstance(radius, int):
        raise InvalidParameterError(f"Radius must be an integer, got {radius!r}")
    if radius < 1:
        raise InvalidParameterError(f"Radius must be at least 1, got {radius}")


def iter_lattice_coords(radius: int) -> Iterator[HexCoord]:
    """Yield lattice coordinates, q ascending then r ascending."""
    _validate_radius(radius)
    for q in range(-radius, radius + 1):
        r1 = max(-radius, -q - radius)
        r2 = min(radius, -q + radius)
        for r in range(r1, r2 + 1):
            yield HexCoord(q, r)


def build_lattice(radius: int) -> list[Cell]:
    """
    Build the cells of a Hex Flower.

    Args:
        radius: Lattice radius (>= 1)

    Returns:
        Cells with empty payloads, in deterministic order

    Raises:
        InvalidParameterError: If radius is not a positive integer
    """
    return [Cell(q=coord.q, r=coord.r) for coord in iter_lattice_coords(radius)]


def expected_cell_count(radius: int) -> int:
    """Number of cells in a lattice of the given radius."""
    _validate_radius(radius)
    return 3 * radius * radius + 3 * radius + 1


def lattice_contains(radius: int, q: int, r: int) -> bool:
    """Check whether (q, r) lies inside a lattice of the given radius."""
    return HexCoord(q, r).distance_from_center() <= radius
