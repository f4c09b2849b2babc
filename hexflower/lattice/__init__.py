"""Lattice construction for Hex Flowers."""

from hexflower.lattice.lattice_builder import (
    build_lattice,
    expected_cell_count,
    lattice_contains,
    iter_lattice_coords,
)

__all__ = [
    "build_lattice",
    "expected_cell_count",
    "lattice_contains",
    "iter_lattice_coords",
]
