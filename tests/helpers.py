"""Shared builders for terrain and collapse tests."""

from __future__ import annotations

import numpy as np

from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.tiles import TileCatalog
from urbangen.terrain.elevation import ElevationField


def make_field(values: list[list[float]], cell_size: float = 10) -> ElevationField:
    """Build an elevation field from literal rows."""
    array = np.array(values, dtype=np.float64)
    array.flags.writeable = False
    return ElevationField(values=array, cell_size=cell_size)


def make_mask(rows: list[str]) -> np.ndarray:
    """Build a boolean mask from strings, '#' marking water."""
    return np.array([[ch == "#" for ch in row] for row in rows], dtype=bool)


def assert_adjacency_respected(grid: CollapseGrid, catalog: TileCatalog) -> None:
    """Every pair of adjacent collapsed cells must be compatible both ways."""
    rules = catalog.rules
    for index, cell in enumerate(grid.cells):
        if not cell.collapsed:
            continue
        for neighbor in grid.neighbors(index):
            other = grid.cells[neighbor]
            if not other.collapsed:
                continue
            a = catalog.category(cell.resolved_tile)
            b = catalog.category(other.resolved_tile)
            assert rules.compatible(a, b), (
                f"Cells {grid.position(index)} ({a}) and "
                f"{grid.position(neighbor)} ({b}) are incompatible"
            )
