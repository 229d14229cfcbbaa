"""Tile-collapse land-use generation.

- TileCatalog / load_tile_catalog: tiles, adjacency scores, building types
- CollapseGrid: cells with their remaining possibilities
- CollapseSolver: entropy-guided collapse with constraint propagation

The full run (grid sizing, solving, emission) lives in
urbangen.collapse.generator.
"""

from .grid import CollapseCell, CollapseGrid
from .solver import CollapseSolver, SolverState, SolveStats
from .tiles import (
    AdjacencyRules,
    BuildingType,
    Tile,
    TileCatalog,
    TileCategory,
    create_fallback_catalog,
    load_tile_catalog,
)

__all__ = [
    "AdjacencyRules",
    "BuildingType",
    "CollapseCell",
    "CollapseGrid",
    "CollapseSolver",
    "SolveStats",
    "SolverState",
    "Tile",
    "TileCatalog",
    "TileCategory",
    "create_fallback_catalog",
    "load_tile_catalog",
]
