from __future__ import annotations

from typing import TypeAlias

# =============================================================================
# SPATIAL TYPES
# =============================================================================

GridCoord: TypeAlias = int  # Always integer row/column index

# Grid positions are (row, col) into a raster such as the elevation field
GridPos: TypeAlias = tuple[GridCoord, GridCoord]  # Example: (3, 5) = row 3, column 5

# Flat integer index of a cell in a row-major grid (row * width + col)
CellIndex: TypeAlias = int

# World coordinates in canvas pixels
WorldCoord: TypeAlias = int | float
WorldPoint: TypeAlias = tuple[WorldCoord, WorldCoord]  # Example: (120.0, 45.0) = x, y

# Marching squares works in doubled integer coordinates so that mid-edge
# points stay exact: (2 * x, 2 * y) in cell units.
HalfCellPoint: TypeAlias = tuple[int, int]

# =============================================================================
# GENERATION TYPES
# =============================================================================

# Random seed for deterministic generation. Runs require an int seed; the RNG
# provider also accepts descriptive strings for derived streams.
RandomSeed: TypeAlias = int | str | None

# Identifier of a tile in the tile catalog
TileId: TypeAlias = int

# Inclusive integer range, e.g. building floors (1, 3)
IntRange: TypeAlias = tuple[int, int]
