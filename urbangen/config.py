"""
Configuration constants.

Centralizes the default generation parameters and the tunable constants of
the terrain and tile-collapse algorithms. Runs override the defaults through
urbangen.params; the algorithm constants are read directly by the modules
that use them.
"""

from pathlib import Path

# =============================================================================
# GENERAL
# =============================================================================

PACKAGE_ROOT_PATH = Path(__file__).resolve().parent
DATA_PATH = PACKAGE_ROOT_PATH / "data"

DEFAULT_SEED = 12345

# Canvas dimensions in world pixels
DEFAULT_CANVAS_WIDTH = 800
DEFAULT_CANVAS_HEIGHT = 600

# =============================================================================
# TERRAIN
# =============================================================================

# Spacing between elevation samples, in world pixels
DEFAULT_CELL_SIZE = 10

# Fraction of the elevation range treated as water (0-1)
DEFAULT_WATER_COVERAGE = 0.3
DEFAULT_NOISE_FREQUENCY = 0.05

DEFAULT_WATER_MODE = "lake"
DEFAULT_RIVER_WIDTH = 2
DEFAULT_BAY_DIRECTION = "top"

# Bay mode raises the water threshold near the chosen edge:
# threshold = coverage * (1 + BAY_INFLATION * (1 - distance_from_edge))
# 1.0 doubles the threshold right at the edge.
BAY_INFLATION = 1.0

# =============================================================================
# TILE COLLAPSE
# =============================================================================

DEFAULT_TILE_SIZE = 10
DEFAULT_ENTROPY_THRESHOLD = 3
DEFAULT_SCALE = 1.0

# Adjacency scores must be strictly greater than this to be compatible
COMPATIBILITY_THRESHOLD = 0.3

# Iteration budget of the solver is BUDGET_FACTOR * width * height
SOLVER_BUDGET_FACTOR = 2

# Weight used for a possibility whose tile is missing from the catalog
MISSING_TILE_WEIGHT = 0.1

# Tile catalog resource loaded by default (falls back to the built-in
# catalog if it can't be read)
DEFAULT_TILESET_PATH = DATA_PATH / "wfc_tileset.json"

# Floors for a building category with no configured range
DEFAULT_FLOORS = 1
