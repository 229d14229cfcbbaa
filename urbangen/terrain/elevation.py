"""Elevation field sampled from value noise."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from urbangen.params import TerrainParams
from urbangen.terrain.noise import ValueNoise
from urbangen.types import GridCoord, WorldPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElevationField:
    """Raster of elevation samples in [0, 1), addressed as values[row, col].

    Sample (row, col) sits at world position (col * cell_size, row * cell_size).
    The array is flagged read-only; a new field is built whenever the seed,
    frequency or spacing changes.
    """

    values: np.ndarray
    cell_size: float

    @property
    def rows(self) -> int:
        return self.values.shape[0]

    @property
    def cols(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    def in_bounds(self, row: GridCoord, col: GridCoord) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def on_boundary(self, row: GridCoord, col: GridCoord) -> bool:
        return row in (0, self.rows - 1) or col in (0, self.cols - 1)

    def world_position(self, row: GridCoord, col: GridCoord) -> WorldPoint:
        return (col * self.cell_size, row * self.cell_size)


def grid_dimensions(width: float, height: float, cell_size: float) -> tuple[int, int]:
    """Return (rows, cols) of the sample lattice covering a width x height area."""
    return math.ceil(height / cell_size) + 1, math.ceil(width / cell_size) + 1


def build_elevation_field(params: TerrainParams) -> ElevationField:
    """Sample value noise at every lattice point of the area.

    Args:
        params: Terrain parameters. Validated before anything is allocated.

    Returns:
        The elevation field, deterministic for fixed params.

    Raises:
        ConfigurationError: If width, height or cell size are not positive.
    """
    params.validate()

    rows, cols = grid_dimensions(params.width, params.height, params.cell_size)
    noise = ValueNoise(params.seed, params.noise_frequency)

    xs = np.arange(cols, dtype=np.float64) * params.cell_size
    ys = np.arange(rows, dtype=np.float64) * params.cell_size
    values = noise.sample_grid(xs, ys)
    values.flags.writeable = False

    logger.debug(
        f"Elevation field {rows}x{cols} (seed={params.seed}, "
        f"frequency={params.noise_frequency}, min={values.min():.3f}, "
        f"max={values.max():.3f})"
    )
    return ElevationField(values=values, cell_size=params.cell_size)
