"""Water masks and connected water bodies.

The mask marks elevation samples below the water threshold. Its shape depends
on the water mode:
- lake: a uniform threshold, giving scattered organic lakes
- bay: the threshold is inflated near one map edge so water floods in from it
- river: the lake mask plus a channel carved along a downhill flow path

Connected water cells (4-connectivity) form water components. A component
touching the grid boundary is open water (ocean); any other is a lake.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

from urbangen import config
from urbangen.params import BayDirection, TerrainParams, WaterMode
from urbangen.terrain.elevation import ElevationField
from urbangen.terrain.flow import NEIGHBOR_OFFSETS, FlowDirectionField
from urbangen.types import GridPos

logger = logging.getLogger(__name__)

UNLABELED = -1

# 4-connectivity used for water bodies
ORTHOGONAL_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))


class WaterBodyKind(StrEnum):
    OCEAN = "ocean"
    LAKE = "lake"


@dataclass
class WaterComponent:
    """A maximal 4-connected set of water cells."""

    id: int
    kind: WaterBodyKind
    cells: list[GridPos] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.cells)


# =============================================================================
# Water Mask
# =============================================================================


def bay_thresholds(
    shape: tuple[int, int], coverage: float, direction: BayDirection
) -> np.ndarray:
    """Per-cell water threshold for bay mode.

    Distance from the bay edge is normalised to [0, 1]; cells on the edge get
    coverage * (1 + BAY_INFLATION) and cells on the far edge plain coverage.
    """
    rows, cols = shape
    row_idx, col_idx = np.indices(shape, dtype=np.float64)
    match direction:
        case BayDirection.TOP:
            distance = row_idx / (rows - 1)
        case BayDirection.BOTTOM:
            distance = (rows - 1 - row_idx) / (rows - 1)
        case BayDirection.LEFT:
            distance = col_idx / (cols - 1)
        case BayDirection.RIGHT:
            distance = (cols - 1 - col_idx) / (cols - 1)
    return coverage * (1.0 + config.BAY_INFLATION * (1.0 - distance))


def river_source(field: ElevationField) -> GridPos:
    """The highest elevation cell; the first in row-major order on ties."""
    flat = int(np.argmax(field.values))
    row, col = divmod(flat, field.cols)
    return row, col


def river_course(field: ElevationField, flow: FlowDirectionField) -> list[GridPos]:
    """Trace a river from the highest cell down to the map boundary.

    Follows flow links downhill. A river that ends in an inland sink keeps
    going by stepping to its lowest neighbour it hasn't visited yet, so the
    channel reaches the boundary instead of stopping in a pit. The course is
    bounded by rows * cols cells.
    """
    row, col = river_source(field)
    course = [(row, col)]
    visited = {row * field.cols + col}
    max_steps = field.rows * field.cols

    while len(course) < max_steps and not field.on_boundary(row, col):
        nxt = flow.downstream(row, col)
        if nxt is None or nxt[0] * field.cols + nxt[1] in visited:
            nxt = _lowest_unvisited_neighbor(field, row, col, visited)
            if nxt is None:
                break
        row, col = nxt
        visited.add(row * field.cols + col)
        course.append(nxt)

    return course


def _lowest_unvisited_neighbor(
    field: ElevationField, row: int, col: int, visited: set[int]
) -> GridPos | None:
    best: GridPos | None = None
    best_value = np.inf
    for d_row, d_col in NEIGHBOR_OFFSETS:
        n_row, n_col = row + d_row, col + d_col
        if not field.in_bounds(n_row, n_col):
            continue
        if n_row * field.cols + n_col in visited:
            continue
        value = field.values[n_row, n_col]
        if value < best_value:
            best, best_value = (n_row, n_col), value
    return best


def carve_channel(mask: np.ndarray, course: list[GridPos], width: int) -> None:
    """Mark every cell within width / 2 of the course as water, in place."""
    radius = width / 2
    reach = int(radius)
    rows, cols = mask.shape
    for row, col in course:
        for d_row in range(-reach, reach + 1):
            for d_col in range(-reach, reach + 1):
                if d_row * d_row + d_col * d_col > radius * radius:
                    continue
                r, c = row + d_row, col + d_col
                if 0 <= r < rows and 0 <= c < cols:
                    mask[r, c] = True


def build_water_mask(
    field: ElevationField,
    params: TerrainParams,
    flow: FlowDirectionField | None = None,
) -> tuple[np.ndarray, list[GridPos]]:
    """Threshold the elevation field into a boolean water mask.

    A coverage of 0 gives an all-land mask in every mode.

    Args:
        field: The elevation field.
        params: Terrain parameters (coverage, mode, river width, bay edge).
        flow: Flow directions, needed for river mode.

    Returns:
        (mask, river course). The course is empty unless a river was carved.
    """
    coverage = params.water_coverage
    if params.water_mode is WaterMode.BAY:
        threshold = bay_thresholds(field.shape, coverage, params.bay_edge)
    else:
        threshold = coverage
    mask = field.values < threshold

    course: list[GridPos] = []
    if params.water_mode is WaterMode.RIVER and coverage > 0 and params.river_width > 0:
        if flow is None:
            raise ValueError("River mode needs a flow direction field")
        course = river_course(field, flow)
        carve_channel(mask, course, params.river_width)
        logger.debug(f"Carved river of {len(course)} cells from {course[0]}")

    return mask, course


# =============================================================================
# Water Components
# =============================================================================


def label_water_components(
    mask: np.ndarray,
) -> tuple[np.ndarray, list[WaterComponent]]:
    """Label 4-connected water components with a breadth-first flood fill.

    Components are numbered in row-major order of their first cell.

    Args:
        mask: Boolean water mask indexed [row, col].

    Returns:
        (labels, components). labels holds the component id of each water
        cell and UNLABELED for land.
    """
    rows, cols = mask.shape
    labels = np.full((rows, cols), UNLABELED, dtype=np.int32)
    components: list[WaterComponent] = []

    for start_row, start_col in zip(*np.nonzero(mask), strict=True):
        start = (int(start_row), int(start_col))
        if labels[start] != UNLABELED:
            continue

        component_id = len(components)
        labels[start] = component_id
        cells: list[GridPos] = []
        touches_boundary = False
        queue = deque([start])

        while queue:
            row, col = queue.popleft()
            cells.append((row, col))
            if row in (0, rows - 1) or col in (0, cols - 1):
                touches_boundary = True

            for d_row, d_col in ORTHOGONAL_OFFSETS:
                n_row, n_col = row + d_row, col + d_col
                if not (0 <= n_row < rows and 0 <= n_col < cols):
                    continue
                if mask[n_row, n_col] and labels[n_row, n_col] == UNLABELED:
                    labels[n_row, n_col] = component_id
                    queue.append((n_row, n_col))

        kind = WaterBodyKind.OCEAN if touches_boundary else WaterBodyKind.LAKE
        components.append(WaterComponent(id=component_id, kind=kind, cells=cells))

    return labels, components
