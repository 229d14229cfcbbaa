"""Downhill flow routing over an elevation field.

Every cell points at its steepest-descent neighbour: the one of its up to 8
neighbours with the strictly lowest elevation below its own. Ties go to the
first neighbour in clockwise order starting from north. Cells with no lower
neighbour are sinks.

Because each step strictly lowers elevation, following the links can't cycle;
tracing still stops after rows * cols steps.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from urbangen.terrain.elevation import ElevationField
from urbangen.types import GridPos, WorldPoint

# (d_row, d_col), clockwise from north. The index into this tuple is the
# stored flow direction.
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0),  # N
    (-1, 1),  # NE
    (0, 1),  # E
    (1, 1),  # SE
    (1, 0),  # S
    (1, -1),  # SW
    (0, -1),  # W
    (-1, -1),  # NW
)

NO_FLOW = -1


@dataclass(frozen=True)
class FlowDirectionField:
    """Per-cell index into NEIGHBOR_OFFSETS, or NO_FLOW for sinks.

    Derived from an ElevationField and never modified on its own; compute a
    new one whenever the elevation changes.
    """

    directions: np.ndarray
    field: ElevationField

    def downstream(self, row: int, col: int) -> GridPos | None:
        """Return the cell (row, col) drains into, or None for a sink."""
        direction = int(self.directions[row, col])
        if direction == NO_FLOW:
            return None
        d_row, d_col = NEIGHBOR_OFFSETS[direction]
        return row + d_row, col + d_col

    def is_sink(self, row: int, col: int) -> bool:
        return int(self.directions[row, col]) == NO_FLOW

    def trace_path_cells(self, row: int, col: int) -> list[GridPos]:
        """Follow flow links from (row, col) until a sink.

        Returns:
            The visited cells, starting with (row, col) and ending at a sink.

        Raises:
            IndexError: If the start cell is outside the field.
        """
        if not self.field.in_bounds(row, col):
            raise IndexError(f"Cell ({row}, {col}) is outside the elevation field")

        path = [(row, col)]
        max_steps = self.field.rows * self.field.cols
        current: GridPos | None = (row, col)
        for _ in range(max_steps):
            current = self.downstream(*current)
            if current is None:
                break
            path.append(current)
        return path

    def trace_path(self, row: int, col: int) -> list[WorldPoint]:
        """Like trace_path_cells, converted to world pixel coordinates."""
        return [
            self.field.world_position(r, c) for r, c in self.trace_path_cells(row, col)
        ]

    def sinks(self) -> list[GridPos]:
        """All local minima, in row-major order."""
        rows, cols = np.nonzero(self.directions == NO_FLOW)
        return [(int(r), int(c)) for r, c in zip(rows, cols, strict=True)]

    def accumulation(self) -> np.ndarray:
        """Count the cells draining through each cell, itself included.

        Cells are visited from highest to lowest so each cell's total is
        complete before it is passed downstream.
        """
        values = self.field.values
        counts = np.ones(values.shape, dtype=np.int32)
        order = np.argsort(-values, axis=None, kind="stable")
        for flat in order:
            row, col = divmod(int(flat), values.shape[1])
            target = self.downstream(row, col)
            if target is not None:
                counts[target] += counts[row, col]
        return counts


def compute_flow_directions(field: ElevationField) -> FlowDirectionField:
    """Compute the steepest-descent direction of every cell.

    Neighbours are compared in NEIGHBOR_OFFSETS order and replace the current
    best only when strictly lower, which resolves ties to the first found.
    """
    values = field.values
    rows, cols = values.shape
    padded = np.pad(values, 1, mode="constant", constant_values=np.inf)

    best = values.copy()
    directions = np.full((rows, cols), NO_FLOW, dtype=np.int8)
    for index, (d_row, d_col) in enumerate(NEIGHBOR_OFFSETS):
        neighbor = padded[1 + d_row : 1 + d_row + rows, 1 + d_col : 1 + d_col + cols]
        lower = neighbor < best
        best = np.where(lower, neighbor, best)
        directions[lower] = index

    directions.flags.writeable = False
    return FlowDirectionField(directions=directions, field=field)
