"""Coastline polygons from water components via marching squares.

Each component's mask is scanned in 2x2 sample squares. The corner pattern
of a square (16 cases) selects zero, one or two boundary segments between
fixed mid-edge points; the segments are then chained into closed loops.

Points are kept in doubled integer coordinates (two units per cell) while
linking, so shared endpoints compare exactly. They are converted to world
coordinates only when a polygon is built.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np

from urbangen.terrain.water import WaterBodyKind, WaterComponent
from urbangen.types import HalfCellPoint, WorldPoint

logger = logging.getLogger(__name__)

Segment: TypeAlias = tuple[HalfCellPoint, HalfCellPoint]

# Square edges
TOP, RIGHT, BOTTOM, LEFT = 0, 1, 2, 3

# Corner bits of the case index
TOP_LEFT_BIT = 8
TOP_RIGHT_BIT = 4
BOTTOM_RIGHT_BIT = 2
BOTTOM_LEFT_BIT = 1

# Edge pairs joined by a boundary segment, indexed by corner pattern. The two
# saddle cases (5 and 10) cut each water corner off on its own, matching the
# 4-connectivity used to build the components.
SQUARE_SEGMENTS: tuple[tuple[tuple[int, int], ...], ...] = (
    (),  # 0: all land
    ((LEFT, BOTTOM),),  # 1: bottom-left
    ((BOTTOM, RIGHT),),  # 2: bottom-right
    ((LEFT, RIGHT),),  # 3: bottom half
    ((RIGHT, TOP),),  # 4: top-right
    ((LEFT, BOTTOM), (RIGHT, TOP)),  # 5: saddle, bottom-left + top-right
    ((BOTTOM, TOP),),  # 6: right half
    ((LEFT, TOP),),  # 7: all but top-left
    ((TOP, LEFT),),  # 8: top-left
    ((TOP, BOTTOM),),  # 9: left half
    ((TOP, LEFT), (BOTTOM, RIGHT)),  # 10: saddle, top-left + bottom-right
    ((TOP, RIGHT),),  # 11: all but top-right
    ((RIGHT, LEFT),),  # 12: top half
    ((RIGHT, BOTTOM),),  # 13: all but bottom-right
    ((BOTTOM, LEFT),),  # 14: all but bottom-left
    (),  # 15: all water
)


@dataclass(frozen=True)
class CoastlinePolygon:
    """Closed boundary loop of a water component in world coordinates.

    The first and last points coincide.
    """

    points: tuple[WorldPoint, ...]
    component_id: int
    kind: WaterBodyKind

    @property
    def is_closed(self) -> bool:
        return len(self.points) > 1 and self.points[0] == self.points[-1]

    @property
    def vertex_count(self) -> int:
        """Number of distinct vertices."""
        return len(set(self.points))


def edge_midpoint(row: int, col: int, edge: int) -> HalfCellPoint:
    """Mid-edge point of the square whose top-left sample is (row, col).

    Returns:
        (x, y) in doubled coordinates.
    """
    match edge:
        case 0:
            return (2 * col + 1, 2 * row)
        case 1:
            return (2 * col + 2, 2 * row + 1)
        case 2:
            return (2 * col + 1, 2 * row + 2)
        case 3:
            return (2 * col, 2 * row + 1)
    raise ValueError(f"Invalid square edge: {edge}")


def square_cases(mask: np.ndarray) -> np.ndarray:
    """Corner pattern index of every 2x2 square of a boolean mask."""
    m = mask.astype(np.uint8)
    return (
        (m[:-1, :-1] << 3)
        | (m[:-1, 1:] << 2)
        | (m[1:, 1:] << 1)
        | m[1:, :-1]
    )


def marching_squares(mask: np.ndarray) -> list[Segment]:
    """Boundary segments of a boolean mask.

    The mask is padded with a land border first, so regions touching the
    edge of the mask still produce closed boundaries. Points are in doubled
    coordinates of the unpadded mask (sample (r, c) is at (2c, 2r)).
    """
    padded = np.pad(mask, 1, mode="constant", constant_values=False)
    cases = square_cases(padded)

    segments: list[Segment] = []
    for row, col in zip(*np.nonzero((cases > 0) & (cases < 15)), strict=True):
        row, col = int(row), int(col)
        for start_edge, end_edge in SQUARE_SEGMENTS[cases[row, col]]:
            # Shift back by the one-sample padding (two doubled units)
            sx, sy = edge_midpoint(row, col, start_edge)
            ex, ey = edge_midpoint(row, col, end_edge)
            segments.append(((sx - 2, sy - 2), (ex - 2, ey - 2)))
    return segments


def link_segments(segments: list[Segment]) -> list[list[HalfCellPoint]]:
    """Chain segments sharing endpoints into closed loops.

    Each loop starts at an unused segment and follows matching endpoints
    until it returns to its first point. Chains that can't be closed and
    loops with fewer than 3 distinct vertices are dropped.

    Returns:
        Loops whose first and last points are equal.
    """
    by_point: dict[HalfCellPoint, list[int]] = defaultdict(list)
    for index, (start, end) in enumerate(segments):
        by_point[start].append(index)
        by_point[end].append(index)

    used = [False] * len(segments)
    loops: list[list[HalfCellPoint]] = []

    for first in range(len(segments)):
        if used[first]:
            continue
        used[first] = True
        start, current = segments[first]
        loop = [start, current]
        closed = current == start

        while not closed:
            nxt = next((i for i in by_point[current] if not used[i]), None)
            if nxt is None:
                break
            used[nxt] = True
            a, b = segments[nxt]
            current = b if a == current else a
            loop.append(current)
            closed = current == start

        if not closed:
            logger.debug(f"Dropping open contour chain of {len(loop)} points")
            continue
        if len(set(loop)) < 3:
            logger.debug(f"Dropping degenerate contour loop: {loop}")
            continue
        loops.append(loop)

    return loops


def extract_coastlines(
    labels: np.ndarray,
    components: list[WaterComponent],
    cell_size: float,
) -> list[CoastlinePolygon]:
    """Build the coastline polygons of every water component.

    Each component is traced on its own within its bounding box, so
    neighbouring components never share a loop.

    Args:
        labels: Component label per elevation sample (see label_water_components).
        components: The labelled components.
        cell_size: Sample spacing in world pixels.

    Returns:
        One polygon per closed loop, grouped by component id.
    """
    polygons: list[CoastlinePolygon] = []
    for component in components:
        rows = [r for r, _ in component.cells]
        cols = [c for _, c in component.cells]
        r0, r1 = min(rows), max(rows) + 1
        c0, c1 = min(cols), max(cols) + 1
        mask = labels[r0:r1, c0:c1] == component.id

        for loop in link_segments(marching_squares(mask)):
            points = tuple(
                ((x + 2 * c0) * cell_size / 2, (y + 2 * r0) * cell_size / 2)
                for x, y in loop
            )
            polygons.append(
                CoastlinePolygon(
                    points=points, component_id=component.id, kind=component.kind
                )
            )

    logger.debug(
        f"Extracted {len(polygons)} coastline polygons from "
        f"{len(components)} water components"
    )
    return polygons
