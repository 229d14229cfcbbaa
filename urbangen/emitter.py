"""Typed geometric primitives for the rendering layer.

Solved collapse grids become buildings, roads and parks; water masks and
coastlines become water polygons, or axis-aligned water cells when no
polygons were extracted. All positions are world pixels.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, TypeAlias

import numpy as np

from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.tiles import BUILDING_CATEGORIES, TileCatalog, TileCategory
from urbangen.terrain.contours import CoastlinePolygon
from urbangen.types import TileId, WorldPoint
from urbangen.util.rng import RNG


@dataclass(frozen=True)
class Building:
    x: float
    y: float
    width: float
    height: float
    category: TileCategory
    floors: int
    tile_id: TileId | None = None


@dataclass(frozen=True)
class Road:
    x: float
    y: float
    width: float
    height: float
    orientation: str


@dataclass(frozen=True)
class Park:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class WaterPolygon:
    """Closed point loop; the first and last points coincide."""

    points: tuple[WorldPoint, ...]
    kind: str


@dataclass(frozen=True)
class WaterCell:
    x: float
    y: float
    width: float
    height: float


Rectangle: TypeAlias = Building | Road | Park | WaterCell


def overlaps(a: Rectangle, b: Rectangle) -> bool:
    """Axis-aligned rectangle intersection with positive area."""
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


@dataclass
class Structures:
    """Primitives from one generation run, ready to be blended and drawn."""

    buildings: list[Building] = field(default_factory=list)
    roads: list[Road] = field(default_factory=list)
    parks: list[Park] = field(default_factory=list)
    water: list[WaterPolygon | WaterCell] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "buildings": len(self.buildings),
            "roads": len(self.roads),
            "parks": len(self.parks),
            "water": len(self.water),
        }

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "buildings": [asdict(b) for b in self.buildings],
            "roads": [asdict(r) for r in self.roads],
            "parks": [asdict(p) for p in self.parks],
            "water": [asdict(w) for w in self.water],
        }


def emit_structures(
    grid: CollapseGrid,
    catalog: TileCatalog,
    tile_size: float,
    rng: RNG,
) -> Structures:
    """Turn every collapsed cell into a primitive.

    Cells are scanned row by row so floors are drawn from rng in a fixed
    order. Uncollapsed cells and empty tiles produce nothing.

    Args:
        grid: A solved (possibly partially) collapse grid.
        catalog: Catalog the grid was solved with.
        tile_size: Tile edge length in world pixels.
        rng: Random stream for building floors.
    """
    structures = Structures()
    for y in range(grid.height):
        for x in range(grid.width):
            cell = grid.cell(x, y)
            if not cell.collapsed or cell.resolved_tile is None:
                continue
            tile = catalog.tile(cell.resolved_tile)
            if tile is None:
                continue

            world_x = x * tile_size
            world_y = y * tile_size
            if tile.category in BUILDING_CATEGORIES:
                low, high = catalog.floors(tile.category)
                structures.buildings.append(
                    Building(
                        x=world_x,
                        y=world_y,
                        width=tile_size,
                        height=tile_size,
                        category=tile.category,
                        floors=rng.randint(low, high),
                        tile_id=tile.id,
                    )
                )
            elif tile.category is TileCategory.ROAD:
                structures.roads.append(
                    Road(
                        x=world_x,
                        y=world_y,
                        width=tile_size,
                        height=tile_size,
                        orientation=tile.orientation,
                    )
                )
            elif tile.category is TileCategory.PARK:
                structures.parks.append(
                    Park(x=world_x, y=world_y, width=tile_size, height=tile_size)
                )
    return structures


def emit_water_cells(mask: np.ndarray, cell_size: float) -> list[WaterCell]:
    """One square per water sample, anchored at the sample's world position."""
    rows, cols = np.nonzero(mask)
    return [
        WaterCell(
            x=int(c) * cell_size,
            y=int(r) * cell_size,
            width=cell_size,
            height=cell_size,
        )
        for r, c in zip(rows, cols, strict=True)
    ]


def emit_water_polygons(coastlines: list[CoastlinePolygon]) -> list[WaterPolygon]:
    """Closed coastline loops with at least 3 distinct vertices."""
    return [
        WaterPolygon(points=polygon.points, kind=str(polygon.kind))
        for polygon in coastlines
        if polygon.is_closed and polygon.vertex_count >= 3
    ]


def emit_water(
    mask: np.ndarray, coastlines: list[CoastlinePolygon], cell_size: float
) -> list[WaterPolygon] | list[WaterCell]:
    """Coastline polygons if there are any, otherwise water cells."""
    polygons = emit_water_polygons(coastlines)
    if polygons:
        return polygons
    return emit_water_cells(mask, cell_size)
