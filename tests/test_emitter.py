"""Tests for turning solved grids and water into primitives."""

from __future__ import annotations

from random import Random

import numpy as np

from tests.helpers import make_mask
from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.tiles import TileCatalog, TileCategory
from urbangen.emitter import (
    Building,
    Park,
    Road,
    Structures,
    WaterCell,
    WaterPolygon,
    emit_structures,
    emit_water,
    emit_water_cells,
    emit_water_polygons,
    overlaps,
)
from urbangen.terrain.contours import CoastlinePolygon
from urbangen.terrain.water import WaterBodyKind


def solved_grid(catalog: TileCatalog, rows: list[list[int | None]]) -> CollapseGrid:
    grid = CollapseGrid(len(rows[0]), len(rows), catalog.tile_ids)
    for y, row in enumerate(rows):
        for x, tile_id in enumerate(row):
            if tile_id is not None:
                grid.collapse(grid.index(x, y), tile_id)
    return grid


class TestEmitStructures:
    def test_categories_map_to_primitives(self, fallback_catalog: TileCatalog) -> None:
        """Buildings, roads and parks come from their tiles; empty lots emit nothing."""
        grid = solved_grid(fallback_catalog, [[0, 4, 3], [5, 6, 1]])
        structures = emit_structures(grid, fallback_catalog, 10, Random(1))

        assert [(b.x, b.y, b.category) for b in structures.buildings] == [
            (0, 0, TileCategory.RESIDENTIAL),
            (20, 10, TileCategory.COMMERCIAL),
        ]
        assert structures.roads == [
            Road(x=10, y=0, width=10, height=10, orientation="horizontal"),
            Road(x=0, y=10, width=10, height=10, orientation="vertical"),
        ]
        assert structures.parks == [Park(x=20, y=0, width=10, height=10)]
        assert structures.water == []

    def test_floors_within_category_range(self, fallback_catalog: TileCatalog) -> None:
        """Building floors are drawn from the category's range."""
        grid = solved_grid(fallback_catalog, [[0, 1, 2] * 10 for _ in range(10)])
        structures = emit_structures(grid, fallback_catalog, 5, Random(9))
        assert len(structures.buildings) == 300
        for building in structures.buildings:
            low, high = fallback_catalog.floors(building.category)
            assert low <= building.floors <= high

    def test_uncollapsed_cells_skipped(self, fallback_catalog: TileCatalog) -> None:
        """Cells the solver never fixed produce nothing."""
        grid = solved_grid(fallback_catalog, [[None, 0], [None, None]])
        structures = emit_structures(grid, fallback_catalog, 10, Random(1))
        assert len(structures.buildings) == 1
        assert structures.counts() == {
            "buildings": 1,
            "roads": 0,
            "parks": 0,
            "water": 0,
        }

    def test_to_dict(self, fallback_catalog: TileCatalog) -> None:
        """Structures serialise to plain dicts."""
        grid = solved_grid(fallback_catalog, [[0]])
        data = emit_structures(grid, fallback_catalog, 10, Random(1)).to_dict()
        assert data["buildings"][0]["category"] == "residential"
        assert data["buildings"][0]["tile_id"] == 0
        assert set(data) == {"buildings", "roads", "parks", "water"}


class TestEmitWater:
    def test_cells_at_sample_positions(self) -> None:
        """Each water sample becomes a cell-sized square."""
        cells = emit_water_cells(make_mask(["#.", ".#"]), 10)
        assert cells == [
            WaterCell(x=0, y=0, width=10, height=10),
            WaterCell(x=10, y=10, width=10, height=10),
        ]

    def test_polygons_keep_closed_loops_only(self) -> None:
        """Open or degenerate coastlines are not emitted."""
        good = CoastlinePolygon(
            points=((0, 0), (10, 0), (10, 10), (0, 0)),
            component_id=0,
            kind=WaterBodyKind.OCEAN,
        )
        open_ = CoastlinePolygon(
            points=((0, 0), (10, 0), (10, 10)),
            component_id=1,
            kind=WaterBodyKind.LAKE,
        )
        polygons = emit_water_polygons([good, open_])
        assert polygons == [WaterPolygon(points=good.points, kind="ocean")]

    def test_falls_back_to_cells(self) -> None:
        """Without polygons the mask cells are emitted."""
        mask = make_mask(["#."])
        assert emit_water(mask, [], 10) == [WaterCell(x=0, y=0, width=10, height=10)]

    def test_prefers_polygons(self) -> None:
        """Polygons replace cells when available."""
        polygon = CoastlinePolygon(
            points=((0, 0), (10, 0), (10, 10), (0, 0)),
            component_id=0,
            kind=WaterBodyKind.LAKE,
        )
        water = emit_water(np.ones((2, 2), dtype=bool), [polygon], 10)
        assert [type(w) for w in water] == [WaterPolygon]


class TestOverlaps:
    def test_touching_edges_do_not_overlap(self) -> None:
        """Rectangles sharing only an edge don't intersect."""
        a = Park(x=0, y=0, width=10, height=10)
        b = Park(x=10, y=0, width=10, height=10)
        assert not overlaps(a, b)

    def test_overlap(self) -> None:
        """Partially covering rectangles intersect."""
        a = Building(0, 0, 10, 10, TileCategory.RESIDENTIAL, 2)
        b = WaterCell(5, 5, 10, 10)
        assert overlaps(a, b)
        assert overlaps(b, a)

    def test_structures_default_empty(self) -> None:
        """A new Structures holds nothing."""
        assert Structures().counts() == {
            "buildings": 0,
            "roads": 0,
            "parks": 0,
            "water": 0,
        }
