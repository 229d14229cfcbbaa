"""Tile catalog and adjacency compatibility for tile collapse.

A catalog lists the land-use tiles the solver may place, a score for every
pair of tile categories, and the floor range of each building category.
Catalogs are plain configuration: loaded once and never changed during a run.

The default catalog is read from a JSON resource. If that can't be loaded the
built-in catalog from create_fallback_catalog() is used instead, so a missing
or broken resource never fails a run.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from urbangen import config
from urbangen.types import IntRange, TileId

logger = logging.getLogger(__name__)


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    """Return value if it is a JSON object, else raise TypeError."""
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be an object, got {type(value).__name__}")
    return value


class TileCategory(StrEnum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    PARK = "park"
    ROAD = "road"
    EMPTY = "empty"


BUILDING_CATEGORIES = frozenset(
    {TileCategory.RESIDENTIAL, TileCategory.COMMERCIAL, TileCategory.INDUSTRIAL}
)


@dataclass(frozen=True)
class Tile:
    """A single land-use tile.

    Attributes:
        id: Unique identifier within the catalog.
        name: Descriptive name; road tiles end in "_h" or "_v".
        category: Land-use category, used for adjacency and emission.
        weight: Relative probability weight when collapsing (higher = more common).
    """

    id: TileId
    name: str
    category: TileCategory
    weight: float = 1.0

    @property
    def orientation(self) -> str:
        """Road orientation encoded in the name ("horizontal" or "vertical")."""
        return "horizontal" if "_h" in self.name else "vertical"


@dataclass(frozen=True)
class BuildingType:
    """Per-category building properties."""

    floors: IntRange = (config.DEFAULT_FLOORS, config.DEFAULT_FLOORS)
    density: str = "none"


@dataclass(frozen=True)
class AdjacencyRules:
    """Compatibility scores between tile categories.

    Scores are looked up as (candidate, neighbor): the category being
    considered for a cell and the category next to it. Pairs missing from the
    mapping score 0 and are never compatible.
    """

    scores: Mapping[tuple[TileCategory, TileCategory], float]
    threshold: float = config.COMPATIBILITY_THRESHOLD

    def score(self, candidate: TileCategory, neighbor: TileCategory) -> float:
        return self.scores.get((candidate, neighbor), 0.0)

    def compatible(self, candidate: TileCategory, neighbor: TileCategory) -> bool:
        """True if the pair's score is strictly above the threshold."""
        return self.score(candidate, neighbor) > self.threshold

    @classmethod
    def from_matrix(
        cls,
        matrix: Mapping[str, Mapping[str, float]],
        threshold: float = config.COMPATIBILITY_THRESHOLD,
    ) -> AdjacencyRules:
        """Build rules from a nested {candidate: {neighbor: score}} mapping."""
        scores: dict[tuple[TileCategory, TileCategory], float] = {}
        for candidate, row in _require_mapping(matrix, "adjacency matrix").items():
            row = _require_mapping(row, f"matrix row {candidate!r}")
            for neighbor, value in row.items():
                scores[(TileCategory(candidate), TileCategory(neighbor))] = float(value)
        return cls(scores=scores, threshold=threshold)

    def with_threshold(self, threshold: float) -> AdjacencyRules:
        return AdjacencyRules(scores=self.scores, threshold=threshold)


@dataclass(frozen=True)
class TileCatalog:
    """Tiles, adjacency rules and building types for one solver run."""

    tiles: tuple[Tile, ...]
    rules: AdjacencyRules
    building_types: Mapping[TileCategory, BuildingType] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.tiles:
            raise ValueError("Tile catalog has no tiles")
        ids = [tile.id for tile in self.tiles]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate tile ids in catalog: {ids}")
        for tile in self.tiles:
            if not math.isfinite(tile.weight) or tile.weight < 0:
                raise ValueError(
                    f"Tile {tile.name!r} weight must be finite and non-negative, "
                    f"got {tile.weight!r}"
                )
        if not math.isfinite(sum(tile.weight for tile in self.tiles)):
            raise ValueError("Tile weights overflow when summed")
        object.__setattr__(self, "_by_id", {tile.id: tile for tile in self.tiles})

    @property
    def tile_ids(self) -> list[TileId]:
        return [tile.id for tile in self.tiles]

    def tile(self, tile_id: TileId) -> Tile | None:
        return self._by_id.get(tile_id)  # type: ignore[attr-defined]

    def weight(self, tile_id: TileId) -> float:
        tile = self.tile(tile_id)
        return tile.weight if tile is not None else config.MISSING_TILE_WEIGHT

    def category(self, tile_id: TileId) -> TileCategory | None:
        tile = self.tile(tile_id)
        return tile.category if tile is not None else None

    def floors(self, category: TileCategory) -> IntRange:
        building_type = self.building_types.get(category)
        if building_type is None:
            return (config.DEFAULT_FLOORS, config.DEFAULT_FLOORS)
        return building_type.floors

    def with_threshold(self, threshold: float) -> TileCatalog:
        """Copy of this catalog using a different compatibility threshold."""
        return TileCatalog(
            tiles=self.tiles,
            rules=self.rules.with_threshold(threshold),
            building_types=self.building_types,
        )


def single_category_catalog(
    category: TileCategory = TileCategory.RESIDENTIAL,
    weights: Iterable[float] = (1.0,),
) -> TileCatalog:
    """Catalog of one or more tiles sharing a fully self-compatible category."""
    tiles = tuple(
        Tile(id=i, name=f"{category.value}_{i}", category=category, weight=w)
        for i, w in enumerate(weights)
    )
    return TileCatalog(
        tiles=tiles, rules=AdjacencyRules(scores={(category, category): 1.0})
    )


# =============================================================================
# Loading
# =============================================================================


def catalog_from_dict(data: Mapping[str, Any]) -> TileCatalog:
    """Parse the JSON tileset format.

    Expected shape:
        {
          "buildingTypes": {"residential": {"height": [1, 3], "density": "medium"}},
          "tiles": [{"id": 0, "name": "residential", "type": "residential",
                     "weight": 0.3}],
          "adjacencyRules": {"threshold": 0.3,
                             "matrix": {"residential": {"park": 1.0}}}
        }

    "category" is accepted in place of "type" for tiles; "threshold" and
    "buildingTypes" are optional.

    Raises:
        KeyError, TypeError, ValueError: If the data is malformed.
    """
    data = _require_mapping(data, "tileset")
    tiles = tuple(
        Tile(
            id=int(entry["id"]),
            name=str(entry.get("name", entry["id"])),
            category=TileCategory(entry.get("category", entry.get("type"))),
            weight=float(entry.get("weight", 1.0)),
        )
        for entry in (_require_mapping(e, "tile entry") for e in data["tiles"])
    )

    adjacency = _require_mapping(data["adjacencyRules"], "adjacencyRules")
    rules = AdjacencyRules.from_matrix(
        adjacency["matrix"],
        threshold=float(adjacency.get("threshold", config.COMPATIBILITY_THRESHOLD)),
    )

    building_types: dict[TileCategory, BuildingType] = {}
    building_data = _require_mapping(data.get("buildingTypes", {}), "buildingTypes")
    for name, info in building_data.items():
        info = _require_mapping(info, f"building type {name!r}")
        low, high = info.get("height", (config.DEFAULT_FLOORS, config.DEFAULT_FLOORS))
        if int(low) > int(high):
            raise ValueError(f"Invalid floor range for {name!r}: {low} > {high}")
        building_types[TileCategory(name)] = BuildingType(
            floors=(int(low), int(high)), density=str(info.get("density", "none"))
        )

    return TileCatalog(tiles=tiles, rules=rules, building_types=building_types)


def load_tile_catalog(path: Path | str | None = None) -> TileCatalog:
    """Load a tile catalog from a JSON file, falling back to the built-in one.

    Args:
        path: Tileset file. Defaults to the packaged wfc_tileset.json.

    Returns:
        The loaded catalog, or create_fallback_catalog() if the file is
        missing or malformed.
    """
    path = Path(path) if path is not None else config.DEFAULT_TILESET_PATH
    try:
        with path.open() as f:
            data = json.load(f)
        catalog = catalog_from_dict(data)
    except (OSError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Could not load tileset {path} ({e}), using fallback")
        return create_fallback_catalog()

    logger.debug(f"Loaded tileset {path}: {len(catalog.tiles)} tiles")
    return catalog


def create_fallback_catalog() -> TileCatalog:
    """The built-in catalog: seven tiles over six categories.

    Adjacency philosophy:
    - Roads connect to everything
    - Residential sits well next to parks and roads, poorly next to industry
    - Industry prefers roads, empty lots and other industry
    The matrix is symmetric, so compatibility doesn't depend on which of two
    neighbours was placed first.
    """
    res = TileCategory.RESIDENTIAL
    com = TileCategory.COMMERCIAL
    ind = TileCategory.INDUSTRIAL
    park = TileCategory.PARK
    road = TileCategory.ROAD
    empty = TileCategory.EMPTY

    tiles = (
        Tile(0, "residential", res, 0.3),
        Tile(1, "commercial", com, 0.2),
        Tile(2, "industrial", ind, 0.1),
        Tile(3, "park", park, 0.15),
        Tile(4, "road_h", road, 0.1),
        Tile(5, "road_v", road, 0.1),
        Tile(6, "empty", empty, 0.05),
    )

    matrix = {
        res: {res: 1.0, com: 0.8, ind: 0.2, park: 1.0, road: 1.0, empty: 0.7},
        com: {res: 0.8, com: 1.0, ind: 0.3, park: 0.7, road: 1.0, empty: 0.5},
        ind: {res: 0.2, com: 0.3, ind: 1.0, park: 0.3, road: 1.0, empty: 0.9},
        park: {res: 1.0, com: 0.7, ind: 0.3, park: 1.0, road: 0.8, empty: 0.8},
        road: {res: 1.0, com: 1.0, ind: 1.0, park: 0.8, road: 1.0, empty: 0.9},
        empty: {res: 0.7, com: 0.5, ind: 0.9, park: 0.8, road: 0.9, empty: 1.0},
    }

    building_types = {
        res: BuildingType(floors=(1, 3), density="medium"),
        com: BuildingType(floors=(2, 5), density="high"),
        ind: BuildingType(floors=(1, 2), density="low"),
        park: BuildingType(floors=(0, 1)),
        road: BuildingType(floors=(0, 0)),
        empty: BuildingType(floors=(0, 0)),
    }

    return TileCatalog(
        tiles=tiles,
        rules=AdjacencyRules.from_matrix(matrix),
        building_types=building_types,
    )
