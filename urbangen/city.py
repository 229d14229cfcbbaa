"""Combined city generation: terrain, then tile collapse, then export.

Both subsystems run in a fixed order for reproducibility:
1. Topography from the terrain params (noise is a pure function of the seed)
2. Tile collapse with streams from an RNGProvider seeded by the collapse seed
   ("collapse.solver" for selection and tile choice, then "collapse.emitter"
   for building floors)
3. Buildings overlapping water cells are dropped

The layout holds the primitives of both runs side by side; weighting several
generators against each other is left to the caller.
"""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import numpy as np

from urbangen.collapse.generator import TileCollapseGenerator
from urbangen.collapse.solver import SolveStats
from urbangen.collapse.tiles import TileCatalog
from urbangen.emitter import Building, Structures, emit_water
from urbangen.params import CollapseParams, TerrainParams
from urbangen.terrain.generator import Topography, TopographyGenerator
from urbangen.util.rng import RNGProvider

logger = logging.getLogger(__name__)


@dataclass
class CityLayout:
    """Result of a combined run."""

    structures: Structures
    topography: Topography
    solve_stats: SolveStats
    terrain_params: TerrainParams
    collapse_params: CollapseParams
    removed_in_water: int = 0
    generation_time_ms: float = 0.0
    stats: dict[str, Any] = field(default_factory=dict)


def covers_water(rect: Building, mask: np.ndarray, cell_size: float) -> bool:
    """True if the rectangle overlaps any water cell of the mask.

    Water cell (r, c) spans [c * cell_size, (c + 1) * cell_size) horizontally
    and likewise vertically.
    """
    rows, cols = mask.shape
    c0 = max(0, math.floor(rect.x / cell_size))
    c1 = min(cols, math.ceil((rect.x + rect.width) / cell_size))
    r0 = max(0, math.floor(rect.y / cell_size))
    r1 = min(rows, math.ceil((rect.y + rect.height) / cell_size))
    if c0 >= c1 or r0 >= r1:
        return False
    return bool(mask[r0:r1, c0:c1].any())


def generate_city(
    terrain_params: TerrainParams,
    collapse_params: CollapseParams,
    catalog: TileCatalog | None = None,
    skip_polygons: bool = False,
) -> CityLayout:
    """Generate terrain and land use for one set of parameters.

    Args:
        terrain_params: Terrain inputs.
        collapse_params: Tile-collapse inputs.
        catalog: Tile catalog; the packaged tileset (or its fallback) if None.
        skip_polygons: Emit water as cells instead of coastline polygons.

    Returns:
        The layout, identical for identical inputs.

    Raises:
        ConfigurationError: If either parameter set is invalid. Both are
            checked before any generation work starts.
    """
    terrain_params.validate()
    collapse_params.validate()
    start = time.perf_counter()

    topography = TopographyGenerator(terrain_params).generate(skip_polygons)

    provider = RNGProvider(collapse_params.seed)
    result = TileCollapseGenerator(catalog).generate(collapse_params, provider)
    structures = result.structures

    mask = topography.water_mask
    kept = [
        b
        for b in structures.buildings
        if not covers_water(b, mask, topography.cell_size)
    ]
    removed = len(structures.buildings) - len(kept)
    structures.buildings = kept
    structures.water = list(emit_water(mask, topography.coastlines, topography.cell_size))

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    layout = CityLayout(
        structures=structures,
        topography=topography,
        solve_stats=result.stats,
        terrain_params=terrain_params,
        collapse_params=collapse_params,
        removed_in_water=removed,
        generation_time_ms=elapsed_ms,
    )
    layout.stats = generation_stats(layout)
    logger.info(
        f"City generated in {elapsed_ms:.0f}ms: {structures.counts()}, "
        f"{removed} buildings removed from water"
    )
    return layout


def generation_stats(layout: CityLayout) -> dict[str, Any]:
    """Summary counts for display next to the rendered city."""
    stats = layout.solve_stats
    return {
        **layout.structures.counts(),
        "removed_in_water": layout.removed_in_water,
        "water_fraction": round(layout.topography.water_fraction, 4),
        "water_components": len(layout.topography.components),
        "coastlines": len(layout.topography.coastlines),
        "solver_state": stats.state.name,
        "solver_iterations": stats.iterations,
        "solver_budget": stats.budget,
        "collapsed_cells": stats.collapsed,
        "uncollapsed_cells": stats.uncollapsed,
        "contradictions": stats.contradictions,
        "time_ms": round(layout.generation_time_ms, 2),
    }


# =============================================================================
# Export
# =============================================================================


def layout_to_dict(layout: CityLayout) -> dict[str, Any]:
    """JSON-ready snapshot of a layout and the parameters that produced it."""
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "city": layout.structures.to_dict(),
        "parameters": {
            "terrain": asdict(layout.terrain_params),
            "collapse": asdict(layout.collapse_params),
        },
        "stats": layout.stats,
    }


def export_layout(layout: CityLayout, path: Path | str) -> Path:
    """Write a one-shot JSON snapshot of the layout.

    Returns:
        The path written.
    """
    path = Path(path)
    with path.open("w") as f:
        json.dump(layout_to_dict(layout), f, indent=2)
    logger.info(f"Exported city to {path}")
    return path
