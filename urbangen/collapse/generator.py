"""Tile-collapse generation run: params in, city structures out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.solver import CollapseSolver, SolveStats
from urbangen.collapse.tiles import TileCatalog, load_tile_catalog
from urbangen.emitter import Structures, emit_structures
from urbangen.params import CollapseParams
from urbangen.util.rng import RNGProvider

logger = logging.getLogger(__name__)


@dataclass
class CollapseResult:
    structures: Structures
    stats: SolveStats
    grid: CollapseGrid
    tile_size: float


class TileCollapseGenerator:
    """Generates land use with the collapse solver.

    The catalog is loaded once when the generator is created and reused for
    every run.
    """

    def __init__(
        self,
        catalog: TileCatalog | None = None,
        tileset_path: Path | str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            catalog: Catalog to use. If None, one is loaded from tileset_path.
            tileset_path: Tileset JSON to load when no catalog is given.
                Defaults to the packaged tileset; load failures fall back to
                the built-in catalog.
        """
        self.catalog = catalog if catalog is not None else load_tile_catalog(tileset_path)

    def generate(
        self, params: CollapseParams, provider: RNGProvider | None = None
    ) -> CollapseResult:
        """Solve a grid sized to the canvas and emit its structures.

        Args:
            params: Collapse parameters; validated before the grid is built.
            provider: RNG provider of the surrounding run. A new one seeded
                with params.seed is created if omitted.

        Raises:
            ConfigurationError: If params are invalid.
        """
        params.validate()
        if provider is None:
            provider = RNGProvider(params.seed)

        catalog = self.catalog
        if params.compatibility_threshold is not None:
            catalog = catalog.with_threshold(params.compatibility_threshold)

        tile_size = params.actual_tile_size
        width, height = params.grid_size
        grid = CollapseGrid(width, height, catalog.tile_ids)

        solver = CollapseSolver(
            grid,
            catalog,
            provider.get("collapse.solver"),
            entropy_threshold=params.entropy_threshold,
            budget=params.budget,
        )
        stats = solver.solve()

        structures = emit_structures(
            grid, catalog, tile_size, provider.get("collapse.emitter")
        )
        logger.debug(f"Emitted {structures.counts()} from {width}x{height} grid")
        return CollapseResult(
            structures=structures, stats=stats, grid=grid, tile_size=tile_size
        )
