from __future__ import annotations

import pytest

from urbangen.collapse.tiles import TileCatalog, create_fallback_catalog
from urbangen.params import CollapseParams, TerrainParams


@pytest.fixture
def fallback_catalog() -> TileCatalog:
    return create_fallback_catalog()


@pytest.fixture
def small_terrain() -> TerrainParams:
    """A 200x150 area sampled every 10 pixels (16 x 21 samples)."""
    return TerrainParams(width=200, height=150, cell_size=10, seed=42)


@pytest.fixture
def small_collapse() -> CollapseParams:
    """A 20x15 tile grid."""
    return CollapseParams(tile_size=10, canvas_width=200, canvas_height=150, seed=42)
