"""Topography generation run.

Runs the terrain stages in a fixed order:
1. Elevation field from value noise
2. Flow directions (steepest descent)
3. Water mask (lake, bay or river mode)
4. Water components (ocean vs lake)
5. Coastline polygons (skippable; water cells remain as a coarser output)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from urbangen.params import TerrainParams
from urbangen.terrain.contours import CoastlinePolygon, extract_coastlines
from urbangen.terrain.elevation import ElevationField, build_elevation_field
from urbangen.terrain.flow import FlowDirectionField, compute_flow_directions
from urbangen.terrain.water import (
    WaterBodyKind,
    WaterComponent,
    build_water_mask,
    label_water_components,
)
from urbangen.types import GridPos, WorldPoint

logger = logging.getLogger(__name__)


@dataclass
class Topography:
    """Everything one topography run produced."""

    params: TerrainParams
    elevation: ElevationField
    flow: FlowDirectionField
    water_mask: np.ndarray
    labels: np.ndarray
    components: list[WaterComponent]
    coastlines: list[CoastlinePolygon] = field(default_factory=list)
    river_course: list[GridPos] = field(default_factory=list)

    @property
    def cell_size(self) -> float:
        return self.elevation.cell_size

    @property
    def river_path(self) -> list[WorldPoint]:
        return [self.elevation.world_position(r, c) for r, c in self.river_course]

    @property
    def water_fraction(self) -> float:
        return float(self.water_mask.mean())

    def count_components(self, kind: WaterBodyKind) -> int:
        return sum(1 for c in self.components if c.kind is kind)


class TopographyGenerator:
    """Generates terrain and water for one set of terrain parameters."""

    def __init__(self, params: TerrainParams) -> None:
        params.validate()
        self.params = params

    def generate(self, skip_polygons: bool = False) -> Topography:
        """Run all terrain stages.

        Args:
            skip_polygons: Don't extract coastline polygons. Consumers then
                fall back to axis-aligned water cells.

        Returns:
            The topography for this run; identical for identical params.
        """
        params = self.params
        elevation = build_elevation_field(params)
        flow = compute_flow_directions(elevation)
        mask, course = build_water_mask(elevation, params, flow)
        mask.flags.writeable = False
        labels, components = label_water_components(mask)

        coastlines: list[CoastlinePolygon] = []
        if not skip_polygons:
            coastlines = extract_coastlines(labels, components, elevation.cell_size)

        topography = Topography(
            params=params,
            elevation=elevation,
            flow=flow,
            water_mask=mask,
            labels=labels,
            components=components,
            coastlines=coastlines,
            river_course=course,
        )
        logger.info(
            f"Topography ({params.mode}, seed={params.seed}): "
            f"{topography.water_fraction:.1%} water, "
            f"{topography.count_components(WaterBodyKind.OCEAN)} ocean / "
            f"{topography.count_components(WaterBodyKind.LAKE)} lake components, "
            f"{len(coastlines)} coastline polygons"
        )
        return topography
