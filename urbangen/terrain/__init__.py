"""Terrain and water generation.

- ValueNoise: seeded, stateless 2-D value noise
- ElevationField / build_elevation_field: noise sampled on a regular lattice
- FlowDirectionField / compute_flow_directions: steepest-descent routing
- build_water_mask / label_water_components: water cells, ocean vs lake
- extract_coastlines: marching squares coastline polygons
- TopographyGenerator: runs all of the above in order
"""

from .contours import CoastlinePolygon, extract_coastlines, link_segments, marching_squares
from .elevation import ElevationField, build_elevation_field
from .flow import NEIGHBOR_OFFSETS, NO_FLOW, FlowDirectionField, compute_flow_directions
from .generator import Topography, TopographyGenerator
from .noise import ValueNoise, lattice_hash
from .water import (
    WaterBodyKind,
    WaterComponent,
    build_water_mask,
    label_water_components,
)

__all__ = [
    "NEIGHBOR_OFFSETS",
    "NO_FLOW",
    "CoastlinePolygon",
    "ElevationField",
    "FlowDirectionField",
    "Topography",
    "TopographyGenerator",
    "ValueNoise",
    "WaterBodyKind",
    "WaterComponent",
    "build_elevation_field",
    "build_water_mask",
    "compute_flow_directions",
    "extract_coastlines",
    "label_water_components",
    "lattice_hash",
    "link_segments",
    "marching_squares",
]
