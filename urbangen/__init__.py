"""Procedural urban layouts over synthetic terrain.

Two independent subsystems make up the package:
- terrain: value-noise elevation, downhill flow routing, water masks,
  ocean/lake classification and coastline polygons.
- collapse: a Wave Function Collapse style tile solver that assigns land-use
  tiles to a grid and emits buildings, roads and parks.

`urbangen.city.generate_city` runs both in a fixed order for a single seed.
"""

__version__ = "0.1.0"
