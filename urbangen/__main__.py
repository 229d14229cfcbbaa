"""Generate a city from the command line.

Usage:
    python -m urbangen --seed 7 --mode bay --bay-direction left --export city.json
"""

from __future__ import annotations

import argparse
import logging
import sys

from urbangen import config
from urbangen.city import export_layout, generate_city
from urbangen.collapse.tiles import load_tile_catalog
from urbangen.params import (
    BayDirection,
    CollapseParams,
    ConfigurationError,
    TerrainParams,
    WaterMode,
)

logger = logging.getLogger("urbangen")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="urbangen",
        description="Generate terrain and a tile-collapse city layout.",
    )
    parser.add_argument("--width", type=float, default=config.DEFAULT_CANVAS_WIDTH)
    parser.add_argument("--height", type=float, default=config.DEFAULT_CANVAS_HEIGHT)
    parser.add_argument("--seed", type=int, default=config.DEFAULT_SEED)

    terrain = parser.add_argument_group("terrain")
    terrain.add_argument("--cell-size", type=float, default=config.DEFAULT_CELL_SIZE)
    terrain.add_argument(
        "--water-coverage", type=float, default=config.DEFAULT_WATER_COVERAGE
    )
    terrain.add_argument(
        "--noise-frequency", type=float, default=config.DEFAULT_NOISE_FREQUENCY
    )
    terrain.add_argument(
        "--mode", choices=[m.value for m in WaterMode], default=config.DEFAULT_WATER_MODE
    )
    terrain.add_argument("--river-width", type=int, default=config.DEFAULT_RIVER_WIDTH)
    terrain.add_argument(
        "--bay-direction",
        choices=[d.value for d in BayDirection],
        default=config.DEFAULT_BAY_DIRECTION,
    )
    terrain.add_argument(
        "--no-polygons",
        action="store_true",
        help="Emit water as cells instead of coastline polygons",
    )

    collapse = parser.add_argument_group("tile collapse")
    collapse.add_argument("--tile-size", type=float, default=config.DEFAULT_TILE_SIZE)
    collapse.add_argument(
        "--entropy-threshold", type=int, default=config.DEFAULT_ENTROPY_THRESHOLD
    )
    collapse.add_argument("--scale", type=float, default=config.DEFAULT_SCALE)
    collapse.add_argument("--budget", type=int, default=None)
    collapse.add_argument("--compatibility-threshold", type=float, default=None)
    collapse.add_argument("--tileset", default=None, help="Tileset JSON file")

    parser.add_argument("--export", default=None, help="Write a JSON snapshot here")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    terrain_params = TerrainParams(
        width=args.width,
        height=args.height,
        cell_size=args.cell_size,
        water_coverage=args.water_coverage,
        noise_frequency=args.noise_frequency,
        seed=args.seed,
        mode=args.mode,
        river_width=args.river_width,
        bay_direction=args.bay_direction,
    )
    collapse_params = CollapseParams(
        tile_size=args.tile_size,
        entropy_threshold=args.entropy_threshold,
        canvas_width=args.width,
        canvas_height=args.height,
        scale=args.scale,
        seed=args.seed,
        budget=args.budget,
        compatibility_threshold=args.compatibility_threshold,
    )

    try:
        layout = generate_city(
            terrain_params,
            collapse_params,
            catalog=load_tile_catalog(args.tileset),
            skip_polygons=args.no_polygons,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid parameters: {e}")
        return 2

    width = max(len(key) for key in layout.stats)
    for key, value in layout.stats.items():
        print(f"{key:>{width}}  {value}")

    if args.export:
        export_layout(layout, args.export)
    return 0


if __name__ == "__main__":
    sys.exit(main())
