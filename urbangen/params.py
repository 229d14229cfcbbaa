"""Run parameters for terrain and tile-collapse generation.

Parameters arrive from an outer UI or config layer as plain values. They are
collected in dataclasses here and validated before any grid is allocated;
invalid values raise ConfigurationError.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Any, Self

from urbangen import config


class ConfigurationError(ValueError):
    """Raised when generation parameters are rejected.

    This is the only error generation raises for its inputs. Everything else
    (missing tile catalog, solver contradictions, degenerate contours) is
    recovered from and reported in the results.
    """

    pass


class WaterMode(StrEnum):
    """How the water mask is shaped."""

    LAKE = "lake"
    RIVER = "river"
    BAY = "bay"


class BayDirection(StrEnum):
    """Map edge the bay opens onto."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


def _camel_to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def _require_positive(name: str, value: float) -> None:
    if (
        not isinstance(value, int | float)
        or isinstance(value, bool)
        or (isinstance(value, float) and not math.isfinite(value))
        or value <= 0
    ):
        raise ConfigurationError(
            f"{name} must be a positive finite number, got {value!r}"
        )


def _require_seed(seed: Any) -> None:
    if not isinstance(seed, int) or isinstance(seed, bool):
        raise ConfigurationError(f"seed must be an integer, got {seed!r}")


class _FromMapping:
    """Mixin building a params dataclass from a dict of camelCase or snake_case keys."""

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> Self:
        """Build params from a mapping, ignoring keys that aren't parameters.

        Args:
            values: Parameter values, e.g. {"waterCoverage": 0.4, "seed": 7}.

        Returns:
            The params object, already validated.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            name = _camel_to_snake(key)
            if name in known:
                kwargs[name] = value
        params = cls(**kwargs)
        params.validate()  # type: ignore[attr-defined]
        return params


@dataclass(frozen=True)
class TerrainParams(_FromMapping):
    """Inputs of a topography run.

    Attributes:
        width: Area width in world pixels.
        height: Area height in world pixels.
        cell_size: Spacing between elevation samples in world pixels.
        water_coverage: Water threshold on the [0, 1) elevation range.
        noise_frequency: Scale applied to world coordinates before hashing.
        seed: Noise seed; also seeds the run's RNG streams.
        mode: Water shape (lake, river or bay).
        river_width: Channel width in cells for river mode.
        bay_direction: Edge the bay opens onto in bay mode.
    """

    width: float = config.DEFAULT_CANVAS_WIDTH
    height: float = config.DEFAULT_CANVAS_HEIGHT
    cell_size: float = config.DEFAULT_CELL_SIZE
    water_coverage: float = config.DEFAULT_WATER_COVERAGE
    noise_frequency: float = config.DEFAULT_NOISE_FREQUENCY
    seed: int = config.DEFAULT_SEED
    mode: WaterMode | str = config.DEFAULT_WATER_MODE
    river_width: int = config.DEFAULT_RIVER_WIDTH
    bay_direction: BayDirection | str = config.DEFAULT_BAY_DIRECTION

    def validate(self) -> None:
        """Check every parameter, raising ConfigurationError on the first bad one."""
        _require_positive("width", self.width)
        _require_positive("height", self.height)
        _require_positive("cell_size", self.cell_size)
        _require_positive("noise_frequency", self.noise_frequency)
        _require_seed(self.seed)
        if (
            not isinstance(self.water_coverage, int | float)
            or not 0.0 <= self.water_coverage <= 1.0
        ):
            raise ConfigurationError(
                f"water_coverage must be within [0, 1], got {self.water_coverage!r}"
            )
        if self.mode not in {m.value for m in WaterMode}:
            raise ConfigurationError(f"Unknown water mode: {self.mode!r}")
        if self.bay_direction not in {d.value for d in BayDirection}:
            raise ConfigurationError(f"Unknown bay direction: {self.bay_direction!r}")
        if (
            not isinstance(self.river_width, int)
            or isinstance(self.river_width, bool)
            or self.river_width < 0
        ):
            raise ConfigurationError(
                f"river_width must be a non-negative integer, got {self.river_width!r}"
            )

    @property
    def water_mode(self) -> WaterMode:
        return WaterMode(self.mode)

    @property
    def bay_edge(self) -> BayDirection:
        return BayDirection(self.bay_direction)


@dataclass(frozen=True)
class CollapseParams(_FromMapping):
    """Inputs of a tile-collapse run.

    Attributes:
        tile_size: Tile edge length in world pixels before scaling.
        entropy_threshold: Lowest-entropy cells are collapsed only while their
            entropy is at or below this; otherwise a random cell is picked.
        canvas_width: Canvas width in world pixels.
        canvas_height: Canvas height in world pixels.
        scale: Multiplier applied to tile_size.
        seed: Seed of the run's RNG streams.
        budget: Solver iteration budget. None means 2 * width * height.
        compatibility_threshold: Adjacency score a pair must exceed.
    """

    tile_size: float = config.DEFAULT_TILE_SIZE
    entropy_threshold: int = config.DEFAULT_ENTROPY_THRESHOLD
    canvas_width: float = config.DEFAULT_CANVAS_WIDTH
    canvas_height: float = config.DEFAULT_CANVAS_HEIGHT
    scale: float = config.DEFAULT_SCALE
    seed: int = config.DEFAULT_SEED
    budget: int | None = None
    compatibility_threshold: float | None = None

    def validate(self) -> None:
        """Check every parameter, raising ConfigurationError on the first bad one."""
        _require_positive("tile_size", self.tile_size)
        _require_positive("canvas_width", self.canvas_width)
        _require_positive("canvas_height", self.canvas_height)
        _require_positive("scale", self.scale)
        _require_seed(self.seed)
        if (
            not isinstance(self.entropy_threshold, int)
            or isinstance(self.entropy_threshold, bool)
            or self.entropy_threshold < 0
        ):
            raise ConfigurationError(
                "entropy_threshold must be a non-negative integer, "
                f"got {self.entropy_threshold!r}"
            )
        if self.budget is not None and (
            not isinstance(self.budget, int)
            or isinstance(self.budget, bool)
            or self.budget < 0
        ):
            raise ConfigurationError(
                f"budget must be a non-negative integer, got {self.budget!r}"
            )

    @property
    def actual_tile_size(self) -> float:
        return self.tile_size * self.scale

    @property
    def grid_size(self) -> tuple[int, int]:
        """(width, height) of the collapse grid in tiles."""
        size = self.actual_tile_size
        return int(self.canvas_width // size), int(self.canvas_height // size)
