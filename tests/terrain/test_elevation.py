"""Tests for elevation field construction."""

from __future__ import annotations

import numpy as np
import pytest

from urbangen.params import ConfigurationError, TerrainParams
from urbangen.terrain.elevation import build_elevation_field, grid_dimensions
from urbangen.terrain.noise import ValueNoise


class TestGridDimensions:
    @pytest.mark.parametrize(
        ("width", "height", "cell_size", "expected"),
        [
            (800, 600, 10, (61, 81)),
            (100, 100, 30, (5, 5)),
            (10, 10, 10, (2, 2)),
        ],
    )
    def test_dimensions(self, width, height, cell_size, expected) -> None:
        """Rows and columns are ceil(extent / cell_size) + 1."""
        assert grid_dimensions(width, height, cell_size) == expected


class TestBuildElevationField:
    def test_shape_and_positions(self) -> None:
        """Samples sit at (col * cell_size, row * cell_size)."""
        params = TerrainParams(width=100, height=50, cell_size=10, seed=3)
        field = build_elevation_field(params)

        assert field.shape == (6, 11)
        assert field.rows == 6
        assert field.cols == 11
        assert field.world_position(2, 5) == (50, 20)

    def test_values_match_noise(self) -> None:
        """Each sample is the noise at its world position."""
        params = TerrainParams(
            width=60, height=40, cell_size=10, seed=9, noise_frequency=0.07
        )
        field = build_elevation_field(params)
        noise = ValueNoise(9, 0.07)
        for row in range(field.rows):
            for col in range(field.cols):
                x, y = field.world_position(row, col)
                assert field.values[row, col] == pytest.approx(noise.sample(x, y))

    def test_deterministic(self) -> None:
        """The same params give identical fields."""
        params = TerrainParams(width=120, height=80, seed=17)
        a = build_elevation_field(params)
        b = build_elevation_field(params)
        np.testing.assert_array_equal(a.values, b.values)

    def test_read_only(self) -> None:
        """The sample array can't be modified once built."""
        field = build_elevation_field(TerrainParams(width=50, height=50))
        with pytest.raises(ValueError):
            field.values[0, 0] = 1.0

    def test_invalid_params_raise(self) -> None:
        """Non-positive cell size is rejected before sampling."""
        with pytest.raises(ConfigurationError):
            build_elevation_field(TerrainParams(cell_size=0))

    def test_boundary_helpers(self) -> None:
        """in_bounds and on_boundary follow the grid extent."""
        field = build_elevation_field(TerrainParams(width=40, height=40, cell_size=10))
        assert field.in_bounds(0, 0)
        assert not field.in_bounds(5, 0)
        assert not field.in_bounds(0, -1)
        assert field.on_boundary(4, 2)
        assert field.on_boundary(2, 0)
        assert not field.on_boundary(2, 2)
