"""Tests for the lattice hash and value noise."""

from __future__ import annotations

import numpy as np
import pytest

from urbangen.terrain.noise import ValueNoise, lattice_hash, lattice_hash_array


class TestLatticeHash:
    def test_values_in_unit_interval(self) -> None:
        """Hash values lie in [0, 1) across a spread of inputs."""
        for x in range(-20, 20, 3):
            for y in range(-20, 20, 7):
                value = lattice_hash(x, y, 12345)
                assert 0.0 <= value < 1.0

    def test_deterministic(self) -> None:
        """The same lattice point and seed always hash the same."""
        assert lattice_hash(3, 7, 99) == lattice_hash(3, 7, 99)

    def test_seed_changes_values(self) -> None:
        """Different seeds give different hashes for most points."""
        a = [lattice_hash(x, 0, 1) for x in range(32)]
        b = [lattice_hash(x, 0, 2) for x in range(32)]
        assert sum(1 for p, q in zip(a, b, strict=True) if p != q) > 16

    def test_large_and_negative_seeds_wrap(self) -> None:
        """Seeds are taken modulo 2**32."""
        assert lattice_hash(1, 2, -1) == lattice_hash(1, 2, 2**32 - 1)
        assert lattice_hash(1, 2, 2**32 + 5) == lattice_hash(1, 2, 5)

    def test_array_matches_scalar(self) -> None:
        """The vectorised hash agrees with the scalar one, negatives included."""
        xs, ys = np.meshgrid(np.arange(-5, 6), np.arange(-4, 5))
        expected = np.array(
            [
                [lattice_hash(int(x), int(y), 777) for x, y in zip(xrow, yrow, strict=True)]
                for xrow, yrow in zip(xs, ys, strict=True)
            ]
        )
        np.testing.assert_array_equal(lattice_hash_array(xs, ys, 777), expected)


class TestValueNoise:
    def test_lattice_points_equal_hash(self) -> None:
        """At integer lattice points the noise is the raw hash value."""
        noise = ValueNoise(seed=5, frequency=1.0)
        assert noise.sample(3.0, 4.0) == pytest.approx(lattice_hash(3, 4, 5))

    def test_midpoint_is_average_of_corners(self) -> None:
        """The cell centre is the mean of its four corner hashes."""
        noise = ValueNoise(seed=5, frequency=1.0)
        corners = [lattice_hash(x, y, 5) for x in (0, 1) for y in (0, 1)]
        assert noise.sample(0.5, 0.5) == pytest.approx(sum(corners) / 4)

    def test_grid_matches_pointwise_sampling(self) -> None:
        """sample_grid evaluates the same formula as sample."""
        noise = ValueNoise(seed=42, frequency=0.05)
        xs = np.arange(0, 100, 10, dtype=float)
        ys = np.arange(0, 70, 10, dtype=float)
        grid = noise.sample_grid(xs, ys)

        assert grid.shape == (len(ys), len(xs))
        for row, y in enumerate(ys):
            for col, x in enumerate(xs):
                assert grid[row, col] == pytest.approx(noise.sample(x, y))

    def test_range(self) -> None:
        """Interpolated values stay within [0, 1)."""
        noise = ValueNoise(seed=8, frequency=0.037)
        grid = noise.sample_grid(np.arange(200.0), np.arange(150.0))
        assert grid.min() >= 0.0
        assert grid.max() < 1.0
