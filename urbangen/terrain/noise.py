"""Deterministic 2-D value noise.

The noise is built from an integer lattice hash, so it needs no permutation
tables or external noise library and holds no state besides its seed and
frequency. The same inputs always give the same output, independent of call
order, which makes it safe to share between readers.

`ValueNoise.sample` and `ValueNoise.sample_grid` evaluate the same formula;
the grid version is vectorised with numpy for building whole fields.
"""

from __future__ import annotations

import math

import numpy as np

_MASK32 = 0xFFFFFFFF
_HASH_X = 374761393
_HASH_Y = 668265263
_HASH_SEED = 374761397
_HASH_MIX = 1274126177

# Results keep the low 28 bits and divide by 2**28, giving [0, 1).
_HASH_BITS = 0xFFFFFFF
_HASH_SCALE = float(1 << 28)


def lattice_hash(x: int, y: int, seed: int) -> float:
    """Hash an integer lattice point to a float in [0, 1).

    All arithmetic is done modulo 2**32, so any Python int is accepted.
    """
    s = (x * _HASH_X + y * _HASH_Y + (seed & _MASK32) * _HASH_SEED) & _MASK32
    t = s ^ (s >> 13)
    t = (t * _HASH_MIX) & _MASK32
    return (t & _HASH_BITS) / _HASH_SCALE


def lattice_hash_array(x: np.ndarray, y: np.ndarray, seed: int) -> np.ndarray:
    """Vectorised lattice_hash over integer arrays.

    int64 products may wrap, but only the low 32 bits are kept, and those are
    the same as with exact integer arithmetic.
    """
    x = x.astype(np.int64)
    y = y.astype(np.int64)
    s = (x * _HASH_X + y * _HASH_Y + (seed & _MASK32) * _HASH_SEED) & _MASK32
    t = s ^ (s >> 13)
    t = (t * _HASH_MIX) & _MASK32
    return (t & _HASH_BITS) / _HASH_SCALE


def _lerp(a, b, t):
    return a + (b - a) * t


class ValueNoise:
    """Bilinearly interpolated value noise over the lattice hash."""

    def __init__(self, seed: int, frequency: float) -> None:
        self.seed = seed
        self.frequency = frequency

    def sample(self, x: float, y: float) -> float:
        """Sample the noise at world position (x, y)."""
        fx = x * self.frequency
        fy = y * self.frequency
        x0 = math.floor(fx)
        y0 = math.floor(fy)
        dx = fx - x0
        dy = fy - y0

        n00 = lattice_hash(x0, y0, self.seed)
        n10 = lattice_hash(x0 + 1, y0, self.seed)
        n01 = lattice_hash(x0, y0 + 1, self.seed)
        n11 = lattice_hash(x0 + 1, y0 + 1, self.seed)

        nx0 = _lerp(n00, n10, dx)
        nx1 = _lerp(n01, n11, dx)
        return _lerp(nx0, nx1, dy)

    def sample_grid(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Sample the noise on the grid spanned by 1-D world coordinate arrays.

        Args:
            xs: World x coordinates, one per column.
            ys: World y coordinates, one per row.

        Returns:
            Array of shape (len(ys), len(xs)) with values in [0, 1).
        """
        fx, fy = np.meshgrid(
            np.asarray(xs, dtype=np.float64) * self.frequency,
            np.asarray(ys, dtype=np.float64) * self.frequency,
        )
        x0 = np.floor(fx)
        y0 = np.floor(fy)
        dx = fx - x0
        dy = fy - y0
        ix = x0.astype(np.int64)
        iy = y0.astype(np.int64)

        n00 = lattice_hash_array(ix, iy, self.seed)
        n10 = lattice_hash_array(ix + 1, iy, self.seed)
        n01 = lattice_hash_array(ix, iy + 1, self.seed)
        n11 = lattice_hash_array(ix + 1, iy + 1, self.seed)

        nx0 = _lerp(n00, n10, dx)
        nx1 = _lerp(n01, n11, dx)
        return _lerp(nx0, nx1, dy)
