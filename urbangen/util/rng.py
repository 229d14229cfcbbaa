"""Deterministic random number generation with isolated streams.

Every generation run owns one RNGProvider seeded from the run's seed. Each
consumer of randomness (tile selection, building floors) asks the provider
for its own named stream. This ensures that:

1. A run is fully deterministic from the same seed
2. Changing how much randomness one routine consumes doesn't shift another
   routine's sequence
3. Nothing is shared between runs: the provider is passed explicitly instead
   of living in module-level state

Usage:
    provider = RNGProvider(params.seed)
    solver = CollapseSolver(grid, catalog, provider.get("collapse.solver"), 3)

Domain naming convention (hierarchical):
    - "collapse.solver", "collapse.emitter"

Noise hashing never draws from these streams; it is a pure function of its
inputs (see urbangen.terrain.noise).
"""

from __future__ import annotations

import zlib
from random import Random
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from urbangen.types import RandomSeed

# Type alias for anything consuming randomness. Tests pass a plain
# random.Random; generators pass streams from an RNGProvider.
RNG: TypeAlias = Random


class RNGProvider:
    """Provides isolated RNG streams for the routines of one generation run.

    Each domain gets its own Random instance derived deterministically
    from the master seed. Domains are identified by string names.
    """

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def get(self, domain: str) -> Random:
        """Get the RNG stream for the named domain.

        Repeated calls with the same domain return the same stream object, so
        consumption continues where the previous caller left off.

        Args:
            domain: Hierarchical name like "collapse.solver"

        Returns:
            The Random instance for that domain
        """
        if domain not in self._streams:
            if self._master_seed is None:
                # No seed: use system entropy for non-deterministic behavior
                self._streams[domain] = Random()
            else:
                # Use crc32 instead of hash() - hash() is randomized per Python
                # session via PYTHONHASHSEED, which would break cross-session
                # determinism
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Discard all streams and derive fresh ones from a new master seed.

        Streams handed out before the reset keep their old state; callers
        must ask the provider again after resetting.
        """
        self._master_seed = master_seed
        self._streams.clear()
