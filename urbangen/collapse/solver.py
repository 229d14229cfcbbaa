"""Wave Function Collapse style tile solver.

The solver works on a CollapseGrid in iterations:
1. Find the open cells (uncollapsed, at least one possibility) with minimum
   entropy
2. If that entropy is at or below the entropy threshold, pick one of them at
   random; otherwise pick any open cell at random
3. Collapse it to one tile by weighted random choice
4. Propagate: breadth-first from the collapsed cell, drop every neighbour
   possibility that has no compatible tile left in the cell it borders, and
   re-check the neighbours of any cell that shrank
5. Repeat until no open cell is left or the iteration budget runs out

A cell that loses its last possibility is a contradiction. Contradictions are
not errors: propagation stops at that cell, solving carries on elsewhere, and
the cell is left empty in the output. The final state and counts are returned
as SolveStats.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto

from urbangen import config
from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.tiles import TileCatalog
from urbangen.types import CellIndex, TileId
from urbangen.util.rng import RNG

logger = logging.getLogger(__name__)


class SolverState(Enum):
    RUNNING = auto()
    # Every cell is collapsed
    CONVERGED = auto()
    # Nothing left to collapse, but some cells ran out of possibilities
    CONTRADICTION = auto()
    # Stopped by the iteration budget with open cells remaining
    BUDGET_EXHAUSTED = auto()


@dataclass(frozen=True)
class SolveStats:
    """Outcome of a solver run, for generation statistics."""

    state: SolverState
    iterations: int
    budget: int
    cells: int
    collapsed: int
    contradictions: int

    @property
    def uncollapsed(self) -> int:
        return self.cells - self.collapsed


class CollapseSolver:
    """Entropy-guided tile collapse over a grid.

    Attributes:
        grid: The grid being solved, mutated in place.
        catalog: Tiles, weights and adjacency rules.
        rng: Random stream for cell selection and tile choice.
        entropy_threshold: Minimum-entropy cells are preferred only while
            their entropy is at or below this value.
        budget: Maximum number of collapse iterations.
    """

    def __init__(
        self,
        grid: CollapseGrid,
        catalog: TileCatalog,
        rng: RNG,
        entropy_threshold: int = config.DEFAULT_ENTROPY_THRESHOLD,
        budget: int | None = None,
    ) -> None:
        self.grid = grid
        self.catalog = catalog
        self.rng = rng
        self.entropy_threshold = entropy_threshold
        if budget is None:
            budget = config.SOLVER_BUDGET_FACTOR * grid.width * grid.height
        self.budget = budget

        self.state = SolverState.RUNNING
        self.iterations = 0

        self._precompute_supports()

    def _precompute_supports(self) -> None:
        """For each tile, the set of tiles allowed in a cell next to it.

        support[q] = {p : category(p) is compatible next to category(q)}.
        Tiles whose category is unknown to the catalog support nothing.
        """
        rules = self.catalog.rules
        tile_ids = self.catalog.tile_ids
        self.support: dict[TileId, frozenset[TileId]] = {}
        for fixed in tile_ids:
            fixed_category = self.catalog.category(fixed)
            self.support[fixed] = frozenset(
                candidate
                for candidate in tile_ids
                if fixed_category is not None
                and rules.compatible(self.catalog.category(candidate), fixed_category)
            )

    # -------------------------------------------------------------------------
    # Algorithm steps
    # -------------------------------------------------------------------------

    def select_cell(self, open_cells: list[CellIndex]) -> CellIndex:
        """Choose the next cell to collapse among the open cells."""
        cells = self.grid.cells
        min_entropy = min(cells[i].entropy for i in open_cells)
        if min_entropy <= self.entropy_threshold:
            candidates = [i for i in open_cells if cells[i].entropy == min_entropy]
        else:
            candidates = open_cells
        return candidates[self.rng.randrange(len(candidates))]

    def collapse_cell(self, index: CellIndex) -> TileId:
        """Collapse a cell by weighted random choice over its possibilities.

        Possibilities are considered in sorted order so the choice depends
        only on the random stream, not on set iteration order.
        """
        options = sorted(self.grid.cells[index].possibilities)
        weights = [self.catalog.weight(tile_id) for tile_id in options]
        if sum(weights) > 0:
            chosen = self.rng.choices(options, weights=weights)[0]
        else:
            chosen = options[self.rng.randrange(len(options))]
        self.grid.collapse(index, chosen)
        return chosen

    def propagate(self, start: CellIndex) -> int:
        """Propagate constraints outward from a cell.

        Each cell is expanded at most once per propagation. A neighbour keeps
        only the tiles supported by at least one remaining tile of the cell
        being expanded; if it shrinks it is queued for expansion in turn.

        Returns:
            Number of cells that became contradictions.
        """
        grid = self.grid
        cells = grid.cells
        queue = deque([start])
        visited = {start}
        contradictions = 0

        while queue:
            index = queue.popleft()
            allowed: set[TileId] = set()
            for tile_id in cells[index].possibilities:
                allowed |= self.support.get(tile_id, frozenset())

            for neighbor in grid.neighbors(index):
                if cells[neighbor].collapsed or cells[neighbor].is_contradiction:
                    continue
                if not grid.restrict(neighbor, allowed):
                    continue

                if cells[neighbor].is_contradiction:
                    contradictions += 1
                    x, y = grid.position(neighbor)
                    logger.debug(f"Contradiction at ({x}, {y})")
                    continue

                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return contradictions

    def step(self) -> SolverState:
        """Run one select / collapse / propagate iteration."""
        if self.state is not SolverState.RUNNING:
            return self.state

        open_cells = self.grid.open_indices()
        if not open_cells:
            self.state = (
                SolverState.CONTRADICTION
                if self.grid.contradiction_indices()
                else SolverState.CONVERGED
            )
            return self.state

        if self.iterations >= self.budget:
            self.state = SolverState.BUDGET_EXHAUSTED
            return self.state

        index = self.select_cell(open_cells)
        self.collapse_cell(index)
        self.propagate(index)
        self.iterations += 1
        return self.state

    def solve(self) -> SolveStats:
        """Run iterations until the solver stops, then report the outcome."""
        while self.step() is SolverState.RUNNING:
            pass

        stats = self.stats()
        log = logger.warning if stats.contradictions else logger.info
        log(
            f"Tile collapse {self.grid.width}x{self.grid.height}: {stats.state.name} "
            f"after {stats.iterations}/{stats.budget} iterations, "
            f"{stats.collapsed}/{stats.cells} collapsed, "
            f"{stats.contradictions} contradictions"
        )
        return stats

    def stats(self) -> SolveStats:
        return SolveStats(
            state=self.state,
            iterations=self.iterations,
            budget=self.budget,
            cells=len(self.grid),
            collapsed=self.grid.collapsed_count,
            contradictions=len(self.grid.contradiction_indices()),
        )
