"""Tests for the tile collapse solver."""

from __future__ import annotations

import logging
from collections import Counter
from random import Random

import pytest

from tests.helpers import assert_adjacency_respected
from urbangen.collapse.grid import CollapseGrid
from urbangen.collapse.solver import CollapseSolver, SolverState
from urbangen.collapse.tiles import (
    AdjacencyRules,
    Tile,
    TileCatalog,
    TileCategory,
    single_category_catalog,
)

RES = TileCategory.RESIDENTIAL
COM = TileCategory.COMMERCIAL


def make_solver(
    catalog: TileCatalog, width: int, height: int, seed: int = 1, **kwargs
) -> CollapseSolver:
    grid = CollapseGrid(width, height, catalog.tile_ids)
    return CollapseSolver(grid, catalog, Random(seed), **kwargs)


def alternating_catalog() -> TileCatalog:
    """Two tiles that may only sit next to each other, never to themselves."""
    return TileCatalog(
        tiles=(Tile(0, "house", RES), Tile(1, "shop", COM)),
        rules=AdjacencyRules(scores={(RES, COM): 1.0, (COM, RES): 1.0}),
    )


class TestSolve:
    def test_single_category_converges(self) -> None:
        """A fully self-compatible catalog collapses every cell."""
        solver = make_solver(single_category_catalog(), 5, 5, seed=1)
        stats = solver.solve()

        assert stats.state is SolverState.CONVERGED
        assert stats.collapsed == 25
        assert stats.uncollapsed == 0
        assert stats.contradictions == 0
        assert stats.iterations == 25
        assert solver.grid.is_fully_collapsed

    def test_collapsed_neighbours_are_compatible(
        self, fallback_catalog: TileCatalog
    ) -> None:
        """No two adjacent collapsed cells break the adjacency rules."""
        for seed in range(5):
            solver = make_solver(fallback_catalog, 12, 9, seed=seed)
            solver.solve()
            assert_adjacency_respected(solver.grid, fallback_catalog)

    def test_invariants_hold_after_every_step(
        self, fallback_catalog: TileCatalog
    ) -> None:
        """Entropy bookkeeping stays consistent through the run."""
        solver = make_solver(fallback_catalog, 8, 8, seed=3)
        while solver.step() is SolverState.RUNNING:
            solver.grid.verify_invariants()
        solver.grid.verify_invariants()
        assert solver.state is not SolverState.RUNNING

    def test_deterministic(self, fallback_catalog: TileCatalog) -> None:
        """The same seed resolves the same tiles."""
        a = make_solver(fallback_catalog, 10, 10, seed=77)
        b = make_solver(fallback_catalog, 10, 10, seed=77)
        a.solve()
        b.solve()
        assert a.grid.resolved_tiles() == b.grid.resolved_tiles()

    def test_default_budget(self, fallback_catalog: TileCatalog) -> None:
        """The budget defaults to twice the cell count."""
        solver = make_solver(fallback_catalog, 6, 4)
        assert solver.budget == 48

    def test_budget_exhausted(self) -> None:
        """The solver stops once the budget is spent."""
        solver = make_solver(single_category_catalog(), 5, 5, budget=3)
        stats = solver.solve()
        assert stats.state is SolverState.BUDGET_EXHAUSTED
        assert stats.iterations == 3
        assert stats.collapsed == 3
        assert stats.uncollapsed == 22

    def test_zero_budget(self) -> None:
        """A budget of 0 collapses nothing."""
        stats = make_solver(single_category_catalog(), 3, 3, budget=0).solve()
        assert stats.state is SolverState.BUDGET_EXHAUSTED
        assert stats.collapsed == 0

    def test_empty_grid_converges(self) -> None:
        """A grid with no cells is solved immediately."""
        stats = make_solver(single_category_catalog(), 0, 0).solve()
        assert stats.state is SolverState.CONVERGED
        assert stats.iterations == 0

    def test_step_after_finish_is_noop(self) -> None:
        """Stepping a finished solver doesn't change it."""
        solver = make_solver(single_category_catalog(), 2, 2)
        solver.solve()
        iterations = solver.iterations
        assert solver.step() is SolverState.CONVERGED
        assert solver.iterations == iterations


class TestContradictions:
    def test_contradiction_is_not_fatal(self, caplog) -> None:
        """A cell with no compatible tile is left empty and reported."""
        catalog = TileCatalog(
            tiles=(Tile(0, "house", RES),), rules=AdjacencyRules(scores={})
        )
        solver = make_solver(catalog, 2, 1)
        with caplog.at_level(logging.WARNING, logger="urbangen.collapse.solver"):
            stats = solver.solve()

        assert stats.state is SolverState.CONTRADICTION
        assert stats.collapsed == 1
        assert stats.contradictions == 1
        assert None in solver.grid.resolved_tiles()[0]
        assert any("CONTRADICTION" in r.getMessage() for r in caplog.records)

    def test_propagate_counts_contradictions(self) -> None:
        """propagate reports cells that lost their last possibility."""
        catalog = TileCatalog(
            tiles=(Tile(0, "house", RES),), rules=AdjacencyRules(scores={})
        )
        solver = make_solver(catalog, 3, 3)
        solver.grid.collapse(4, 0)
        assert solver.propagate(4) == 4
        assert solver.grid.contradiction_indices() == [1, 3, 5, 7]


class TestPropagation:
    def test_constraints_travel_multiple_hops(self) -> None:
        """Fixing one end of a strip forces the whole alternating pattern."""
        solver = make_solver(alternating_catalog(), 3, 1)
        solver.grid.collapse(0, 0)
        contradictions = solver.propagate(0)

        assert contradictions == 0
        assert solver.grid.cells[1].possibilities == {1}
        assert solver.grid.cells[2].possibilities == {0}

    def test_alternating_strip_solves(self) -> None:
        """The alternating catalog always converges on a strip."""
        for seed in range(10):
            solver = make_solver(alternating_catalog(), 6, 1, seed=seed)
            assert solver.solve().state is SolverState.CONVERGED
            row = solver.grid.resolved_tiles()[0]
            assert all(a != b for a, b in zip(row, row[1:], strict=False))


class TestSelection:
    def test_low_entropy_cell_preferred(self, fallback_catalog: TileCatalog) -> None:
        """Under the threshold, a minimum-entropy cell is always chosen."""
        solver = make_solver(fallback_catalog, 3, 1, entropy_threshold=3)
        solver.grid.restrict(2, {0, 1})
        for _ in range(50):
            assert solver.select_cell(solver.grid.open_indices()) == 2

    def test_high_entropy_selects_any_open_cell(
        self, fallback_catalog: TileCatalog
    ) -> None:
        """Above the threshold every open cell can be chosen."""
        solver = make_solver(fallback_catalog, 3, 1, entropy_threshold=1)
        solver.grid.restrict(2, {0, 1})
        chosen = {solver.select_cell(solver.grid.open_indices()) for _ in range(200)}
        assert chosen == {0, 1, 2}


class TestWeightedChoice:
    def test_weights_bias_the_choice(self) -> None:
        """A 9:1 weighting picks the heavy tile about 90% of the time."""
        catalog = single_category_catalog(weights=(9.0, 1.0))
        rng = Random(123)
        counts: Counter[int] = Counter()
        trials = 2000
        for _ in range(trials):
            grid = CollapseGrid(1, 1, catalog.tile_ids)
            CollapseSolver(grid, catalog, rng).solve()
            counts[grid.cells[0].resolved_tile] += 1

        assert 0.85 <= counts[0] / trials <= 0.95

    def test_zero_weights_choose_uniformly(self) -> None:
        """All-zero weights still collapse the cell."""
        catalog = single_category_catalog(weights=(0.0, 0.0))
        solver = make_solver(catalog, 1, 1)
        tile = solver.collapse_cell(0)
        assert tile in (0, 1)
        assert solver.grid.cells[0].collapsed

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_collapse_picks_a_possibility(self, seed: int, fallback_catalog) -> None:
        """The chosen tile comes from the cell's remaining possibilities."""
        solver = make_solver(fallback_catalog, 1, 1, seed=seed)
        solver.grid.restrict(0, {2, 5})
        assert solver.collapse_cell(0) in (2, 5)
