"""Cell grid for tile collapse.

Cells are stored row-major and addressed by a flat integer index
(y * width + x), which is also what the solver keeps in its queues and
visited sets.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from urbangen.types import CellIndex, TileId

# Direction utilities
DIRECTIONS = ["N", "E", "S", "W"]
DIR_OFFSETS = {"N": (0, -1), "E": (1, 0), "S": (0, 1), "W": (-1, 0)}


@dataclass
class CollapseCell:
    """One grid cell: the tiles it may still become, or the tile it became.

    Entropy is derived from the possibility set, so it can never drift from
    it: the set size while uncollapsed, 0 once collapsed. An uncollapsed cell
    with entropy 0 is a contradiction.
    """

    possibilities: set[TileId] = field(default_factory=set)
    collapsed: bool = False
    resolved_tile: TileId | None = None

    @property
    def entropy(self) -> int:
        return 0 if self.collapsed else len(self.possibilities)

    @property
    def is_contradiction(self) -> bool:
        return not self.collapsed and not self.possibilities


class CollapseGrid:
    """A width x height grid of collapse cells, all starting with every tile."""

    def __init__(self, width: int, height: int, tile_ids: Iterable[TileId]) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Grid size must not be negative: {width}x{height}")
        self.width = width
        self.height = height
        tile_ids = list(tile_ids)
        self.cells = [
            CollapseCell(possibilities=set(tile_ids)) for _ in range(width * height)
        ]

    def __len__(self) -> int:
        return len(self.cells)

    def index(self, x: int, y: int) -> CellIndex:
        return y * self.width + x

    def position(self, index: CellIndex) -> tuple[int, int]:
        """Return (x, y) of a cell index."""
        y, x = divmod(index, self.width)
        return x, y

    def cell(self, x: int, y: int) -> CollapseCell:
        return self.cells[self.index(x, y)]

    def neighbors(self, index: CellIndex) -> Iterator[CellIndex]:
        """Yield the index of each in-bounds orthogonal neighbour, N, E, S, W."""
        x, y = self.position(index)
        for direction in DIRECTIONS:
            dx, dy = DIR_OFFSETS[direction]
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                yield ny * self.width + nx

    def collapse(self, index: CellIndex, tile_id: TileId) -> None:
        """Fix a cell to a single tile."""
        cell = self.cells[index]
        cell.possibilities = {tile_id}
        cell.collapsed = True
        cell.resolved_tile = tile_id

    def restrict(self, index: CellIndex, allowed: set[TileId]) -> bool:
        """Intersect a cell's possibilities with allowed.

        Returns:
            True if the possibility set shrank.
        """
        cell = self.cells[index]
        remaining = cell.possibilities & allowed
        if len(remaining) == len(cell.possibilities):
            return False
        cell.possibilities = remaining
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def uncollapsed_indices(self) -> list[CellIndex]:
        return [i for i, cell in enumerate(self.cells) if not cell.collapsed]

    def open_indices(self) -> list[CellIndex]:
        """Uncollapsed cells that still have at least one possibility."""
        return [
            i for i, cell in enumerate(self.cells) if not cell.collapsed and cell.entropy
        ]

    def contradiction_indices(self) -> list[CellIndex]:
        return [i for i, cell in enumerate(self.cells) if cell.is_contradiction]

    @property
    def collapsed_count(self) -> int:
        return sum(1 for cell in self.cells if cell.collapsed)

    @property
    def is_fully_collapsed(self) -> bool:
        return all(cell.collapsed for cell in self.cells)

    def resolved_tiles(self) -> list[list[TileId | None]]:
        """Tile per cell as rows of columns; None for cells never collapsed."""
        return [
            [self.cells[y * self.width + x].resolved_tile for x in range(self.width)]
            for y in range(self.height)
        ]

    def verify_invariants(self) -> None:
        """Check the entropy bookkeeping of every cell.

        Raises AssertionError if a collapsed cell doesn't hold exactly its
        resolved tile, or an uncollapsed cell carries a resolved tile.
        """
        for index, cell in enumerate(self.cells):
            if cell.collapsed:
                assert cell.entropy == 0, f"Collapsed cell {index} has entropy"
                assert cell.possibilities == {cell.resolved_tile}, (
                    f"Collapsed cell {index} holds {cell.possibilities}, "
                    f"resolved to {cell.resolved_tile}"
                )
            else:
                assert cell.entropy == len(cell.possibilities)
                assert cell.resolved_tile is None, (
                    f"Uncollapsed cell {index} has resolved tile {cell.resolved_tile}"
                )
