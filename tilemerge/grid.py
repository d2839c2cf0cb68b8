from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from tilemerge.models import Position, TileState


@dataclass(frozen=True, slots=True)
class Grid:
    """Row-major N x N grid geometry.

    Cell index `i` maps to position `(i % size, i // size)`.
    """

    size: int

    @property
    def capacity(self) -> int:
        return self.size * self.size

    def index(self, position: Position) -> int:
        x, y = position
        return y * self.size + x

    def position(self, index: int) -> Position:
        return index % self.size, index // self.size

    def contains(self, position: Position) -> bool:
        x, y = position
        return 0 <= x < self.size and 0 <= y < self.size

    def tile_map(self, state: TileState) -> list[UUID | None]:
        """Dense map from cell index to the id of the tile occupying it."""

        cells: list[UUID | None] = [None] * self.capacity
        for tile_id, tile in state.tiles.items():
            cells[self.index(tile.position)] = tile_id
        return cells

    def empty_positions(self, state: TileState) -> list[Position]:
        return [self.position(i) for i, tile_id in enumerate(self.tile_map(state)) if tile_id is None]

    def is_free(self, state: TileState, position: Position) -> bool:
        return all(t.position != position for t in state.tiles.values())


def state_to_text(state: TileState, grid_size: int) -> str:
    """Render a board as fixed-width text, one row per line ('.' for empty cells)."""

    grid = Grid(grid_size)
    values: list[int | None] = [None] * grid.capacity
    for tile in state.tiles.values():
        values[grid.index(tile.position)] = tile.value

    width = max([len(str(v)) for v in values if v is not None] or [1])
    lines: list[str] = []
    for y in range(grid_size):
        row = values[y * grid_size : (y + 1) * grid_size]
        lines.append(" ".join(("." if v is None else str(v)).rjust(width) for v in row))
    return "\n".join(lines)
