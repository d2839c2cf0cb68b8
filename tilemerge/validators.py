"""Structural board invariants.

The store runs `DEFAULT_PIPELINE` after every applied action in debug builds;
a violation is a programming error in the engine or a caller, never a
user-facing failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass

from tilemerge.grid import Grid
from tilemerge.models import TileState, is_power_of_two


class InvariantError(AssertionError):
    pass


class BoardValidator(ABC):
    """A small, composable check over one board snapshot."""

    @abstractmethod
    def validate(self, *, state: TileState, grid: Grid) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class TileKeyValidator(BoardValidator):
    """Every tile is stored under its own id."""

    def validate(self, *, state: TileState, grid: Grid) -> None:
        for key, tile in state.tiles.items():
            if key != tile.id:
                raise InvariantError(f"tile {tile.id} stored under key {key}")


@dataclass(frozen=True, slots=True)
class BoundsValidator(BoardValidator):
    def validate(self, *, state: TileState, grid: Grid) -> None:
        for tile in state.tiles.values():
            if not grid.contains(tile.position):
                raise InvariantError(f"tile {tile.id} at {tile.position} is outside a {grid.size}x{grid.size} grid")


@dataclass(frozen=True, slots=True)
class TileValueValidator(BoardValidator):
    def validate(self, *, state: TileState, grid: Grid) -> None:
        for tile in state.tiles.values():
            if tile.value < 2 or not is_power_of_two(tile.value):
                raise InvariantError(f"tile {tile.id} has invalid value {tile.value}")


@dataclass(frozen=True, slots=True)
class NoOverlapValidator(BoardValidator):
    """At rest, no two tiles share a cell.

    While a move is animating, a merging tile sits on top of its destination
    until the deferred merge lands, so the check is skipped.
    """

    def validate(self, *, state: TileState, grid: Grid) -> None:
        if state.in_motion:
            return
        counts = Counter(t.position for t in state.tiles.values())
        shared = sorted(pos for pos, n in counts.items() if n > 1)
        if shared:
            raise InvariantError(f"cells occupied by more than one tile: {shared}")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[BoardValidator, ...]

    def validate(self, *, state: TileState, grid: Grid) -> None:
        for v in self.validators:
            v.validate(state=state, grid=grid)


DEFAULT_PIPELINE = ValidatorPipeline(
    validators=(
        TileKeyValidator(),
        BoundsValidator(),
        TileValueValidator(),
        NoOverlapValidator(),
    )
)
