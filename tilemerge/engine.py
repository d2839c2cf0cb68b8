from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from statemachine.exceptions import TransitionNotAllowed

from tilemerge.actions import MarkInitialHandled, MergeTile, SpawnTile, UpdateTile
from tilemerge.fsm import MoveFSM
from tilemerge.grid import Grid, state_to_text
from tilemerge.models import Direction, Tile, TileState
from tilemerge.scheduler import Scheduler
from tilemerge.store import BoardStore


logger = logging.getLogger(__name__)

DEFAULT_ANIMATION_DURATION = 0.1  # seconds
INITIAL_TILE_VALUE = 2
# Spawned values are drawn from 2**1 .. 2**9, capped by the configured maximum.
SPAWN_EXPONENTS = range(1, 10)


def spawn_values(max_value: int) -> list[int]:
    return [2**i for i in SPAWN_EXPONENTS if 2**i <= max_value]


@dataclass(frozen=True, slots=True)
class LineScan:
    """How a direction walks one line and where the surviving tiles land.

    `horizontal` lines are rows (left/right), otherwise columns (up/down).
    `toward_end` directions (right/down) pack tiles against the highest
    index, so scan and target offsets are mirrored.
    """

    horizontal: bool
    toward_end: bool

    def cells(self, line: int, size: int) -> list[int]:
        steps = range(size - 1, -1, -1) if self.toward_end else range(size)
        if self.horizontal:
            return [line * size + i for i in steps]
        return [i * size + line for i in steps]

    def target_index(self, line: int, slot: int, merges: int, size: int) -> int:
        offset = (size - 1) - slot + merges if self.toward_end else slot - merges
        if self.horizontal:
            return line * size + offset
        return line + size * offset


LINE_SCANS: dict[Direction, LineScan] = {
    Direction.left: LineScan(horizontal=True, toward_end=False),
    Direction.right: LineScan(horizontal=True, toward_end=True),
    Direction.up: LineScan(horizontal=False, toward_end=False),
    Direction.down: LineScan(horizontal=False, toward_end=True),
}


@dataclass(frozen=True, slots=True)
class MovePlan:
    direction: Direction
    # Tiles at their new positions, in scan order; merging sources included.
    updates: tuple[Tile, ...]
    # (source, destination) pairs, in scan order.
    merges: tuple[tuple[Tile, Tile], ...]

    @property
    def changes_board(self) -> bool:
        return bool(self.updates)


def plan_move(state: TileState, grid: Grid, direction: Direction) -> MovePlan:
    """Compute every tile's destination and the merges for one move. Pure."""

    scan = LINE_SCANS[direction]
    tile_map = grid.tile_map(state)
    updates: list[Tile] = []
    merges: list[tuple[Tile, Tile]] = []

    for line in range(grid.size):
        line_ids = [tile_map[i] for i in scan.cells(line, grid.size) if tile_map[i] is not None]

        prev: Tile | None = None
        merge_count = 0
        for slot, tile_id in enumerate(line_ids):
            current = state.tiles[tile_id]

            if prev is not None and prev.value == current.value:
                moved = current.moved_to(prev.position)
                updates.append(moved)
                merges.append((moved, prev))
                # A tile produced by a merge does not merge again in this move.
                prev = None
                merge_count += 1
                continue

            target = grid.position(scan.target_index(line, slot, merge_count, grid.size))
            moved = current.moved_to(target)
            prev = moved
            if target != current.position:
                updates.append(moved)

    return MovePlan(direction=direction, updates=tuple(updates), merges=tuple(merges))


class MoveEngine:
    """Turns move commands into store actions and spawns tiles once a move settles."""

    def __init__(
        self,
        store: BoardStore,
        scheduler: Scheduler,
        *,
        rng: random.Random | None = None,
        animation_duration: float = DEFAULT_ANIMATION_DURATION,
    ):
        self.store = store
        self.scheduler = scheduler
        self.animation_duration = animation_duration
        self._rng = rng or random.Random()

    def start(self) -> Tile | None:
        """Spawn the first tile of a freshly configured board; no-op afterwards."""

        if not self.store.initial:
            return None
        tile = self.spawn_random_tile(max_value=INITIAL_TILE_VALUE)
        self.store.dispatch(MarkInitialHandled())
        return tile

    def move(self, direction: Direction | str) -> bool:
        """Start a move. Returns False if another move is still in flight."""

        direction = Direction(direction)
        fsm = MoveFSM(self.store)
        try:
            fsm.begin()
        except TransitionNotAllowed:
            logger.debug("move %s ignored: previous move still in flight", direction.value)
            return False

        plan = plan_move(self.store.state, self.store.grid, direction)
        fsm.sync_motion_to_store()
        for tile in plan.updates:
            self.store.dispatch(UpdateTile(tile=tile))

        epoch = self.store.epoch
        self.scheduler.call_later(self.animation_duration, lambda: self._complete_move(plan, epoch))
        return True

    def _complete_move(self, plan: MovePlan, epoch: int) -> None:
        if epoch != self.store.epoch:
            logger.debug("dropping completion of %s move from a reset or rewound board", plan.direction.value)
            return

        for source, destination in plan.merges:
            self.store.dispatch(MergeTile(source=source, destination=destination))

        fsm = MoveFSM(self.store)
        fsm.settle()
        fsm.sync_motion_to_store()

        if self.store.has_changed:
            self.spawn_random_tile(max_value=self.store.config.max_spawn_value)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "after %s (score=%d):\n%s",
                plan.direction.value,
                self.store.score,
                state_to_text(self.store.state, self.store.config.grid_size),
            )

    def spawn_random_tile(self, *, max_value: int) -> Tile | None:
        empty = self.store.grid.empty_positions(self.store.state)
        if not empty:
            logger.debug("spawn skipped: no empty cell")
            return None

        position = self._rng.choice(empty)
        value = self._rng.choice(spawn_values(max_value))
        action = SpawnTile(position=position, value=value)
        return self.store.dispatch(action).tiles[action.tile_id]
