from __future__ import annotations

import logging
import random
from collections.abc import Callable

from tilemerge.actions import ChangeGridSize, ChangeMaxSpawnValue, Configure, Reset, Undo
from tilemerge.config import Settings
from tilemerge.engine import DEFAULT_ANIMATION_DURATION, MoveEngine
from tilemerge.models import Direction, GameConfig, Tile, TileState
from tilemerge.scheduler import AsyncioScheduler, Scheduler
from tilemerge.store import BoardStore, Listener


logger = logging.getLogger(__name__)


class GameSession:
    """One player's game: the store, the engine driving it, and their clock.

    This is the surface a renderer/input layer talks to. Nothing here is
    global; create one session per board.

    `start()` must be called after construction and after every
    reconfiguration or reset to place the first tile.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        animation_duration: float = DEFAULT_ANIMATION_DURATION,
    ):
        self.store = BoardStore(config)
        self.engine = MoveEngine(
            self.store,
            scheduler or AsyncioScheduler(),
            rng=rng,
            animation_duration=animation_duration,
        )

    @classmethod
    def from_settings(cls, settings: Settings, *, scheduler: Scheduler | None = None) -> GameSession:
        return cls(
            settings.game_config(),
            scheduler=scheduler,
            rng=random.Random(settings.seed),
            animation_duration=settings.animation_duration_ms / 1000.0,
        )

    # -- read accessors -------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self.store.config

    @property
    def state(self) -> TileState:
        return self.store.state

    @property
    def tiles(self) -> list[Tile]:
        return self.store.tiles

    @property
    def score(self) -> int:
        return self.store.score

    @property
    def in_motion(self) -> bool:
        return self.store.in_motion

    @property
    def initial(self) -> bool:
        return self.store.initial

    @property
    def can_undo(self) -> bool:
        return not self.store.in_motion and len(self.store.history) >= 2

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # -- commands -------------------------------------------------------------

    def start(self) -> Tile | None:
        return self.engine.start()

    def move(self, direction: Direction | str) -> bool:
        return self.engine.move(direction)

    def move_left(self) -> bool:
        return self.engine.move(Direction.left)

    def move_right(self) -> bool:
        return self.engine.move(Direction.right)

    def move_up(self) -> bool:
        return self.engine.move(Direction.up)

    def move_down(self) -> bool:
        return self.engine.move(Direction.down)

    def undo(self) -> None:
        if self.store.in_motion:
            # Restoring mid-move would strand the pending merges.
            logger.debug("undo ignored while a move is in flight")
            return
        self.store.dispatch(Undo())

    def set_configuration(self, grid_size: int, max_spawn_value: int) -> None:
        self.store.dispatch(Configure(config=GameConfig(grid_size=grid_size, max_spawn_value=max_spawn_value)))

    def change_grid_size(self, grid_size: int) -> None:
        self.store.dispatch(ChangeGridSize(grid_size=grid_size))

    def change_max_spawn_value(self, max_spawn_value: int) -> None:
        self.store.dispatch(ChangeMaxSpawnValue(max_spawn_value=max_spawn_value))

    def reset(self) -> None:
        self.store.dispatch(Reset())
