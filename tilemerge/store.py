from __future__ import annotations

import logging
from collections.abc import Callable

from tilemerge.actions import (
    Action,
    ChangeGridSize,
    ChangeMaxSpawnValue,
    Configure,
    EndMove,
    MarkInitialHandled,
    MergeTile,
    Reset,
    SpawnTile,
    StartMove,
    Undo,
    UpdateTile,
)
from tilemerge.grid import Grid
from tilemerge.models import GameConfig, Tile, TileState, frozen_tiles
from tilemerge.validators import DEFAULT_PIPELINE, ValidatorPipeline


logger = logging.getLogger(__name__)

Listener = Callable[[Action, TileState], None]


class BoardStore:
    """Canonical game state; the only place it changes is `dispatch`.

    Each action is applied in full before any listener runs, so observers
    never see a half-applied transition.
    """

    def __init__(self, config: GameConfig | None = None, *, validators: ValidatorPipeline | None = DEFAULT_PIPELINE):
        self._config = config or GameConfig()
        self._state = TileState()
        self._history: list[TileState] = []
        self._initial = True
        self._epoch = 0
        self._validators = validators
        self._listeners: list[Listener] = []

    # -- read accessors -------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def grid(self) -> Grid:
        return Grid(self._config.grid_size)

    @property
    def state(self) -> TileState:
        return self._state

    @property
    def tiles(self) -> list[Tile]:
        return self._state.tile_list

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def in_motion(self) -> bool:
        return self._state.in_motion

    @property
    def has_changed(self) -> bool:
        return self._state.has_changed

    @property
    def initial(self) -> bool:
        return self._initial

    @property
    def history(self) -> tuple[TileState, ...]:
        return tuple(self._history)

    @property
    def epoch(self) -> int:
        return self._epoch

    # -- observers ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- transitions ----------------------------------------------------------

    def dispatch(self, action: Action) -> TileState:
        if isinstance(action, Configure):
            self._reset_board(config=action.config)
        elif isinstance(action, ChangeGridSize):
            self._reset_board(config=self._config.model_copy(update={"grid_size": action.grid_size}))
        elif isinstance(action, ChangeMaxSpawnValue):
            self._reset_board(config=self._config.model_copy(update={"max_spawn_value": action.max_spawn_value}))
        elif isinstance(action, Reset):
            self._reset_board(config=self._config)
        elif isinstance(action, SpawnTile):
            self._spawn(action)
        elif isinstance(action, UpdateTile):
            self._update(action.tile)
        elif isinstance(action, MergeTile):
            self._merge(source=action.source, destination=action.destination)
        elif isinstance(action, StartMove):
            self._state = self._state.model_copy(update={"in_motion": True})
        elif isinstance(action, EndMove):
            self._state = self._state.model_copy(update={"in_motion": False})
        elif isinstance(action, Undo):
            self._undo()
        elif isinstance(action, MarkInitialHandled):
            self._initial = False
        else:
            raise ValueError(f"Unknown action: {action!r}")

        if __debug__ and self._validators is not None:
            self._validators.validate(state=self._state, grid=self.grid)

        for listener in list(self._listeners):
            listener(action, self._state)
        return self._state

    def _reset_board(self, *, config: GameConfig) -> None:
        # model_copy skips validation; round-trip so bad sizes fail loudly.
        self._config = GameConfig.model_validate(config.model_dump())
        self._state = TileState()
        self._history = []
        self._initial = True
        self._epoch += 1
        logger.debug(
            "board reset (grid_size=%d, max_spawn_value=%d, epoch=%d)",
            self._config.grid_size,
            self._config.max_spawn_value,
            self._epoch,
        )

    def _spawn(self, action: SpawnTile) -> None:
        assert self.grid.contains(action.position), f"spawn outside grid: {action.position}"
        assert self.grid.is_free(self._state, action.position), f"spawn onto occupied cell: {action.position}"
        assert action.tile_id not in self._state.tiles, f"duplicate tile id: {action.tile_id}"

        tile = Tile(id=action.tile_id, position=action.position, value=action.value)
        tiles = dict(self._state.tiles)
        tiles[tile.id] = tile
        self._state = self._state.model_copy(update={"tiles": frozen_tiles(tiles), "has_changed": False})
        # Snapshot is taken after the new tile is on the board.
        self._history.append(self._state)

    def _update(self, tile: Tile) -> None:
        assert tile.id in self._state.tiles, f"update of unknown tile: {tile.id}"

        tiles = dict(self._state.tiles)
        tiles[tile.id] = tile
        self._state = self._state.model_copy(update={"tiles": frozen_tiles(tiles), "has_changed": True})

    def _merge(self, *, source: Tile, destination: Tile) -> None:
        assert source.id != destination.id, f"tile merged into itself: {source.id}"
        assert source.id in self._state.tiles, f"merge of unknown source tile: {source.id}"
        assert destination.id in self._state.tiles, f"merge into unknown destination tile: {destination.id}"

        current = self._state.tiles[destination.id]
        tiles = {k: v for k, v in self._state.tiles.items() if k != source.id}
        tiles[destination.id] = current.model_copy(update={"value": source.value + destination.value})
        self._state = self._state.model_copy(
            update={"tiles": frozen_tiles(tiles), "score": self._state.score + source.value}
        )

    def _undo(self) -> None:
        if len(self._history) < 2:
            logger.debug("undo ignored: %d snapshot(s) in history", len(self._history))
            return
        self._history.pop()
        self._state = self._history[-1]
        # A completion still pending for the discarded move must not land here.
        self._epoch += 1
