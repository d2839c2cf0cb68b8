from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union
from uuid import UUID, uuid4

from tilemerge.models import GameConfig, Position, Tile


ActionName = Literal[
    "configure",
    "change_grid_size",
    "change_max_spawn_value",
    "spawn_tile",
    "update_tile",
    "merge_tile",
    "start_move",
    "end_move",
    "undo",
    "mark_initial_handled",
    "reset",
]


@dataclass(frozen=True, slots=True)
class Configure:
    config: GameConfig
    name: ActionName = "configure"


@dataclass(frozen=True, slots=True)
class ChangeGridSize:
    grid_size: int
    name: ActionName = "change_grid_size"


@dataclass(frozen=True, slots=True)
class ChangeMaxSpawnValue:
    max_spawn_value: int
    name: ActionName = "change_max_spawn_value"


@dataclass(frozen=True, slots=True)
class SpawnTile:
    position: Position
    value: int
    tile_id: UUID = field(default_factory=uuid4)
    name: ActionName = "spawn_tile"


@dataclass(frozen=True, slots=True)
class UpdateTile:
    tile: Tile
    name: ActionName = "update_tile"


@dataclass(frozen=True, slots=True)
class MergeTile:
    """Fold `source` into `destination`; `source` disappears from the board."""

    source: Tile
    destination: Tile
    name: ActionName = "merge_tile"


@dataclass(frozen=True, slots=True)
class StartMove:
    name: ActionName = "start_move"


@dataclass(frozen=True, slots=True)
class EndMove:
    name: ActionName = "end_move"


@dataclass(frozen=True, slots=True)
class Undo:
    name: ActionName = "undo"


@dataclass(frozen=True, slots=True)
class MarkInitialHandled:
    name: ActionName = "mark_initial_handled"


@dataclass(frozen=True, slots=True)
class Reset:
    name: ActionName = "reset"


Action = Union[
    Configure,
    ChangeGridSize,
    ChangeMaxSpawnValue,
    SpawnTile,
    UpdateTile,
    MergeTile,
    StartMove,
    EndMove,
    Undo,
    MarkInitialHandled,
    Reset,
]
