from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# (x, y) grid coordinates; x is the column, y the row.
Position = tuple[int, int]


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def frozen_tiles(tiles: Mapping[UUID, Tile]) -> Mapping[UUID, Tile]:
    """Read-only copy of a tile mapping, keeping its key order."""

    return MappingProxyType(dict(tiles))


class Direction(StrEnum):
    left = "left"
    right = "right"
    up = "up"
    down = "down"


class Tile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    position: Position
    value: int = Field(..., ge=2)

    @field_validator("value")
    @classmethod
    def _value_is_power_of_two(cls, v: int) -> int:
        if not is_power_of_two(v):
            raise ValueError(f"tile value must be a power of two, got {v}")
        return v

    def moved_to(self, position: Position) -> Tile:
        return self.model_copy(update={"position": position})


class TileState(BaseModel):
    """Immutable board snapshot.

    `tiles` is a read-only view in insertion order. Its key order is the
    display/update order, so there is no separate id list that could drift
    from the mapping.
    """

    model_config = ConfigDict(frozen=True)

    tiles: Mapping[UUID, Tile] = Field(default_factory=lambda: MappingProxyType({}))
    has_changed: bool = False
    in_motion: bool = False
    score: int = 0

    @field_validator("tiles")
    @classmethod
    def _freeze_tiles(cls, v: Mapping[UUID, Tile]) -> Mapping[UUID, Tile]:
        return frozen_tiles(v)

    @property
    def order(self) -> tuple[UUID, ...]:
        return tuple(self.tiles)

    @property
    def tile_list(self) -> list[Tile]:
        return list(self.tiles.values())

    def total_value(self) -> int:
        return sum(t.value for t in self.tiles.values())


class GameConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    grid_size: int = Field(4, ge=2, le=32)
    # Upper bound (inclusive) for randomly spawned tile values.
    max_spawn_value: int = Field(4, ge=2)

    @field_validator("max_spawn_value")
    @classmethod
    def _max_spawn_is_power_of_two(cls, v: int) -> int:
        if not is_power_of_two(v):
            raise ValueError(f"max_spawn_value must be a power of two, got {v}")
        return v
