from __future__ import annotations

import os
from dataclasses import dataclass

from tilemerge.models import GameConfig


@dataclass(frozen=True, slots=True)
class Settings:
    grid_size: int = 4
    max_spawn_value: int = 4
    animation_duration_ms: int = 100
    # Fixed seed makes spawns reproducible; None draws from OS entropy.
    seed: int | None = None

    def game_config(self) -> GameConfig:
        return GameConfig(grid_size=self.grid_size, max_spawn_value=self.max_spawn_value)


def _int_from_env(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def settings_from_env() -> Settings:
    defaults = Settings()
    animation_ms = _int_from_env("TILEMERGE_ANIMATION_MS", defaults.animation_duration_ms)
    if animation_ms is not None and animation_ms < 0:
        raise ValueError(f"TILEMERGE_ANIMATION_MS must be >= 0, got {animation_ms}")

    return Settings(
        grid_size=_int_from_env("TILEMERGE_GRID_SIZE", defaults.grid_size),  # type: ignore[arg-type]
        max_spawn_value=_int_from_env("TILEMERGE_MAX_SPAWN_VALUE", defaults.max_spawn_value),  # type: ignore[arg-type]
        animation_duration_ms=animation_ms,  # type: ignore[arg-type]
        seed=_int_from_env("TILEMERGE_SEED", None),
    )
