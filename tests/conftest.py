from __future__ import annotations

import os
import random
from collections.abc import Callable
from pathlib import Path
from uuid import UUID

import pytest

from tilemerge.actions import SpawnTile
from tilemerge.models import GameConfig, Position
from tilemerge.scheduler import ManualScheduler
from tilemerge.session import GameSession
from tilemerge.store import BoardStore


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (e.g. to turn on TILEMERGE_* overrides).

    In CI we don't auto-load `.env` so runs stay hermetic unless explicitly
    opted in with TILEMERGE_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("TILEMERGE_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def session(scheduler: ManualScheduler) -> GameSession:
    """4x4 session on a virtual clock with a seeded RNG."""

    return GameSession(GameConfig(grid_size=4, max_spawn_value=4), scheduler=scheduler, rng=random.Random(1234))


PlaceTiles = Callable[[BoardStore, dict[Position, int]], dict[Position, UUID]]


@pytest.fixture()
def place() -> PlaceTiles:
    """Put tiles at exact positions through the store's spawn action.

    Returns position -> tile id. Each placement adds a history snapshot,
    just like a regular spawn.
    """

    def _place(store: BoardStore, layout: dict[Position, int]) -> dict[Position, UUID]:
        ids: dict[Position, UUID] = {}
        for position, value in layout.items():
            action = SpawnTile(position=position, value=value)
            store.dispatch(action)
            ids[position] = action.tile_id
        return ids

    return _place
