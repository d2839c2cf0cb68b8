from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

from tilemerge.actions import Action, EndMove
from tilemerge.models import Direction, TileState
from tilemerge.session import GameSession


@dataclass(slots=True)
class MoveRecord:
    direction: Direction
    accepted: bool
    state: TileState


@dataclass(slots=True)
class PlayLog:
    records: list[MoveRecord] = field(default_factory=list)

    @property
    def final_state(self) -> TileState | None:
        return self.records[-1].state if self.records else None


DEFAULT_SETTLE_TIMEOUT = 5.0


async def play_moves(
    session: GameSession,
    directions: Iterable[Direction | str],
    *,
    settle_timeout: float = DEFAULT_SETTLE_TIMEOUT,
) -> PlayLog:
    """Feed moves one at a time, waiting for each to settle before the next.

    The session must use a scheduler backed by the running event loop. A move
    that has not settled within `settle_timeout` seconds raises `TimeoutError`.
    Spawning happens inside the same callback that ends the move, so the
    recorded state already includes the new tile.
    """

    log = PlayLog()
    settled = asyncio.Event()

    def _on_action(action: Action, state: TileState) -> None:
        if isinstance(action, EndMove):
            settled.set()

    unsubscribe = session.subscribe(_on_action)
    try:
        session.start()
        for raw in directions:
            direction = Direction(raw)
            settled.clear()
            accepted = session.move(direction)
            if accepted:
                await asyncio.wait_for(settled.wait(), timeout=settle_timeout)
            log.records.append(MoveRecord(direction=direction, accepted=accepted, state=session.state))
    finally:
        unsubscribe()
    return log
