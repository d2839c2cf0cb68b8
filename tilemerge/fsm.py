from __future__ import annotations

from statemachine import State, StateMachine

from tilemerge.actions import EndMove, StartMove
from tilemerge.store import BoardStore


class MoveFSM(StateMachine):
    """Lifecycle of a single move: idle -> moving -> idle.

    The store's `in_motion` flag is the persisted form of this machine; the
    machine only guards transitions and `sync_motion_to_store` writes the
    result back through the store's actions.
    """

    idle = State("idle", value="idle", initial=True)
    moving = State("moving", value="moving")

    begin = idle.to(moving)
    settle = moving.to(idle)

    def __init__(self, store: BoardStore):
        self.store = store
        super().__init__(start_value="moving" if store.in_motion else "idle")

    @property
    def in_flight(self) -> bool:
        return self.current_state == self.moving

    def sync_motion_to_store(self) -> None:
        if self.in_flight and not self.store.in_motion:
            self.store.dispatch(StartMove())
        elif not self.in_flight and self.store.in_motion:
            self.store.dispatch(EndMove())
