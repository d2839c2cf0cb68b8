from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

import pytest
from pydantic import ValidationError

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
from tilemerge.models import GameConfig, TileState
from tilemerge.store import BoardStore


def test_new_store_is_empty_and_awaits_first_spawn() -> None:
    store = BoardStore()

    assert store.config == GameConfig(grid_size=4, max_spawn_value=4)
    assert store.tiles == []
    assert store.score == 0
    assert store.initial is True
    assert store.in_motion is False
    assert store.history == ()


def test_spawn_inserts_tile_and_snapshots_after_insert() -> None:
    store = BoardStore()
    action = SpawnTile(position=(2, 1), value=2)

    state = store.dispatch(action)

    assert [t.id for t in store.tiles] == [action.tile_id]
    assert state.tiles[action.tile_id].position == (2, 1)
    assert state.has_changed is False
    assert store.history == (state,)
    assert action.tile_id in store.history[-1].tiles


def test_spawn_generates_distinct_ids() -> None:
    a, b = SpawnTile(position=(0, 0), value=2), SpawnTile(position=(1, 0), value=2)
    assert a.tile_id != b.tile_id


def test_spawn_onto_occupied_cell_is_rejected(place: Callable[..., dict]) -> None:
    store = BoardStore()
    place(store, {(0, 0): 2})

    with pytest.raises(AssertionError, match="occupied"):
        store.dispatch(SpawnTile(position=(0, 0), value=4))


def test_spawn_outside_grid_is_rejected() -> None:
    store = BoardStore(GameConfig(grid_size=3))
    with pytest.raises(AssertionError, match="outside"):
        store.dispatch(SpawnTile(position=(3, 0), value=2))


def test_update_keeps_order_and_marks_changed(place: Callable[..., dict]) -> None:
    store = BoardStore()
    ids = place(store, {(0, 0): 2, (1, 1): 4, (2, 2): 8})
    history_before = store.history
    order_before = store.state.order

    moved = store.state.tiles[ids[(1, 1)]].moved_to((3, 1))
    state = store.dispatch(UpdateTile(tile=moved))

    assert state.order == order_before
    assert state.tiles[moved.id].position == (3, 1)
    assert state.has_changed is True
    assert store.history == history_before


def test_update_of_unknown_tile_is_rejected(place: Callable[..., dict]) -> None:
    store = BoardStore()
    ids = place(store, {(0, 0): 2})
    ghost = store.state.tiles[ids[(0, 0)]].model_copy(update={"id": uuid4()})

    with pytest.raises(AssertionError, match="unknown"):
        store.dispatch(UpdateTile(tile=ghost))


def test_merge_removes_source_and_sums_into_destination(place: Callable[..., dict]) -> None:
    store = BoardStore()
    ids = place(store, {(0, 0): 4, (1, 0): 4, (3, 3): 2})
    destination = store.state.tiles[ids[(0, 0)]]
    source = store.state.tiles[ids[(1, 0)]].moved_to((0, 0))
    store.dispatch(StartMove())
    store.dispatch(UpdateTile(tile=source))

    state = store.dispatch(MergeTile(source=source, destination=destination))

    assert source.id not in state.tiles
    assert state.order == (ids[(0, 0)], ids[(3, 3)])
    merged = state.tiles[destination.id]
    assert merged.value == 8
    assert merged.position == (0, 0)
    assert state.score == 4


def test_merge_with_unknown_source_is_rejected(place: Callable[..., dict]) -> None:
    store = BoardStore()
    ids = place(store, {(0, 0): 2})
    destination = store.state.tiles[ids[(0, 0)]]
    ghost = destination.model_copy(update={"id": uuid4()})

    with pytest.raises(AssertionError, match="unknown source"):
        store.dispatch(MergeTile(source=ghost, destination=destination))


def test_start_and_end_move_toggle_in_motion() -> None:
    store = BoardStore()
    assert store.dispatch(StartMove()).in_motion is True
    assert store.dispatch(EndMove()).in_motion is False


def test_undo_is_noop_with_fewer_than_two_snapshots(place: Callable[..., dict]) -> None:
    store = BoardStore()
    store.dispatch(Undo())
    assert store.state == TileState()

    place(store, {(0, 0): 2})
    before = store.state
    store.dispatch(Undo())
    assert store.state is before
    assert len(store.history) == 1


def test_undo_restores_previous_snapshot(place: Callable[..., dict]) -> None:
    store = BoardStore()
    place(store, {(0, 0): 2})
    first = store.state
    ids = place(store, {(1, 0): 2})
    tile = store.state.tiles[ids[(1, 0)]]
    store.dispatch(UpdateTile(tile=tile.moved_to((3, 0))))

    store.dispatch(Undo())

    assert store.state == first
    assert store.history == (first,)


def test_mark_initial_handled_consumes_flag() -> None:
    store = BoardStore()
    store.dispatch(MarkInitialHandled())
    assert store.initial is False


def test_configure_resets_board_history_and_initial(place: Callable[..., dict]) -> None:
    store = BoardStore()
    place(store, {(0, 0): 2, (1, 0): 4})
    store.dispatch(MarkInitialHandled())
    epoch = store.epoch

    store.dispatch(Configure(config=GameConfig(grid_size=5, max_spawn_value=8)))

    assert store.config.grid_size == 5
    assert store.config.max_spawn_value == 8
    assert store.tiles == []
    assert store.history == ()
    assert store.initial is True
    assert store.epoch == epoch + 1


def test_change_single_config_fields_also_reset(place: Callable[..., dict]) -> None:
    store = BoardStore()
    place(store, {(0, 0): 2})

    store.dispatch(ChangeGridSize(grid_size=6))
    assert store.config == GameConfig(grid_size=6, max_spawn_value=4)
    assert store.tiles == []

    place(store, {(5, 5): 2})
    store.dispatch(ChangeMaxSpawnValue(max_spawn_value=16))
    assert store.config == GameConfig(grid_size=6, max_spawn_value=16)
    assert store.tiles == []
    assert store.initial is True


def test_invalid_config_change_raises_validation_error() -> None:
    store = BoardStore()
    with pytest.raises(ValidationError):
        store.dispatch(ChangeMaxSpawnValue(max_spawn_value=6))
    with pytest.raises(ValidationError):
        store.dispatch(ChangeGridSize(grid_size=1))
    assert store.config == GameConfig()


def test_reset_keeps_configuration(place: Callable[..., dict]) -> None:
    store = BoardStore(GameConfig(grid_size=3, max_spawn_value=2))
    place(store, {(0, 0): 2})
    store.dispatch(MarkInitialHandled())

    store.dispatch(Reset())

    assert store.config == GameConfig(grid_size=3, max_spawn_value=2)
    assert store.tiles == []
    assert store.history == ()
    assert store.initial is True


def test_listeners_see_fully_applied_state_and_can_unsubscribe() -> None:
    store = BoardStore()
    seen: list[tuple[str, int]] = []

    def _listener(action: Action, state: TileState) -> None:
        assert state is store.state
        seen.append((action.name, len(state.tiles)))

    unsubscribe = store.subscribe(_listener)
    store.dispatch(SpawnTile(position=(0, 0), value=2))
    store.dispatch(StartMove())
    unsubscribe()
    store.dispatch(EndMove())

    assert seen == [("spawn_tile", 1), ("start_move", 1)]


def test_unknown_action_raises() -> None:
    store = BoardStore()
    with pytest.raises(ValueError, match="Unknown action"):
        store.dispatch("left")  # type: ignore[arg-type]


def test_undo_that_restores_a_snapshot_advances_epoch(place: Callable[..., dict]) -> None:
    store = BoardStore()
    place(store, {(0, 0): 2})
    epoch = store.epoch

    store.dispatch(Undo())
    assert store.epoch == epoch

    place(store, {(1, 0): 2})
    store.dispatch(Undo())
    assert store.epoch == epoch + 1


def test_history_snapshots_cannot_be_changed_through_live_state(place: Callable[..., dict]) -> None:
    store = BoardStore()
    ids = place(store, {(0, 0): 2})
    snapshot = store.history[0]
    tile = store.state.tiles[ids[(0, 0)]]

    with pytest.raises(TypeError):
        store.state.tiles[uuid4()] = tile  # type: ignore[index]
    with pytest.raises(AttributeError):
        store.state.tiles.clear()  # type: ignore[attr-defined]

    assert list(snapshot.tiles) == [ids[(0, 0)]]
