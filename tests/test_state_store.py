import dataclasses
import threading

import pytest

from crux.codec import decode_game_state
from crux.data_models import Position
from crux.state_store import GameStateStore, StateView


def test_empty_store(store):
    snapshot = store.snapshot()
    assert snapshot.game_state is None
    assert snapshot.connected is False
    assert snapshot.error is None


def test_reader_cannot_mutate_published_players(store, players_buffer):
    store.publish_game_state(decode_game_state(players_buffer))

    mine = store.fetch_state()
    mine.players[0].name = "hacked"
    mine.players[0].position = Position(99.0, 99.0, 99.0)

    fresh = store.fetch_state()
    assert fresh.players[0].name == "Player_5000"
    assert fresh.players[0].position == Position(0.5, 0.0, -4.0)


def test_planets_and_initial_location_are_immutable(store, scenario_buffer):
    store.publish_game_state(decode_game_state(scenario_buffer))
    state = store.fetch_state()

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.planets[0].size = 1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        state.planets[0].colors[0].r = 1
    with pytest.raises(dataclasses.FrozenInstanceError):
        state.initial_player_location.x = 1.0
    with pytest.raises(TypeError):
        state.planets[0] = None


def test_players_replaced_wholesale(scenario_buffer, players_buffer):
    base = decode_game_state(scenario_buffer)
    updated = base.with_players(decode_game_state(players_buffer).players)

    assert updated.planets is base.planets
    assert len(updated.players) == 2
    assert base.players == ()


def test_reset(store, scenario_buffer):
    store.publish_game_state(decode_game_state(scenario_buffer))
    store.set_connected(True)
    store.set_error("boom")
    store.reset()
    assert store.snapshot() == GameStateStore().snapshot()


def test_view_is_read_only(store):
    view = store.view()
    assert isinstance(view, StateView)
    for writer in ("publish_game_state", "set_connected", "set_error", "reset"):
        assert not hasattr(view, writer)

    store.set_connected(True)
    store.set_error("lost")
    assert view.is_connected()
    assert view.get_error() == "lost"


def test_snapshot_never_sees_a_half_published_state(store, scenario_buffer, players_buffer):
    a = decode_game_state(scenario_buffer)
    b = decode_game_state(players_buffer)
    stop = threading.Event()

    def writer():
        while not stop.is_set():
            store.publish_game_state(a)
            store.publish_game_state(b)

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            state = store.fetch_state()
            if state is not None:
                assert state in (a, b)
    finally:
        stop.set()
        thread.join()
