import math

from crux.codec import decode_game_state, encode_game_state
from crux.constants import (
    MODULE_TYPE_COUNT, PLANET_COUNT, PLANET_MAX_HEIGHT, PLANET_MAX_SIZE, PLANET_MIN_SIZE,
    PLANET_RING_JITTER, PLANET_RING_RADIUS
)
from crux.data_models import Position
from crux.world import ServerWorld


def test_generated_planets_stay_in_bounds():
    world = ServerWorld.create(seed=42)
    assert len(world.planets) == PLANET_COUNT
    for planet in world.planets:
        radius = math.hypot(planet.position.x, planet.position.z)
        assert PLANET_RING_RADIUS - 1e-6 <= radius <= PLANET_RING_RADIUS + PLANET_RING_JITTER + 1e-6
        assert PLANET_MIN_SIZE <= planet.size <= PLANET_MAX_SIZE
        assert -PLANET_MAX_HEIGHT <= planet.position.y <= PLANET_MAX_HEIGHT
        assert 0 <= planet.module_type < MODULE_TYPE_COUNT
        assert len(planet.colors) == 3


def test_same_seed_same_world():
    assert ServerWorld.create(seed=1).planets == ServerWorld.create(seed=1).planets


def test_players_join_move_and_leave():
    world = ServerWorld.create(seed=3)
    first = world.add_player("127.0.0.1:5000", "Player_5000")
    second = world.add_player("127.0.0.1:5001", "Player_5001")
    assert first.id != second.id
    assert first.level == 1

    assert world.update_player_position("127.0.0.1:5000", Position(1.0, 2.0, 3.0))
    assert not world.update_player_position("unknown", Position())

    snapshot = world.snapshot()
    assert [p.name for p in snapshot.players] == ["Player_5000", "Player_5001"]
    assert snapshot.players[0].position == Position(1.0, 2.0, 3.0)

    assert world.remove_player("127.0.0.1:5000").name == "Player_5000"
    assert world.remove_player("127.0.0.1:5000") is None
    assert [p.id for p in world.snapshot().players] == [second.id]


def test_snapshot_is_detached_from_world():
    world = ServerWorld.create(seed=3)
    world.add_player("a", "A")
    snapshot = world.snapshot()
    world.update_player_position("a", Position(9.0, 9.0, 9.0))
    assert snapshot.players[0].position == Position()


def test_snapshot_survives_the_wire():
    world = ServerWorld.create(seed=5)
    world.add_player("a", "Player_1")
    decoded = decode_game_state(encode_game_state(world.snapshot()))
    assert len(decoded.planets) == PLANET_COUNT
    assert decoded.players[0].name == "Player_1"
    for sent, received in zip(world.planets, decoded.planets):
        assert received.colors == sent.colors
        assert received.module_type == sent.module_type
        assert math.isclose(received.size, sent.size, rel_tol=1e-6)
