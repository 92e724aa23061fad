"""
world.py: The authoritative world held by the reference server.
"""

import math
import random
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    DEFAULT_PLAYER_LEVEL, MODULE_TYPE_COUNT, PLANET_COUNT, PLANET_MAX_HEIGHT,
    PLANET_MAX_SIZE, PLANET_MIN_SIZE, PLANET_RING_JITTER, PLANET_RING_RADIUS
)
from .data_models import Color, GameState, Planet, Player, Position


def _random_color(rng: random.Random) -> Color:
    return Color(rng.randrange(255), rng.randrange(255), rng.randrange(255))


def generate_planets(rng: random.Random, count: int = PLANET_COUNT) -> List[Planet]:
    """Places `count` planets on a jittered ring around the origin."""
    planets = []
    for i in range(count):
        angle = i * math.pi * 2.0 / count
        radius = PLANET_RING_RADIUS + rng.uniform(0.0, PLANET_RING_JITTER)
        planets.append(Planet(
            size=rng.uniform(PLANET_MIN_SIZE, PLANET_MAX_SIZE),
            colors=(_random_color(rng), _random_color(rng), _random_color(rng)),
            module_type=rng.randrange(MODULE_TYPE_COUNT),
            position=Position(
                x=math.cos(angle) * radius,
                y=rng.uniform(-PLANET_MAX_HEIGHT, PLANET_MAX_HEIGHT),
                z=math.sin(angle) * radius,
            ),
        ))
    return planets


@dataclass
class ServerWorld:
    """
    Planets are fixed at creation; players come and go with their connections.
    Keyed by connection id (the remote address).
    """
    planets: List[Planet] = field(default_factory=list)
    initial_player_location: Position = field(default_factory=Position)
    players: Dict[str, Player] = field(default_factory=dict)
    next_player_id: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def create(cls, seed: Optional[int] = None) -> "ServerWorld":
        return cls(planets=generate_planets(random.Random(seed)))

    def add_player(self, connection_id: str, name: str) -> Player:
        with self.lock:
            player = Player(id=self.next_player_id, name=name, level=DEFAULT_PLAYER_LEVEL,
                            position=self.initial_player_location)
            self.next_player_id += 1
            self.players[connection_id] = player
            return player

    def remove_player(self, connection_id: str) -> Optional[Player]:
        with self.lock:
            return self.players.pop(connection_id, None)

    def update_player_position(self, connection_id: str, position: Position) -> bool:
        with self.lock:
            player = self.players.get(connection_id)
            if player is None:
                return False
            player.position = position
            return True

    def snapshot(self) -> GameState:
        """A self-contained copy safe to encode outside the lock."""
        with self.lock:
            return GameState(
                planets=tuple(self.planets),
                players=tuple(Player(p.id, p.name, p.level, p.position)
                              for p in self.players.values()),
                initial_player_location=self.initial_player_location,
            )
