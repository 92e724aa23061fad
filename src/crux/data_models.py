"""
data_models.py: Data structures for the decoded world state.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Position:
    """
    A point in world space (three float32 components).

    A position decoded off the wire keeps its 12 source bytes in `raw`, so
    re-encoding it reproduces them exactly, NaN payloads included. `raw` takes
    no part in equality.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    raw: Optional[bytes] = field(default=None, compare=False, repr=False)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class Planet:
    """
    Static geography sent by the server. Never changes during a session.
    Colors are ordered: ocean, land, mountain.
    """
    size: float
    colors: Tuple[Color, Color, Color]
    module_type: int
    position: Position


@dataclass
class Player:
    """A connected player. The only record type that is replaced between snapshots."""
    id: int
    name: str
    level: int
    position: Position = field(default_factory=Position)


@dataclass(frozen=True)
class GameState:
    """One full snapshot decoded from a single binary frame."""
    planets: Tuple[Planet, ...] = ()
    players: Tuple[Player, ...] = ()
    initial_player_location: Position = field(default_factory=Position)

    def with_players(self, players: Iterable[Player]) -> "GameState":
        """Returns a new state with the player list replaced wholesale."""
        return replace(self, players=tuple(players))

    def copy_for_reader(self) -> "GameState":
        """Copies the mutable player records so a reader can't write through to us."""
        return self.with_players(replace(p) for p in self.players)


class ConnectionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"           # local close in progress; settles to IDLE
