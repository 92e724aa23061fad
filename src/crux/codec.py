"""
codec.py: Binary wire format shared by the client and the reference server.

Snapshot layout (all scalars little-endian, positional, no tags):

    u64 planet_count
    planet_count x Planet:
        f32 size
        3 x Color (u8 r, u8 g, u8 b)
        u8  module_type
        Position (f32 x, f32 y, f32 z)
    u64 player_count
    player_count x Player:
        u32 id
        u64 name_len, name_len bytes of UTF-8
        u32 level
        Position
    Position initial_player_location

A position update (the only client -> server message) is a bare Position,
12 bytes, no header.
"""

import math
import struct
from typing import List

from .constants import PLANET_RECORD_SIZE, PLAYER_MIN_RECORD_SIZE, POSITION_SIZE
from .data_models import Color, GameState, Planet, Player, Position
from .errors import InvalidTextError, ProtocolViolation, TruncatedError

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_F32 = struct.Struct("<f")
_COLOR = struct.Struct("<3B")
_POSITION = struct.Struct("<3f")
_DOUBLES = struct.Struct("<3d")


class _Cursor:
    """Linear reader over a byte buffer. Every read is bounds-checked first."""

    def __init__(self, buffer: bytes):
        self.buffer = memoryview(buffer)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.buffer) - self.offset

    def require(self, size: int):
        if size > self.remaining:
            raise TruncatedError(size, self.offset, self.remaining)

    def unpack(self, fmt: struct.Struct) -> tuple:
        self.require(fmt.size)
        values = fmt.unpack_from(self.buffer, self.offset)
        self.offset += fmt.size
        return values

    def read_u8(self) -> int:
        return self.unpack(_U8)[0]

    def read_u32(self) -> int:
        return self.unpack(_U32)[0]

    def read_u64(self) -> int:
        return self.unpack(_U64)[0]

    def read_f32(self) -> float:
        return self.unpack(_F32)[0]

    def read_position(self) -> Position:
        start = self.offset
        x, y, z = self.unpack(_POSITION)
        return Position(x, y, z, raw=bytes(self.buffer[start:self.offset]))

    def read_color(self) -> Color:
        return Color(*self.unpack(_COLOR))

    def read_count(self, min_record_size: int) -> int:
        """Reads a u64 element count and checks the records could possibly fit."""
        start = self.offset
        count = self.read_u64()
        if count * min_record_size > self.remaining:
            raise TruncatedError(count * min_record_size, start + _U64.size, self.remaining)
        return count

    def read_string(self) -> str:
        length = self.read_u64()
        self.require(length)
        start = self.offset
        raw = bytes(self.buffer[start:start + length])
        self.offset += length
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidTextError(start, e.reason) from e


def _read_planet(cursor: _Cursor) -> Planet:
    size = cursor.read_f32()
    colors = (cursor.read_color(), cursor.read_color(), cursor.read_color())
    module_type = cursor.read_u8()
    position = cursor.read_position()
    return Planet(size=size, colors=colors, module_type=module_type, position=position)


def _read_player(cursor: _Cursor) -> Player:
    player_id = cursor.read_u32()
    name = cursor.read_string()
    level = cursor.read_u32()
    position = cursor.read_position()
    return Player(id=player_id, name=name, level=level, position=position)


def decode_game_state(buffer: bytes) -> GameState:
    """
    Decodes one full snapshot.

    Raises TruncatedError if the buffer ends before any declared field and
    InvalidTextError if a player name is not valid UTF-8. Values are passed
    through unvalidated; trailing bytes after the last field are ignored.
    """
    cursor = _Cursor(buffer)

    planet_count = cursor.read_count(PLANET_RECORD_SIZE)
    planets = tuple(_read_planet(cursor) for _ in range(planet_count))

    player_count = cursor.read_count(PLAYER_MIN_RECORD_SIZE)
    players: List[Player] = [_read_player(cursor) for _ in range(player_count)]

    initial_player_location = cursor.read_position()

    return GameState(
        planets=planets,
        players=tuple(players),
        initial_player_location=initial_player_location,
    )


def _to_f32(value: float) -> float:
    """Rounds values outside the float32 range to infinity instead of raising."""
    value = float(value)
    try:
        _F32.pack(value)
    except OverflowError:
        return math.copysign(math.inf, value)
    return value


def encode_position(x: float, y: float, z: float) -> bytes:
    """Packs a position update: always exactly 12 bytes."""
    return _POSITION.pack(_to_f32(x), _to_f32(y), _to_f32(z))


def decode_position(payload: bytes) -> Position:
    """Parses an inbound position update on the server side."""
    if len(payload) != POSITION_SIZE:
        raise ProtocolViolation(
            f"position update must be {POSITION_SIZE} bytes, got {len(payload)}")
    return Position(*_POSITION.unpack(payload), raw=bytes(payload))


def _pack_position(position: Position) -> bytes:
    raw = position.raw
    # raw goes stale if the coordinates were replaced after decoding
    if raw is not None and _DOUBLES.pack(*_POSITION.unpack(raw)) == _DOUBLES.pack(*position.as_tuple()):
        return raw
    return encode_position(position.x, position.y, position.z)


def encode_game_state(state: GameState) -> bytes:
    """Serializes a snapshot in the layout decode_game_state expects."""
    parts = [_U64.pack(len(state.planets))]
    for planet in state.planets:
        parts.append(_F32.pack(_to_f32(planet.size)))
        for color in planet.colors:
            parts.append(_COLOR.pack(color.r, color.g, color.b))
        parts.append(_U8.pack(planet.module_type))
        parts.append(_pack_position(planet.position))

    parts.append(_U64.pack(len(state.players)))
    for player in state.players:
        name = player.name.encode("utf-8")
        parts.append(_U32.pack(player.id))
        parts.append(_U64.pack(len(name)))
        parts.append(name)
        parts.append(_U32.pack(player.level))
        parts.append(_pack_position(player.position))

    parts.append(_pack_position(state.initial_player_location))
    return b"".join(parts)
