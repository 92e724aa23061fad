import struct

import pytest

from crux.errors import TransportError
from crux.state_store import GameStateStore
from crux.transport import Transport, TransportHandle


class FakeHandle(TransportHandle):
    """Transport handle driven by the test instead of a real socket."""

    def __init__(self, listener):
        self.listener = listener
        self.sent = []
        self.closed = False
        self.fail_sends = False

    def send(self, payload):
        if self.fail_sends:
            raise TransportError("Failed to send: broken pipe")
        self.sent.append(bytes(payload))

    def close(self):
        self.closed = True

    # --- test drivers ---
    def fire_open(self):
        self.listener.on_open()

    def fire_message(self, payload):
        self.listener.on_message(payload)

    def fire_error(self, error=None):
        self.listener.on_error(error or TransportError("WebSocket connection error"))

    def fire_close(self):
        self.listener.on_close()


class FakeTransport(Transport):
    def __init__(self):
        self.handles = []
        self.urls = []

    def open(self, url, listener):
        handle = FakeHandle(listener)
        self.urls.append(url)
        self.handles.append(handle)
        return handle

    @property
    def live_handles(self):
        return [h for h in self.handles if not h.closed]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def store():
    return GameStateStore()


def pack_position(x, y, z):
    return struct.pack("<3f", x, y, z)


def pack_planet(size, colors, module_type, position):
    out = struct.pack("<f", size)
    for r, g, b in colors:
        out += struct.pack("<3B", r, g, b)
    return out + struct.pack("<B", module_type) + pack_position(*position)


def pack_player(player_id, name_bytes, level, position):
    return (struct.pack("<I", player_id) + struct.pack("<Q", len(name_bytes)) + name_bytes
            + struct.pack("<I", level) + pack_position(*position))


@pytest.fixture
def scenario_buffer():
    """One planet, no players, initial location (5, 5, 5)."""
    return (struct.pack("<Q", 1)
            + pack_planet(10.0, [(0, 0, 255), (0, 255, 0), (128, 128, 128)], 2, (1.0, 2.0, 3.0))
            + struct.pack("<Q", 0)
            + pack_position(5.0, 5.0, 5.0))


@pytest.fixture
def players_buffer():
    """No planets, two players."""
    return (struct.pack("<Q", 0)
            + struct.pack("<Q", 2)
            + pack_player(7, "Player_5000".encode("utf-8"), 1, (0.5, 0.0, -4.0))
            + pack_player(8, "Zoë".encode("utf-8"), 12, (1.0, 1.0, 1.0))
            + pack_position(0.0, 0.0, 0.0))
