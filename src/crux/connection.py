"""
connection.py: Owns the single logical connection to the simulation server.

Lifecycle:

    IDLE --connect--> CONNECTING --open--> OPEN --close--> IDLE
    CONNECTING/OPEN --error--> IDLE              (error recorded)
    CONNECTING/OPEN --disconnect--> CLOSED --closed--> IDLE

At most one attempt or connection is live at any time. Each attempt is
tagged with a generation number and its transport callbacks are ignored
once a later connect/disconnect has superseded it.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from .codec import decode_game_state, encode_position
from .constants import DEFAULT_SERVER_URL
from .data_models import ConnectionState
from .errors import DecodeError, ProtocolViolation, TransportError
from .state_store import GameStateStore
from .transport import Frame, Transport, TransportHandle, TransportListener, WebSocketTransport

logger = logging.getLogger(__name__)


class ConnectionEvent(Enum):
    CONNECT = "connect"
    OPEN = "open"
    ERROR = "error"
    CLOSE = "close"
    DISCONNECT = "disconnect"
    CLOSED = "closed"


_S = ConnectionState
_E = ConnectionEvent

TRANSITIONS = {
    (_S.IDLE, _E.CONNECT): _S.CONNECTING,
    (_S.CLOSED, _E.CONNECT): _S.CONNECTING,
    (_S.CONNECTING, _E.OPEN): _S.OPEN,
    (_S.CONNECTING, _E.ERROR): _S.IDLE,
    (_S.OPEN, _E.ERROR): _S.IDLE,
    (_S.CONNECTING, _E.CLOSE): _S.IDLE,
    (_S.OPEN, _E.CLOSE): _S.IDLE,
    (_S.CONNECTING, _E.DISCONNECT): _S.CLOSED,
    (_S.OPEN, _E.DISCONNECT): _S.CLOSED,
    (_S.CLOSED, _E.CLOSED): _S.IDLE,
}


class _AttemptListener(TransportListener):
    """Routes transport callbacks back to the manager, tagged with their attempt."""

    def __init__(self, manager: "ConnectionManager", generation: int):
        self._manager = manager
        self._generation = generation

    def on_open(self):
        self._manager._handle_open(self._generation)

    def on_message(self, payload: Frame):
        self._manager._handle_message(self._generation, payload)

    def on_error(self, error: Exception):
        self._manager._handle_error(self._generation, error)

    def on_close(self):
        self._manager._handle_close(self._generation)


class ConnectionManager:
    def __init__(self, url: str = DEFAULT_SERVER_URL,
                 store: Optional[GameStateStore] = None,
                 transport: Optional[Transport] = None):
        self.url = url
        self.store = store if store is not None else GameStateStore()
        self.transport = transport if transport is not None else WebSocketTransport()

        # RLock: a transport may fire callbacks synchronously from open()/close()
        self._lock = threading.RLock()
        self._reconnect_lock = threading.Lock()
        self._state = ConnectionState.IDLE
        self._handle: Optional[TransportHandle] = None
        self._generation = 0

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _transition(self, event: ConnectionEvent) -> bool:
        new_state = TRANSITIONS.get((self._state, event))
        if new_state is None:
            logger.debug("Ignoring %s while %s", event.value, self._state.value)
            return False
        logger.debug("%s --%s--> %s", self._state.value, event.value, new_state.value)
        self._state = new_state
        self.store.set_connected(new_state is ConnectionState.OPEN)
        return True

    # ----------------- Public API -----------------

    def connect(self) -> Optional[TransportHandle]:
        """
        Starts a connection attempt unless one is already live.

        Returns the live attempt's handle, or None if the attempt failed
        before a handle existed. transport.open() must not block: it runs
        under the lock so a concurrent caller never sees an attempt without
        its handle.
        """
        with self._lock:
            if self._state in (ConnectionState.CONNECTING, ConnectionState.OPEN):
                logger.info("Already connected or connecting, skipping")
                return self._handle

            stray = self._handle
            self._handle = None
            self._generation += 1
            generation = self._generation
            self._transition(ConnectionEvent.CONNECT)

            logger.info("Connecting to Crux server at %s", self.url)
            abandoned = None
            try:
                handle = self.transport.open(self.url, _AttemptListener(self, generation))
            except (TransportError, OSError) as e:
                self._handle_error(generation, e)
                handle = None
            else:
                if generation != self._generation:
                    # Superseded by a callback that ran inside open()
                    abandoned = handle
                    handle = None
                elif self._state in (ConnectionState.CONNECTING, ConnectionState.OPEN):
                    self._handle = handle
                else:
                    # Already failed while open() was running
                    handle = None

        if stray is not None:
            self._close_handle(stray)
        if abandoned is not None:
            self._close_handle(abandoned)
        return handle

    def disconnect(self):
        """Closes any live attempt or connection and returns to IDLE."""
        with self._lock:
            handle = self._handle
            self._handle = None
            self._generation += 1
            generation = self._generation
            self._transition(ConnectionEvent.DISCONNECT)

        if handle is not None:
            logger.info("Closing WebSocket connection...")
            self._close_handle(handle)

        with self._lock:
            if generation == self._generation:
                self._transition(ConnectionEvent.CLOSED)

    def reconnect(self) -> Optional[TransportHandle]:
        """Force-closes whatever is live, then connects again."""
        with self._reconnect_lock:
            self.disconnect()
            return self.connect()

    def send_position(self, x: float, y: float, z: float) -> bool:
        """
        Sends a 12-byte position update if the connection is open.
        Returns True only when the bytes were handed to the transport.
        """
        with self._lock:
            if self._state is not ConnectionState.OPEN or self._handle is None:
                return False
            handle = self._handle

        payload = encode_position(x, y, z)
        try:
            handle.send(payload)
        except TransportError as e:
            logger.warning("Error sending position: %s", e)
            self.store.set_error(str(e))
            return False
        return True

    def shutdown(self):
        """Process teardown: drop the connection and clear published state."""
        self.disconnect()
        self.store.reset()

    # ----------------- Transport callbacks -----------------

    def _close_handle(self, handle: TransportHandle):
        try:
            handle.close()
        except (TransportError, OSError) as e:
            logger.warning("Error while closing transport: %s", e)

    def _is_stale(self, generation: int, what: str) -> bool:
        if generation != self._generation:
            logger.debug("Dropping %s from superseded attempt %d", what, generation)
            return True
        return False

    def _handle_open(self, generation: int):
        with self._lock:
            if self._is_stale(generation, "open"):
                return
            if self._transition(ConnectionEvent.OPEN):
                self.store.set_error(None)
                logger.info("Connected to server")

    def _handle_message(self, generation: int, payload: Frame):
        with self._lock:
            if self._is_stale(generation, "message"):
                return

            if isinstance(payload, str):
                logger.info("Server: %s", payload)
                return

            if not isinstance(payload, (bytes, bytearray, memoryview)):
                violation = ProtocolViolation(
                    f"Unexpected frame type: {type(payload).__name__}")
                logger.warning("%s", violation)
                self.store.set_error(str(violation))
                return

            try:
                game_state = decode_game_state(payload)
            except DecodeError as e:
                logger.warning("Failed to decode game state (%d bytes): %s", len(payload), e)
                self.store.set_error(f"Failed to decode game state: {e}")
                return

            self.store.publish_game_state(game_state)
            logger.debug("Game state loaded: %d planets, %d players",
                         len(game_state.planets), len(game_state.players))

    def _handle_error(self, generation: int, error: Exception):
        with self._lock:
            if self._is_stale(generation, "error"):
                return
            logger.error("WebSocket error: %s", error)
            self.store.set_error(str(error) or "WebSocket connection error")
            self._transition(ConnectionEvent.ERROR)

    def _handle_close(self, generation: int):
        with self._lock:
            if self._is_stale(generation, "close"):
                return
            logger.info("Connection closed")
            self._transition(ConnectionEvent.CLOSE)
            self._handle = None
