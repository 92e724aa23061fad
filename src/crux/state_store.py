"""
state_store.py: Process-wide holder for the latest snapshot and connection status.

Single writer (the connection manager), many readers (the presentation
layer). Every write replaces a whole field under the lock, so a reader
never sees a half-updated GameState.
"""

import threading
from dataclasses import dataclass
from typing import Optional

from .data_models import GameState


@dataclass(frozen=True)
class StoreSnapshot:
    """All three published fields, read together."""
    game_state: Optional[GameState]
    connected: bool
    error: Optional[str]


class GameStateStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._game_state: Optional[GameState] = None
        self._connected = False
        self._error: Optional[str] = None

    # --- Writer side (connection manager only) ---

    def publish_game_state(self, game_state: GameState):
        """Replaces the published snapshot wholesale."""
        with self._lock:
            self._game_state = game_state

    def set_connected(self, connected: bool):
        with self._lock:
            self._connected = connected

    def set_error(self, error: Optional[str]):
        with self._lock:
            self._error = error

    def reset(self):
        """Back to the state at process start."""
        with self._lock:
            self._game_state = None
            self._connected = False
            self._error = None

    # --- Reader side ---

    def fetch_state(self) -> Optional[GameState]:
        """Safely retrieve the latest snapshot. Player records are copies."""
        with self._lock:
            game_state = self._game_state
        if game_state is None:
            return None
        return game_state.copy_for_reader()

    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def get_error(self) -> Optional[str]:
        with self._lock:
            return self._error

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            game_state, connected, error = self._game_state, self._connected, self._error
        return StoreSnapshot(
            game_state=game_state.copy_for_reader() if game_state else None,
            connected=connected,
            error=error,
        )

    def view(self) -> "StateView":
        return StateView(self)


class StateView:
    """Read-only projection of a GameStateStore for rendering and UI code."""

    def __init__(self, store: GameStateStore):
        self._store = store

    def fetch_state(self) -> Optional[GameState]:
        return self._store.fetch_state()

    def is_connected(self) -> bool:
        return self._store.is_connected()

    def get_error(self) -> Optional[str]:
        return self._store.get_error()

    def snapshot(self) -> StoreSnapshot:
        return self._store.snapshot()
