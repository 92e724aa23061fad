#!/usr/bin/env python3
"""
server.py

Reference Crux simulation server. Sends each client the binary snapshot on
connect, applies their 12-byte position updates, and rebroadcasts the
snapshot to everyone at a fixed tick rate.
"""

import logging
import threading
import time
from typing import Optional, Sequence, Set

from websockets.exceptions import ConnectionClosed
from websockets.sync.server import Server, ServerConnection, serve

from .codec import decode_position, encode_game_state
from .config import ServerConfig, configure_logging, load_server_config
from .constants import SERVER_TICK_RATE, WELCOME_MESSAGE
from .errors import ProtocolViolation
from .world import ServerWorld

logger = logging.getLogger(__name__)


class CruxServer:
    def __init__(self, host: str, port: int, world: Optional[ServerWorld] = None,
                 tick_rate: int = SERVER_TICK_RATE):
        self.host = host
        self.port = port
        self.world = world if world is not None else ServerWorld.create()
        self.tick_time = 1.0 / tick_rate

        self.clients: Set[ServerConnection] = set()
        self.clients_lock = threading.Lock()

        self.server: Optional[Server] = None
        self.running = threading.Event()
        self.serve_thread: Optional[threading.Thread] = None
        self.game_thread = threading.Thread(target=self._game_loop, name="crux-game-loop", daemon=True)

    def start(self):
        """Binds the socket and starts the accept and broadcast loops."""
        self.server = serve(self._handle_connection, self.host, self.port)
        self.running.set()
        self.serve_thread = threading.Thread(
            target=self.server.serve_forever, name="crux-serve", daemon=True)
        self.serve_thread.start()
        self.game_thread.start()
        logger.info("Crux Game Server started on %s:%d", self.host, self.bound_port)

    @property
    def bound_port(self) -> int:
        """The actual listening port (useful when started on port 0)."""
        if self.server is None:
            return self.port
        return self.server.socket.getsockname()[1]

    def stop(self):
        logger.info("Stopping server...")
        self.running.clear()
        if self.server is not None:
            self.server.shutdown()
        if self.serve_thread is not None:
            self.serve_thread.join()
        self.game_thread.join()
        logger.info("Server stopped.")

    @staticmethod
    def connection_id(websocket: ServerConnection) -> str:
        host, port = websocket.remote_address[:2]
        return f"{host}:{port}"

    def _handle_connection(self, websocket: ServerConnection):
        """Per-connection thread: register, send the world, then read updates."""
        conn_id = self.connection_id(websocket)
        port = websocket.remote_address[1]
        player = self.world.add_player(conn_id, f"Player_{port}")
        logger.info("New WebSocket connection from %s (player %d)", conn_id, player.id)

        try:
            payload = encode_game_state(self.world.snapshot())
            logger.info("Sending initial game state to %s (%d bytes)", conn_id, len(payload))
            websocket.send(payload)
            websocket.send(WELCOME_MESSAGE)

            with self.clients_lock:
                self.clients.add(websocket)

            for message in websocket:
                self._handle_message(websocket, conn_id, message)
        except ConnectionClosed as e:
            logger.info("[%s] Connection error: %s", conn_id, e)
        finally:
            with self.clients_lock:
                self.clients.discard(websocket)
            removed = self.world.remove_player(conn_id)
            if removed is not None:
                logger.info("Player %s disconnected", removed.name)

    def _handle_message(self, websocket: ServerConnection, conn_id: str, message):
        if isinstance(message, str):
            logger.info("[%s] %s", conn_id, message)
            websocket.send(f"Echo: {message}")
            return

        try:
            position = decode_position(message)
        except ProtocolViolation:
            logger.warning("[%s] Received binary data (%d bytes) - unknown format",
                           conn_id, len(message))
            return

        self.world.update_player_position(conn_id, position)
        logger.debug("Updated player %s position to (%.1f, %.1f, %.1f)",
                     conn_id, position.x, position.y, position.z)

    def broadcast(self, payload: bytes):
        """Sends the snapshot to all connected players."""
        with self.clients_lock:
            clients = list(self.clients)

        for websocket in clients:
            try:
                websocket.send(payload)
            except (ConnectionClosed, OSError) as e:
                logger.debug("Error broadcasting to %s: %s", self.connection_id(websocket), e)

    def _game_loop(self):
        """Broadcast loop running at the fixed tick rate."""
        logger.info("Game thread started. Tick rate: %.0f Hz.", 1 / self.tick_time)
        while self.running.is_set():
            start_time = time.monotonic()

            with self.clients_lock:
                has_clients = bool(self.clients)
            if has_clients:
                self.broadcast(encode_game_state(self.world.snapshot()))

            sleep_time = self.tick_time - (time.monotonic() - start_time)
            if sleep_time > 0:
                time.sleep(sleep_time)


def main(argv: Optional[Sequence[str]] = None):
    config: ServerConfig = load_server_config(argv)
    configure_logging(config.log_level)

    server = CruxServer(config.host, config.port, ServerWorld.create(config.seed), config.tick_rate)
    try:
        server.start()
        logger.info("Waiting for connections...")
        while server.running.is_set():
            time.sleep(0.1)
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
