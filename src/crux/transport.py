"""
transport.py: Message-oriented socket used by the connection manager.

The manager only depends on the small Transport / TransportHandle /
TransportListener surface below; WebSocketTransport implements it on top
of the `websockets` threaded client.
"""

import logging
import threading
from typing import Optional, Union

from websockets.exceptions import ConnectionClosedError, WebSocketException
from websockets.sync.client import ClientConnection, connect

from .constants import CLOSE_TIMEOUT, OPEN_TIMEOUT
from .errors import TransportError

logger = logging.getLogger(__name__)

Frame = Union[bytes, str]


class TransportListener:
    """Callbacks fired by a transport handle, in this order: open, message*, error?, close."""

    def on_open(self):
        pass

    def on_message(self, payload: Frame):
        pass

    def on_error(self, error: Exception):
        pass

    def on_close(self):
        pass


class TransportHandle:
    def send(self, payload: bytes):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


class Transport:
    def open(self, url: str, listener: TransportListener) -> TransportHandle:
        """Starts connecting and returns immediately; progress is reported to `listener`."""
        raise NotImplementedError


# ----------------- WebSocket implementation -----------------

class WebSocketHandle(TransportHandle):
    """One connection attempt. Owns a reader thread for its whole lifetime."""

    def __init__(self, url: str, listener: TransportListener,
                 open_timeout: float = OPEN_TIMEOUT, close_timeout: float = CLOSE_TIMEOUT):
        self.url = url
        self._listener = listener
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout

        self._lock = threading.Lock()
        self._ws: Optional[ClientConnection] = None
        self._closing = False
        self._thread = threading.Thread(
            target=self._run, name=f"crux-transport-{url}", daemon=True)

    def start(self):
        self._thread.start()

    def _run(self):
        try:
            self._serve()
        finally:
            with self._lock:
                self._ws = None
            self._listener.on_close()

    def _serve(self):
        try:
            ws = connect(self.url, open_timeout=self._open_timeout,
                         close_timeout=self._close_timeout)
        except Exception as e:
            # Malformed URLs (e.g. an out-of-range port) raise ValueError here
            self._listener.on_error(TransportError(f"Failed to connect to {self.url}: {e}"))
            return

        with self._lock:
            cancelled = self._closing
            if not cancelled:
                self._ws = ws

        if cancelled:
            ws.close()
            return

        self._listener.on_open()
        try:
            for message in ws:
                self._listener.on_message(message)
        except ConnectionClosedError as e:
            self._listener.on_error(TransportError(f"Connection lost: {e}"))
        except (WebSocketException, OSError) as e:
            self._listener.on_error(TransportError(f"WebSocket connection error: {e}"))

    def send(self, payload: bytes):
        with self._lock:
            ws = self._ws
        if ws is None:
            raise TransportError("socket is not open")
        try:
            ws.send(payload)
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Failed to send {len(payload)} bytes: {e}") from e

    def close(self):
        """Starts the closing handshake and returns without waiting for it."""
        with self._lock:
            self._closing = True
            ws = self._ws
        if ws is not None:
            threading.Thread(target=ws.close, name=f"crux-close-{self.url}",
                             daemon=True).start()


class WebSocketTransport(Transport):
    def __init__(self, open_timeout: float = OPEN_TIMEOUT, close_timeout: float = CLOSE_TIMEOUT):
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout

    def open(self, url: str, listener: TransportListener) -> WebSocketHandle:
        logger.debug("Opening websocket to %s", url)
        handle = WebSocketHandle(url, listener, self.open_timeout, self.close_timeout)
        handle.start()
        return handle
