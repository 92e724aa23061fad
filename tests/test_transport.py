import threading

import pytest

from crux.errors import TransportError
from crux.transport import TransportListener, WebSocketHandle


class RecordingListener(TransportListener):
    def __init__(self):
        self.events = []

    def on_open(self):
        self.events.append("open")

    def on_message(self, payload):
        self.events.append(("message", payload))

    def on_error(self, error):
        self.events.append(error)

    def on_close(self):
        self.events.append("close")


def test_malformed_url_reports_error_then_close():
    listener = RecordingListener()
    handle = WebSocketHandle("ws://127.0.0.1:70000", listener, open_timeout=1.0)
    handle._run()

    error, closed = listener.events
    assert isinstance(error, TransportError)
    assert "Failed to connect" in str(error)
    assert closed == "close"


def test_close_fires_even_if_a_listener_raises():
    class BrokenListener(RecordingListener):
        def on_error(self, error):
            raise RuntimeError("listener bug")

    listener = BrokenListener()
    handle = WebSocketHandle("ws://127.0.0.1:70000", listener, open_timeout=1.0)
    with pytest.raises(RuntimeError):
        handle._run()
    assert listener.events == ["close"]


class SlowSocket:
    """Stands in for a connection whose closing handshake never completes."""

    def __init__(self):
        self.closing = threading.Event()
        self.release = threading.Event()

    def close(self):
        self.closing.set()
        self.release.wait(5.0)


def test_close_does_not_wait_for_the_handshake():
    handle = WebSocketHandle("ws://127.0.0.1:1", RecordingListener())
    sock = SlowSocket()
    handle._ws = sock

    handle.close()

    assert sock.closing.wait(2.0)
    assert not sock.release.is_set()
    sock.release.set()


def test_send_after_close_request_still_needs_an_open_socket():
    handle = WebSocketHandle("ws://127.0.0.1:1", RecordingListener())
    handle.close()
    with pytest.raises(TransportError, match="not open"):
        handle.send(b"\x00" * 12)
