"""
throttle.py: Decides which local position samples are worth sending.
"""

import math
import time
from typing import Callable, Optional

from .constants import MIN_SEND_DISTANCE, MIN_SEND_INTERVAL
from .data_models import Position

SendFn = Callable[[float, float, float], bool]


def distance(a: Position, b: Position) -> float:
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


def should_send(current: Position, last_sent: Position, last_sent_at: float, now: float,
                moving: bool, min_distance: float = MIN_SEND_DISTANCE,
                min_interval: float = MIN_SEND_INTERVAL) -> bool:
    """True only while moving, beyond `min_distance` and after `min_interval` seconds."""
    if not moving:
        return False
    if not distance(current, last_sent) > min_distance:
        return False
    return now - last_sent_at > min_interval


class PositionThrottle:
    """
    Holds the last-sent bookkeeping and gates calls to `send`.

    `send` must return True only if the update was actually transmitted;
    the bookkeeping is committed only in that case, so samples dropped while
    disconnected don't suppress the next real movement.
    """

    def __init__(self, send: SendFn, min_distance: float = MIN_SEND_DISTANCE,
                 min_interval: float = MIN_SEND_INTERVAL,
                 clock: Callable[[], float] = time.monotonic):
        self._send = send
        self.min_distance = min_distance
        self.min_interval = min_interval
        self._clock = clock

        self.last_sent_position = Position()
        self.last_sent_at = -math.inf

    def reset(self, position: Position = Position()):
        self.last_sent_position = position
        self.last_sent_at = -math.inf

    def offer(self, position: Position, moving: bool, now: Optional[float] = None) -> bool:
        """Feeds one simulation-tick sample. Returns True if it was sent."""
        if now is None:
            now = self._clock()

        if not should_send(position, self.last_sent_position, self.last_sent_at, now,
                           moving, self.min_distance, self.min_interval):
            return False

        if not self._send(position.x, position.y, position.z):
            return False

        self.last_sent_position, self.last_sent_at = position, now
        return True
