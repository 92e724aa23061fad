"""
movement.py: Local ship kinematics for the presentation client.

No prediction or reconciliation: the ship moves where input says and the
result is only reported to the server through the throttle.
"""

from dataclasses import dataclass
from typing import Tuple

from .constants import SHIP_SPEED
from .data_models import Position


@dataclass(frozen=True)
class MovementInput:
    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False

    @property
    def moving(self) -> bool:
        return self.forward or self.backward or self.left or self.right


@dataclass
class ShipEngine:
    speed: float = SHIP_SPEED

    def step(self, position: Position, controls: MovementInput, dt: float) -> Tuple[Position, bool]:
        """
        Advances the ship by `dt` seconds.
        Forward is -z, backward is +z; strafing moves along x.
        """
        move = self.speed * dt
        x, z = position.x, position.z

        if controls.forward:
            z -= move
        if controls.backward:
            z += move
        if controls.left:
            x -= move
        if controls.right:
            x += move

        return Position(x, position.y, z), controls.moving
