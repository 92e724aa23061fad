import pytest

from crux.data_models import Position
from crux.movement import MovementInput, ShipEngine


def test_forward_moves_along_negative_z():
    engine = ShipEngine(speed=50.0)
    position, moving = engine.step(Position(0.0, 1.0, 0.0), MovementInput(forward=True), 0.1)
    assert position == Position(0.0, 1.0, pytest.approx(-5.0))
    assert moving


def test_backward_and_strafe():
    engine = ShipEngine(speed=10.0)
    controls = MovementInput(backward=True, right=True)
    position, moving = engine.step(Position(), controls, 0.5)
    assert position.x == pytest.approx(5.0)
    assert position.z == pytest.approx(5.0)
    assert moving


def test_opposing_keys_cancel_but_still_count_as_input():
    engine = ShipEngine()
    position, moving = engine.step(Position(), MovementInput(forward=True, backward=True), 1.0)
    assert position == Position()
    assert moving


def test_no_input_no_movement():
    engine = ShipEngine()
    position, moving = engine.step(Position(3.0, 2.0, 1.0), MovementInput(), 1.0)
    assert position == Position(3.0, 2.0, 1.0)
    assert not moving
