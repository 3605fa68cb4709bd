import pytest

from rahaseva_api.app.models.transitions import (
    BOOKING_STATUS,
    HELP_REQUEST_STATUS,
    InvalidTransition,
)


@pytest.mark.parametrize(
    "current, target, actor",
    [
        ("pending", "confirmed", "provider"),
        ("pending", "cancelled", "user"),
        ("confirmed", "in-progress", "provider"),
        ("confirmed", "completed", "user"),
        ("in-progress", "completed", "provider"),
        ("completed", "refunded", "admin"),
        ("cancelled", "refunded", "admin"),
    ],
)
def test_legal_booking_moves(current, target, actor):
    BOOKING_STATUS.check(current, target, actor)
    assert BOOKING_STATUS.can(current, target, actor)


def test_booking_terminal_states():
    assert BOOKING_STATUS.is_terminal("refunded")
    assert not BOOKING_STATUS.is_terminal("completed")


def test_illegal_booking_move_is_a_value_error():
    with pytest.raises(InvalidTransition) as excinfo:
        BOOKING_STATUS.check("completed", "pending", "admin")
    assert str(excinfo.value) == "Cannot change booking status from completed to pending"
    assert isinstance(excinfo.value, ValueError)


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidTransition, match="Invalid status"):
        BOOKING_STATUS.check("pending", "teleported", "admin")


def test_wrong_actor_is_a_permission_error():
    with pytest.raises(PermissionError):
        BOOKING_STATUS.check("pending", "confirmed", "user")
    with pytest.raises(PermissionError):
        BOOKING_STATUS.check("completed", "refunded", "provider")


def test_help_request_flow():
    HELP_REQUEST_STATUS.check("pending", "searching", "admin")
    HELP_REQUEST_STATUS.check("searching", "accepted", "volunteer")
    HELP_REQUEST_STATUS.check("accepted", "in-progress", "volunteer")
    HELP_REQUEST_STATUS.check("in-progress", "completed", "user")
    assert HELP_REQUEST_STATUS.is_terminal("completed")
    assert HELP_REQUEST_STATUS.is_terminal("cancelled")

    with pytest.raises(PermissionError):
        HELP_REQUEST_STATUS.check("pending", "accepted", "user")
    with pytest.raises(InvalidTransition):
        HELP_REQUEST_STATUS.check("completed", "in-progress", "admin")
