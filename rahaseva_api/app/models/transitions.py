"""
Status state machines for bookings and help requests.

Each machine lists, per current status, the statuses it may move to and
which actor roles may make that move.  Services call ``check`` before
changing a status so illegal moves are rejected at the boundary instead
of being written to the store.
"""

from typing import Dict, FrozenSet, Iterable, Mapping


class InvalidTransition(ValueError):
    """The requested status change is not allowed from the current status."""


def _roles(*names: str) -> FrozenSet[str]:
    return frozenset(names)


class StatusMachine:
    def __init__(self, name: str, states: Iterable[str], transitions: Mapping[str, Mapping[str, FrozenSet[str]]]):
        self.name = name
        self.states = tuple(states)
        self.transitions: Dict[str, Dict[str, FrozenSet[str]]] = {
            state: dict(transitions.get(state, {})) for state in self.states
        }

    def targets(self, current: str) -> Dict[str, FrozenSet[str]]:
        return self.transitions.get(current, {})

    def is_terminal(self, status: str) -> bool:
        return not self.targets(status)

    def can(self, current: str, target: str, actor: str) -> bool:
        return actor in self.targets(current).get(target, frozenset())

    def check(self, current: str, target: str, actor: str) -> None:
        """Raise unless ``actor`` may move from ``current`` to ``target``.

        ``InvalidTransition`` (a ``ValueError``) for unknown or illegal
        moves, ``PermissionError`` when the move exists but not for
        this actor.
        """
        if target not in self.states:
            raise InvalidTransition("Invalid status")
        allowed = self.targets(current)
        if target not in allowed:
            raise InvalidTransition(f"Cannot change {self.name} status from {current} to {target}")
        if actor not in allowed[target]:
            raise PermissionError(f"Not authorized to change {self.name} status from {current} to {target}")


BOOKING_STATUSES = ("pending", "confirmed", "in-progress", "completed", "cancelled", "refunded")

BOOKING_STATUS = StatusMachine(
    "booking",
    BOOKING_STATUSES,
    {
        "pending": {
            "confirmed": _roles("provider", "admin"),
            "cancelled": _roles("user", "provider", "admin"),
        },
        "confirmed": {
            "in-progress": _roles("provider", "admin"),
            "completed": _roles("user", "provider", "admin"),
            "cancelled": _roles("user", "provider", "admin"),
        },
        "in-progress": {
            "completed": _roles("user", "provider", "admin"),
            "cancelled": _roles("admin"),
        },
        "completed": {"refunded": _roles("admin")},
        "cancelled": {"refunded": _roles("admin")},
    },
)

HELP_REQUEST_STATUSES = ("pending", "searching", "accepted", "in-progress", "completed", "cancelled")

HELP_REQUEST_STATUS = StatusMachine(
    "help request",
    HELP_REQUEST_STATUSES,
    {
        "pending": {
            "searching": _roles("admin"),
            "accepted": _roles("volunteer", "admin"),
            "cancelled": _roles("user", "admin"),
        },
        "searching": {
            "accepted": _roles("volunteer", "admin"),
            "cancelled": _roles("user", "admin"),
        },
        "accepted": {
            "in-progress": _roles("volunteer", "admin"),
            "completed": _roles("user", "volunteer", "admin"),
            "cancelled": _roles("user", "volunteer", "admin"),
        },
        "in-progress": {
            "completed": _roles("user", "volunteer", "admin"),
            "cancelled": _roles("admin"),
        },
    },
)
