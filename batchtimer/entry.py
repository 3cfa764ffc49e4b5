"""Defines the Entry class."""

from typing import Any, Callable  # pylint: disable=unused-import


class Entry:
    """Entry is a callback that becomes eligible to run at a deadline."""

    # Time at or after which the callback may be invoked
    _deadline: float
    # Opaque handle, only ever compared by identity
    _callback: 'Callable[[], Any]'

    def __init__(self, deadline: float, callback: 'Callable[[], Any]') -> None:
        """
        Initialize an Entry with its deadline.

        Parameters:
            deadline: The earliest time the callback may run (clock seconds)
            callback: The function to invoke once the deadline has passed

        """
        self._deadline = deadline
        self._callback = callback

    @property
    def deadline(self) -> float:
        """Get the deadline for this Entry."""
        return self._deadline

    @property
    def callback(self) -> 'Callable[[], Any]':
        """Get the callback for this Entry."""
        return self._callback

    def due(self, now: float) -> bool:
        """Determine whether the Entry may run at time `now`."""
        return self._deadline <= now

    def __str__(self) -> str:
        """Return string representation of an Entry."""
        name = getattr(self._callback, "__qualname__", repr(self._callback))
        return f"{self._deadline:.3f} {name}"

    def __lt__(self, other: object) -> bool:
        """Less (by deadline only, so equal deadlines never reorder)."""
        if not isinstance(other, Entry):
            return NotImplemented
        return self._deadline < other.deadline
