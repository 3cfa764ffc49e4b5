"""Defines the EntryStore class."""

import bisect
import logging
from typing import Any, Callable, List, Optional  # pylint: disable=unused-import

from .entry import Entry

LOGGER = logging.getLogger(__name__)


class EntryStore:
    """
    EntryStore holds the registrations that have not fired yet.

    There are two queues, both sorted by increasing deadline. Entries with the
    same deadline stay in the order they were added.

    - The active queue is the set of registrations that the fire cycle works
      from.
    - The reentrant queue collects registrations made while the fire cycle is
      invoking callbacks. They are moved into the active queue by
      merge_reentrant() once the cycle is done, so the list being walked by
      the cycle never grows underneath it.
    """

    _active: List[Entry]
    _reentrant: List[Entry]
    # Set by the scheduler for the duration of callback invocation
    executing: bool

    def __init__(self) -> None:
        """Create an empty EntryStore."""
        self._active = []
        self._reentrant = []
        self.executing = False

    def add(self, deadline: float, callback: 'Callable[[], Any]') -> Entry:
        """
        Add a callback to the appropriate queue.

        The new entry goes immediately before the first entry whose deadline
        is strictly later. The same callback may be added more than once; each
        add is an independent entry.

        Parameters:
            deadline: When the callback becomes eligible to run
            callback: The function to invoke

        Returns:
            The Entry that was queued

        """
        entry = Entry(deadline, callback)
        target = self._reentrant if self.executing else self._active
        bisect.insort_right(target, entry)
        LOGGER.debug("enqueue%s: %s", " (reentrant)" if self.executing else "",
                     entry)
        return entry

    def remove_first(self, callback: 'Callable[[], Any]') -> bool:
        """
        Remove the first entry for a callback.

        The active queue is searched first, then the reentrant queue. Only one
        entry is removed even if the callback was added several times.

        Returns:
            True if an entry was removed, False if the callback was not found

        """
        for target in (self._active, self._reentrant):
            for index, entry in enumerate(target):
                if entry.callback is callback:
                    del target[index]
                    return True
        return False

    def drain_due(self, now: float) -> List[Entry]:
        """Remove and return the active entries with deadline <= now."""
        count = 0
        for entry in self._active:
            if not entry.due(now):
                break
            count += 1
        drained = self._active[:count]
        del self._active[:count]
        return drained

    def merge_reentrant(self) -> None:
        """Move the reentrant queue into the active queue."""
        if self._reentrant:
            LOGGER.debug("merging %d reentrant entries", len(self._reentrant))
        for entry in self._reentrant:
            bisect.insort_right(self._active, entry)
        self._reentrant.clear()

    def snapshot(self) -> List[Entry]:
        """Get a copy of the active queue."""
        return list(self._active)

    def earliest(self) -> Optional[Entry]:
        """Get the first entry in the active queue, if any."""
        return self._active[0] if self._active else None

    def clear(self) -> None:
        """Drop all entries from both queues."""
        self._active.clear()
        self._reentrant.clear()

    @property
    def empty(self) -> bool:
        """True if neither queue holds an entry."""
        return not self._active and not self._reentrant

    def __len__(self) -> int:
        """Get the number of entries across both queues."""
        return len(self._active) + len(self._reentrant)
