"""Defines the TimerScheduler class."""

import logging
import time
from typing import Any, Callable, Optional  # pylint: disable=unused-import

from .store import EntryStore
from .wakeup import LoopWakeup, Wakeup

LOGGER = logging.getLogger(__name__)

# Avoid running fire cycles more than once per average frame (1s / 60fps).
# This is both the minimum gap between the armed deadline and a new earlier
# one before the wakeup is moved, and the minimum delay of any arm.
DEFAULT_COALESCING_TOLERANCE = 0.016


class Error(Exception):
    """Base class for exceptions from the scheduler."""

class SchedulerDisposed(Error):
    """The scheduler was used after dispose()."""


class TimerScheduler:
    """
    TimerScheduler batches delayed callbacks onto a single wakeup.

    Callbacks are added with a delay and are invoked no earlier than that
    delay from now. Rather than arming one wakeup per callback, the scheduler
    keeps the callbacks in deadline order and arms one wakeup for the earliest
    deadline. When it fires, every callback that is due at that moment runs in
    the same fire cycle, in deadline order, and the wakeup is armed again for
    whatever is left.

    Adding an earlier callback only moves the wakeup if the new deadline is
    more than coalescing_tolerance ahead of the armed one. Deadlines moving
    later never move it; the next fire cycle picks them up.

    Callbacks may add and remove callbacks (including themselves) while they
    run. Callbacks added during a fire cycle never run in that same cycle,
    even if they are already due.

    A callback that raises does not prevent the rest of the batch from
    running. Once the cycle's bookkeeping is complete, the first exception is
    re-raised to whatever fired the wakeup.

    The scheduler is not thread-safe. All calls, and the wakeup itself, must
    happen on one thread.
    """

    _clock: Callable[[], float]
    _wakeup: Wakeup
    _tolerance: float
    _store: EntryStore
    # Outstanding handle from the wakeup and the deadline it was armed for
    _handle: Any
    _armed_deadline: Optional[float]
    _disposed: bool

    def __init__(self,
                 clock: 'Callable[[], float]' = time.monotonic,
                 wakeup: Optional[Wakeup] = None,
                 coalescing_tolerance: float = DEFAULT_COALESCING_TOLERANCE) -> None:
        """
        Create a new TimerScheduler.

        Parameters:
            clock: Source of the current time in seconds
            wakeup: The primitive used to arm the batch wakeup. Defaults to a
                LoopWakeup on the same clock.
            coalescing_tolerance: Seconds an earlier deadline must beat the
                armed one by before the wakeup is re-armed. Also the minimum
                arm delay.

        """
        if coalescing_tolerance < 0:
            raise ValueError("coalescing tolerance must not be negative")
        self._clock = clock
        self._wakeup = wakeup if wakeup is not None else LoopWakeup(clock=clock)
        self._tolerance = coalescing_tolerance
        self._store = EntryStore()
        self._handle = None
        self._armed_deadline = None
        self._disposed = False

    def add(self, delay: float,
            callback: 'Callable[[], Any]') -> 'Callable[[], None]':
        """
        Schedule a callback.

        Parameters:
            delay: Minimum number of seconds before the callback runs
            callback: The function to call. It is identified by identity when
                removing.

        Returns:
            A function that removes the callback again, same as remove()

        Raises:
            ValueError: If delay is negative
            SchedulerDisposed: If dispose() has been called

        """
        self._check_usable()
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._store.add(self._clock() + delay, callback)
        self._schedule()

        def disposer() -> None:
            self.remove(callback)
        return disposer

    def remove(self, callback: 'Callable[[], Any]') -> None:
        """
        Cancel a scheduled callback.

        Removing a callback that already ran, or was never added, does
        nothing. If the callback was added several times, only one of those
        registrations is removed.

        Raises:
            SchedulerDisposed: If dispose() has been called

        """
        self._check_usable()
        self._store.remove_first(callback)
        if self._store.empty:
            self._cancel_wakeup()

    def dispose(self) -> None:
        """
        Cancel the wakeup and drop all pending callbacks.

        If a callback disposes the scheduler during a fire cycle, the other
        callbacks that were already due in that cycle still run. Nothing is
        armed afterwards.
        """
        if self._disposed:
            return
        LOGGER.debug("dispose: dropping %d entries", len(self._store))
        self._cancel_wakeup()
        self._store.clear()
        self._disposed = True

    def __enter__(self) -> 'TimerScheduler':
        """Use the scheduler as a context manager."""
        return self

    def __exit__(self, *exc_info: Any) -> None:
        """Dispose of the scheduler."""
        self.dispose()

    def __len__(self) -> int:
        """Get the number of callbacks still pending."""
        return len(self._store)

    @property
    def coalescing_tolerance(self) -> float:
        """Get the coalescing tolerance in seconds."""
        return self._tolerance

    @property
    def armed_deadline(self) -> Optional[float]:
        """Get the deadline the wakeup is armed for, or None if idle."""
        return self._armed_deadline if self._handle is not None else None

    @property
    def executing(self) -> bool:
        """True while a fire cycle is invoking callbacks."""
        return self._store.executing

    @property
    def disposed(self) -> bool:
        """True once dispose() has been called."""
        return self._disposed

    def _check_usable(self) -> None:
        if self._disposed:
            raise SchedulerDisposed("scheduler has been disposed")

    def _schedule(self) -> None:
        """Arm the wakeup or move it earlier, if warranted."""
        if self._store.executing:
            # The fire cycle re-arms once it is done
            return
        earliest = self._store.earliest()
        if earliest is None:
            return
        invoke_at = earliest.deadline
        if self._handle is not None:
            assert self._armed_deadline is not None
            if self._armed_deadline - invoke_at <= self._tolerance:
                return
            LOGGER.debug("reschedule: %.3f -> %.3f",
                         self._armed_deadline, invoke_at)
            self._cancel_wakeup()
        delay = max(invoke_at - self._clock(), self._tolerance)
        self._armed_deadline = invoke_at
        self._handle = self._wakeup.arm(delay, self._fire)

    def _cancel_wakeup(self) -> None:
        if self._handle is not None:
            LOGGER.debug("cancel wakeup for %.3f", self._armed_deadline)
            self._wakeup.cancel(self._handle)
            self._handle = None
        self._armed_deadline = None

    def _fire(self) -> None:
        """Run one fire cycle."""
        # The wakeup that called us is spent
        self._handle = None
        self._armed_deadline = None
        if self._disposed:
            return

        store = self._store
        current = store.snapshot()
        now = self._clock()
        LOGGER.debug("fire cycle at %.3f, %d queued", now, len(current))
        store.executing = True
        first_error: Optional[BaseException] = None
        try:
            for entry in current:
                if not entry.due(now):
                    break
                try:
                    entry.callback()
                except BaseException as ex:  # pylint: disable=broad-except
                    if first_error is None:
                        first_error = ex
                    else:
                        LOGGER.exception("callback %s failed", entry)
        finally:
            # The queue may have changed while callbacks ran, so clean up based
            # on its live state rather than the snapshot.
            store.drain_due(now)
            store.executing = False
            if not self._disposed:
                store.merge_reentrant()
                self._schedule()
        if first_error is not None:
            raise first_error
