"""
Wakeup primitives that a TimerScheduler can be driven by.

A Wakeup arms a single delayed call and can cancel it again before it runs.
The scheduler only ever keeps one armed call outstanding per instance.
"""

import abc
import asyncio
import logging
import queue
import time
from typing import Any, Callable, List  # pylint: disable=unused-import

LOGGER = logging.getLogger(__name__)


class Wakeup(abc.ABC):
    """Arms and cancels delayed calls."""

    @abc.abstractmethod
    def arm(self, delay: float, on_fire: 'Callable[[], None]') -> Any:
        """
        Arrange for on_fire to be called once, after delay seconds.

        Parameters:
            delay: Seconds from now until on_fire should run
            on_fire: The function to call

        Returns:
            An opaque handle that can be passed to cancel()

        """

    @abc.abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a handle returned by arm(). Cancelling twice is harmless."""


class Timer:
    """A call that LoopWakeup runs at a specific time."""

    # Time at which the timer should fire
    _when: float
    # Single-element list so the function isn't bound as a method
    _action: List[Callable[[], None]]
    cancelled: bool

    def __init__(self, when: float, action: 'Callable[[], None]') -> None:
        """
        Define a timer that fires at a specific time.

        Parameters:
            when: The clock time when the action should execute
            action: A function to call that performs the action

        """
        self._when = when
        self._action = [action]
        self.cancelled = False

    @property
    def when(self) -> float:
        """Get the time for this Timer."""
        return self._when

    def fire(self) -> None:
        """Execute the action."""
        self._action[0]()

    def __str__(self) -> str:
        """Return string representation of a Timer."""
        return f"{self.when}{' (cancelled)' if self.cancelled else ''}"

    def __lt__(self, other: object) -> bool:
        """Less."""
        if not isinstance(other, Timer):
            return NotImplemented
        return self.when < other.when


class LoopWakeup(Wakeup):
    """
    LoopWakeup runs armed timers on the calling thread.

    The standard way to use this class is to:
    - Create the LoopWakeup
    - Hand it to one or more TimerSchedulers and add callbacks to them
    - Call LoopWakeup.run()

    run() sleeps until the next timer is due and fires it. Firing a timer may
    arm new ones (a scheduler re-arms after each fire cycle), so run() keeps
    going for as long as there are live timers and returns once there are
    none left.

    Timers with the same fire time have an undefined ordering.
    """

    # All armed Timers, ordered by increasing Timer.when. Cancelled timers
    # stay queued and are skipped when they reach the front.
    _timers: 'queue.PriorityQueue[Timer]'
    _clock: Callable[[], float]
    _sleep: Callable[[float], Any]

    def __init__(self,
                 clock: 'Callable[[], float]' = time.monotonic,
                 sleep: 'Callable[[float], Any]' = time.sleep) -> None:
        """
        Create a new LoopWakeup.

        Parameters:
            clock: Source of the current time in seconds. This must be the
                same clock the scheduler uses.
            sleep: Function used to wait for the next timer

        """
        self._timers = queue.PriorityQueue()
        self._clock = clock
        self._sleep = sleep

    def arm(self, delay: float, on_fire: 'Callable[[], None]') -> Timer:
        """Queue a Timer for delay seconds from now."""
        timer = Timer(self._clock() + delay, on_fire)
        LOGGER.debug("arm: %s", timer)
        self._timers.put(timer)
        return timer

    def cancel(self, handle: Timer) -> None:
        """Mark a Timer so that run() skips it."""
        handle.cancelled = True

    def run(self) -> None:
        """Process Timers until none are left."""
        try:
            while True:
                timer = self._timers.get_nowait()
                if timer.cancelled:
                    continue
                delta = timer.when - self._clock()
                if delta > 0:
                    self._sleep(delta)
                LOGGER.debug("fire: %s", timer)
                timer.fire()
        except queue.Empty:
            pass

    @property
    def pending(self) -> int:
        """Get the number of queued Timers, including cancelled ones."""
        return self._timers.qsize()


class AsyncioWakeup(Wakeup):
    """
    AsyncioWakeup arms calls on an asyncio event loop.

    Use the loop's own clock for the scheduler, i.e.
    TimerScheduler(clock=loop.time, wakeup=AsyncioWakeup(loop=loop)).
    """

    def __init__(self, *, loop: asyncio.AbstractEventLoop) -> None:
        """Create a wakeup bound to an event loop."""
        self._loop = loop

    def arm(self, delay: float,
            on_fire: 'Callable[[], None]') -> asyncio.TimerHandle:
        """Schedule on_fire with loop.call_later()."""
        LOGGER.debug("arm: +%.3fs", delay)
        return self._loop.call_later(delay, on_fire)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        """Cancel the loop timer."""
        handle.cancel()
