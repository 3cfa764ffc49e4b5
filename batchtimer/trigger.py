"""Helpers for attaching timer triggers to a scheduler."""

from typing import Any, Callable  # pylint: disable=unused-import

from .scheduler import TimerScheduler

Cleanup = Callable[[], None]


def schedule_timer_trigger(delay: float,
                           callback: 'Callable[[], Any]',
                           scheduler: TimerScheduler) -> Cleanup:
    """
    Schedule a callback to be invoked after a given delay.

    Parameters:
        delay: Seconds to wait before the callback may run
        callback: The function to invoke
        scheduler: The scheduler that batches the callback

    Returns:
        A cleanup function that cancels the callback if it hasn't run yet

    """
    def cleanup() -> None:
        scheduler.remove(callback)
    scheduler.add(delay, callback)
    return cleanup


def on_timer(delay: float) -> 'Callable[[Callable[[], Any], TimerScheduler], Cleanup]':
    """Return a trigger that schedules callbacks with a fixed delay."""
    def trigger(callback: 'Callable[[], Any]',
                scheduler: TimerScheduler) -> Cleanup:
        return schedule_timer_trigger(delay, callback, scheduler)
    return trigger
