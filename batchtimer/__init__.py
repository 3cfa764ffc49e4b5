"""
A batching deadline scheduler.

Callbacks are registered to run no earlier than some delay from now. An
instance of TimerScheduler keeps them in deadline order and drives all of
them from a single armed wakeup, running every callback that is due each time
the wakeup fires.
"""

from .entry import Entry
from .scheduler import (DEFAULT_COALESCING_TOLERANCE, Error, SchedulerDisposed,
                        TimerScheduler)
from .store import EntryStore
from .trigger import on_timer, schedule_timer_trigger
from .wakeup import AsyncioWakeup, LoopWakeup, Timer, Wakeup
