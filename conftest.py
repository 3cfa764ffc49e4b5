"""Test fixtures for pytest."""

from typing import Any, Callable, List, Optional, Tuple

import pytest

import batchtimer

def pytest_addoption(parser):
    """Add command-line options to pytest."""
    parser.addoption(
        "--run-realtime", action="store_true", default=False,
        help="run tests that sleep on the real clock"
    )

def pytest_configure(config):
    """Define realtime pytest mark."""
    config.addinivalue_line("markers", "realtime: mark test as sleeping on the real clock")

def pytest_collection_modifyitems(config, items):
    """Only run realtime tests when --run-realtime is used."""
    if not config.getoption("--run-realtime"):
        skip_realtime = pytest.mark.skip(reason="need --run-realtime option to run")
        for item in items:
            if "realtime" in item.keywords:
                item.add_marker(skip_realtime)


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        """Start the clock at an arbitrary non-zero time."""
        self.now = start

    def __call__(self) -> float:
        """Get the current simulated time."""
        return self.now

    def advance(self, seconds: float) -> None:
        """Move time forward."""
        self.now += seconds


class RecordingWakeup(batchtimer.Wakeup):
    """
    A wakeup that never fires on its own.

    Every arm() and cancel() is recorded. Tests call fire() to run the armed
    callback, as if the delay had elapsed.
    """

    def __init__(self) -> None:
        """Create a wakeup with nothing armed."""
        self.arms: List[Tuple[int, float]] = []
        self.cancels: List[int] = []
        self._next_id = 0
        self._armed: Optional[Tuple[int, Callable[[], None]]] = None

    def arm(self, delay: float, on_fire: Callable[[], None]) -> Any:
        """Record the arm and hold on_fire until fire() is called."""
        assert self._armed is None, "more than one wakeup outstanding"
        self._next_id += 1
        self.arms.append((self._next_id, delay))
        self._armed = (self._next_id, on_fire)
        return self._next_id

    def cancel(self, handle: Any) -> None:
        """Record the cancel and drop the armed callback."""
        assert self._armed is not None and self._armed[0] == handle
        self.cancels.append(handle)
        self._armed = None

    @property
    def armed(self) -> bool:
        """True if a wakeup is outstanding."""
        return self._armed is not None

    @property
    def last_delay(self) -> float:
        """Delay passed to the most recent arm()."""
        return self.arms[-1][1]

    def fire(self) -> None:
        """Run the outstanding wakeup."""
        assert self._armed is not None, "nothing armed"
        _, on_fire = self._armed
        self._armed = None
        on_fire()


@pytest.fixture
def clock():
    """A simulated clock."""
    return FakeClock()


@pytest.fixture
def wakeup():
    """A wakeup that records arm/cancel calls and fires on demand."""
    return RecordingWakeup()


@pytest.fixture
# pylint: disable=redefined-outer-name
def scheduler(request, clock, wakeup):
    """
    Create a TimerScheduler on the simulated clock.

    The scheduler is disposed at the end of the test.
    """
    sched = batchtimer.TimerScheduler(clock=clock, wakeup=wakeup,
                                      coalescing_tolerance=0.016)

    def teardown():
        sched.dispose()
    request.addfinalizer(teardown)
    return sched
