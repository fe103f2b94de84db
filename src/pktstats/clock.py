import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """
    Time and scheduling services used by counters and the stats task.

    `now()` is in seconds, sleeps are in milliseconds.
    """

    @abstractmethod
    def now(self) -> float:
        pass

    @abstractmethod
    def sleep(self, millis: float) -> None:
        pass

    @abstractmethod
    def sleep_idle(self, millis: float) -> None:
        """Sleep that gives way to shutdown: returns early once the clock is stopped."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        pass


class SystemClock(Clock):
    """Monotonic wall clock with a process-local running flag."""

    def __init__(self):
        self._stopped = threading.Event()

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, millis: float) -> None:
        if millis > 0:
            time.sleep(millis / 1000.0)

    def sleep_idle(self, millis: float) -> None:
        if millis > 0:
            self._stopped.wait(millis / 1000.0)

    def is_running(self) -> bool:
        return not self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()


_default_clock = SystemClock()


def get_default_clock() -> SystemClock:
    """Return the shared clock used when a counter is built without one."""
    return _default_clock
