from collections import namedtuple
from typing import Callable, List, Optional, Tuple

import psutil
import pytest

from pktstats.clock import Clock
from pktstats.formatters import Formatter, FormatterRegistry

snetio = namedtuple("snetio", "bytes_sent bytes_recv packets_sent packets_recv errin errout dropin dropout")


class FakeClock(Clock):
    """Clock whose time only moves when a test (or a sleep) moves it."""

    def __init__(self, start: float = 0.0):
        self.time = start
        self.running = True
        self.sleeps: List[float] = []
        self.idle_sleeps: List[float] = []
        self.on_idle: Optional[Callable[["FakeClock"], None]] = None

    def now(self) -> float:
        return self.time

    def advance(self, seconds: float) -> None:
        self.time += seconds

    def sleep(self, millis: float) -> None:
        self.sleeps.append(millis)
        self.time += millis / 1000.0

    def sleep_idle(self, millis: float) -> None:
        self.idle_sleeps.append(millis)
        self.time += millis / 1000.0
        if self.on_idle is not None:
            self.on_idle(self)

    def is_running(self) -> bool:
        return self.running


class FakeDevice:
    """Device with cumulative rx/tx registers set by the test."""

    def __init__(self, name: str = "dev 0"):
        self.name = name
        self.rx: Tuple[int, int] = (0, 0)
        self.tx: Tuple[int, int] = (0, 0)
        self.rx_reads = 0
        self.tx_reads = 0

    def get_rx_stats(self):
        self.rx_reads += 1
        return self.rx

    def get_tx_stats(self):
        self.tx_reads += 1
        return self.tx

    def add_traffic(self, pkts: int, nbytes: int) -> None:
        self.rx = (self.rx[0] + pkts, self.rx[1] + nbytes)
        self.tx = (self.tx[0] + pkts, self.tx[1] + nbytes)

    def __str__(self):
        return f"[{self.name}]"


class RecordingFormatter:
    """Builds a Formatter that records every event it receives."""

    def __init__(self):
        self.events = []

    def _slot(self, direction, event):
        def record(counter, file, *args):
            self.events.append((direction, event, counter.name, args))
        return record

    def formatter(self, **overrides) -> Formatter:
        slots = {
            f"{d}_{e}": self._slot(d, e)
            for d in ("rx", "tx")
            for e in ("init", "update", "final")
        }
        slots.update(overrides)
        return Formatter(**slots)

    def of(self, event):
        return [ev for ev in self.events if ev[1] == event]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def recorder():
    rec = RecordingFormatter()
    FormatterRegistry.register("recording", rec.formatter())
    yield rec
    FormatterRegistry.unregister("recording")


@pytest.fixture
def fake_nics(monkeypatch):
    """Replace psutil's per-NIC counters with a mutable dict of fakes."""
    nics = {
        "eth0": snetio(bytes_sent=6400, bytes_recv=640, packets_sent=100, packets_recv=10,
                       errin=0, errout=0, dropin=0, dropout=0),
    }

    def net_io_counters(pernic=False):
        assert pernic
        return dict(nics)

    monkeypatch.setattr(psutil, "net_io_counters", net_io_counters)
    return nics
