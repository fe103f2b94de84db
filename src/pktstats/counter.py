"""
Throughput counters.

A Counter samples (packets, bytes) from its source at most once per second,
turns consecutive readings into mpps / Mbit/s rates, keeps the per-interval
history and hands every event to its formatter. Counters of all three kinds
share this class; only the source differs:

    DeviceSource   hardware statistics registers of a device
    PacketSource   packets passed one by one to `count_packet()`
    ManualSource   aggregate counts passed to `update_manual()` / `update_with_size()`

Typical use:

    >>> ctr = new_dev_rx_counter(dev, format="plain")
    >>> while running:
    ...     ctr.update()
    >>> ctr.finalize()
"""
import os
import sys
import threading
from typing import Any, Optional, TextIO, Tuple

from .clock import Clock, get_default_clock
from .errors import ConfigurationError, CounterFinalizedError
from .formatters.registry import FormatterRegistry
from .sources.base_source import BaseSource
from .sources.device_source import DeviceSource, default_device_name
from .sources.manual_source import ManualSource
from .sources.packet_source import PacketSource
from .stats import SampleSeries, add_stats

DEFAULT_FORMAT = "plain"

# preamble (7) + start of frame delimiter (1) + inter-frame gap (12)
FRAMING_OVERHEAD_BYTES = 20

# seconds between two automatic samples
MIN_UPDATE_INTERVAL = 1

# default drain delays in ms; tx settles faster as it only waits for the NIC itself
DEV_RX_DRAIN_MS = 100
DEV_TX_DRAIN_MS = 50


def open_sink(file: Any) -> Tuple[TextIO, bool]:
    """Return (sink, owned). Paths are opened here and must be closed by the counter."""
    if file is None:
        return sys.stdout, False
    if isinstance(file, (str, os.PathLike)):
        return open(file, "w+", encoding="utf-8"), True
    if not callable(getattr(file, "write", None)) or not callable(getattr(file, "flush", None)):
        raise ConfigurationError(f"Output {file!r} supports neither write() nor flush()")
    return file, False


class Counter:
    """
    Rx or tx throughput counter.

    State: created -> sampling (any number of updates) -> finalized.
    A finalized counter rejects every further sample.
    """

    def __init__(
        self,
        name: str,
        direction: str,
        source: BaseSource,
        format: str = DEFAULT_FORMAT,
        file: Any = None,
        clock: Optional[Clock] = None,
        sleep: float = 0,
    ):
        if direction not in ("rx", "tx"):
            raise ValueError(f"direction must be 'rx' or 'tx', got {direction!r}")
        # unknown formats must fail before any file is opened
        self.formatter = FormatterRegistry.resolve(format)
        self.format = format
        self.name = name
        self.direction = direction
        self.source = source
        self.clock = clock or get_default_clock()
        self.sleep = sleep

        self.total = 0
        self.total_bytes = 0
        self.last_update: Optional[float] = None
        self.mpps = SampleSeries()
        self.mbit = SampleSeries()
        self.wire_mbit = SampleSeries()
        self.finalized = False

        self._lock = threading.RLock()
        self.file, self.close_file = open_sink(file)

    def __repr__(self) -> str:
        return (
            f"Counter(name={self.name!r}, direction={self.direction!r}, "
            f"kind={self.kind!r}, format={self.format!r})"
        )

    @property
    def kind(self) -> str:
        return self.source.kind

    @property
    def current(self) -> int:
        """Packets counted but not yet sampled (always 0 for device counters)."""
        return getattr(self.source, "current", 0)

    @property
    def current_bytes(self) -> int:
        return getattr(self.source, "current_bytes", 0)

    def _check_open(self) -> None:
        if self.finalized:
            raise CounterFinalizedError(f"Counter {self.name!r} ({self.direction}) is already finalized")

    def _emit(self, event: str, *args: Any) -> None:
        func = self.formatter.get(self.direction, event)
        if func is None:
            print(f"[Missing formatter for {self.format}]", self.name, self.direction, event, *args, file=sys.stderr)
            return
        func(self, self.file, *args)

    def update_counter(self, time: float, pkts: int, nbytes: int, suppress: bool = False):
        """
        Feed one cumulative reading taken at `time` (seconds).

        The first reading only establishes the baseline and emits "init".
        Every later one appends one sample to mpps, mbit and wire_mbit and,
        unless `suppress` is set, emits "update".

        Returns:
            (mpps, mbit, wire_mbit) for the interval, or None for the baseline.
        """
        with self._lock:
            self._check_open()
            if self.last_update is None:
                self.total, self.total_bytes = pkts, nbytes
                self.last_update = time
                self._emit("init")
                return None

            elapsed = time - self.last_update
            if elapsed <= 0:
                raise ValueError(f"Sample at {time} is not after the previous one at {self.last_update}")
            self.last_update = time
            mpps = (pkts - self.total) / elapsed / 10**6
            mbit = (nbytes - self.total_bytes) / elapsed / 10**6 * 8
            wire_mbit = mbit + mpps * FRAMING_OVERHEAD_BYTES * 8
            self.total = pkts
            self.total_bytes = nbytes

            self.mpps.append(mpps)
            self.mbit.append(mbit)
            self.wire_mbit.append(wire_mbit)
            if not suppress:
                self._emit("update", self.total, mpps, mbit, wire_mbit)
            return mpps, mbit, wire_mbit

    def _sample(self, time: float, suppress: bool = False):
        pkts, nbytes = self.source.get_throughput()
        if not self.source.cumulative:
            pkts += self.total
            nbytes += self.total_bytes
        return self.update_counter(time, pkts, nbytes, suppress)

    def _forced_sample(self, time: float):
        """
        Suppressed sample for get_stats() and finalize(). With no time passed
        since the last sample there is no rate to compute; the drained counts
        still go into the totals.
        """
        if self.last_update is not None and time <= self.last_update:
            pkts, nbytes = self.source.get_throughput()
            if self.source.cumulative:
                self.total, self.total_bytes = max(self.total, pkts), max(self.total_bytes, nbytes)
            else:
                self.total += pkts
                self.total_bytes += nbytes
            return None
        return self._sample(time, suppress=True)

    def _rate_limited_sample(self):
        with self._lock:
            self._check_open()
            now = self.clock.now()
            if self.last_update is not None and now <= self.last_update + MIN_UPDATE_INTERVAL:
                return None
            return self._sample(now)

    def update(self):
        """Take a sample if at least a second has passed since the last one."""
        return self._rate_limited_sample()

    def count_packet(self, buf: Any) -> None:
        """Count one packet (packet counters only). Adds 4 bytes for the CRC."""
        if not isinstance(self.source, PacketSource):
            raise TypeError(f"count_packet() needs a packet counter, {self.name!r} is a {self.kind} counter")
        self._check_open()
        self.source.count_packet(buf)

    def update_manual(self, pkts: int, nbytes: int):
        """Add packets and bytes (manual counters only), then sample like update()."""
        source = self._manual_source()
        self._check_open()
        source.add(pkts, nbytes)
        return self._rate_limited_sample()

    def update_with_size(self, pkts: int, size: int):
        """Add `pkts` packets of `size` bytes (manual counters only), then sample like update()."""
        source = self._manual_source()
        self._check_open()
        source.add_with_size(pkts, size)
        return self._rate_limited_sample()

    def _manual_source(self) -> ManualSource:
        if not isinstance(self.source, ManualSource):
            raise TypeError(f"{self.name!r} is a {self.kind} counter, not a manual one")
        return self.source

    def _add_all_stats(self) -> None:
        add_stats(self.mpps, drop_ends=True)
        add_stats(self.mbit, drop_ends=True)
        add_stats(self.wire_mbit, drop_ends=True)

    def get_stats(self):
        """
        Force a sample and return the accumulated statistics.

        Returns:
            (mpps, mbit, wire_mbit, total, total_bytes), the three series with
            avg/std_dev/median/sum attached over all but the first and last sample.
        """
        with self._lock:
            self._check_open()
            self._forced_sample(self.clock.now())
            self._add_all_stats()
            return self.mpps, self.mbit, self.wire_mbit, self.total, self.total_bytes

    def finalize(self, sleep: Optional[float] = None) -> None:
        """
        Wait `sleep` ms (default: the counter's drain delay) for packets still
        in flight, take a last sample for the totals, emit "final" and close
        the output file if this counter opened it.

        "final" is emitted and the file closed even when the last sample
        fails; the sampling error is re-raised afterwards.
        """
        self._check_open()
        self.clock.sleep(self.sleep if sleep is None else sleep)
        with self._lock:
            self._check_open()
            try:
                try:
                    # the last rate sample is mostly meaningless after the drain
                    # delay, it is taken for the totals only
                    self._forced_sample(self.clock.now())
                finally:
                    self._add_all_stats()
                    self.finalized = True
                    self._emit("final")
            finally:
                if self.close_file:
                    self.file.close()


def _new_dev_counter(direction, dev, name, format, file, clock, sleep) -> Counter:
    FormatterRegistry.resolve(format)
    source = DeviceSource(dev, direction)
    if name is None:
        name = default_device_name(source.dev)
    # reset stats on the NIC, before the output file is opened
    source.get_throughput()
    return Counter(name, direction, source, format=format, file=file, clock=clock, sleep=sleep)


def new_dev_rx_counter(dev: Any, name: Optional[str] = None, format: str = DEFAULT_FORMAT,
                       file: Any = None, clock: Optional[Clock] = None) -> Counter:
    """
    Create an rx counter reading the device's statistics registers.

    Args:
        dev: The device to track, or an object holding it in `.dev`.
        name (str): Name shown in the output, defaults to the device name.
        format (str): Registered output format ("plain", "CSV", "nil", ...).
        file: Output path or writable stream, defaults to standard out.
        clock (Clock): Time source, defaults to the system clock.
    """
    return _new_dev_counter("rx", dev, name, format, file, clock, DEV_RX_DRAIN_MS)


def new_dev_tx_counter(dev: Any, name: Optional[str] = None, format: str = DEFAULT_FORMAT,
                       file: Any = None, clock: Optional[Clock] = None) -> Counter:
    """Create a tx counter reading the device's statistics registers, see new_dev_rx_counter."""
    return _new_dev_counter("tx", dev, name, format, file, clock, DEV_TX_DRAIN_MS)


def new_pkt_rx_counter(name: str, format: str = DEFAULT_FORMAT, file: Any = None,
                       clock: Optional[Clock] = None) -> Counter:
    """Create an rx counter that is updated by passing packet buffers to `count_packet()`."""
    return Counter(name, "rx", PacketSource(), format=format, file=file, clock=clock)


def new_pkt_tx_counter(name: str, format: str = DEFAULT_FORMAT, file: Any = None,
                       clock: Optional[Clock] = None) -> Counter:
    return Counter(name, "tx", PacketSource(), format=format, file=file, clock=clock)


def new_manual_rx_counter(name: str, format: str = DEFAULT_FORMAT, file: Any = None,
                          clock: Optional[Clock] = None) -> Counter:
    """Create an rx counter that has to be updated manually with `update_manual()` or `update_with_size()`."""
    return Counter(name, "rx", ManualSource(), format=format, file=file, clock=clock)


def new_manual_tx_counter(name: str, format: str = DEFAULT_FORMAT, file: Any = None,
                          clock: Optional[Clock] = None) -> Counter:
    return Counter(name, "tx", ManualSource(), format=format, file=file, clock=clock)
