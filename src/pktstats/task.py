"""
Background task that drives device counters at a fixed cadence.

    >>> task = start_stats_task(devices=[dev], format="plain")
    >>> ...                      # traffic runs
    >>> task.stop(); task.join() # finalizes every counter
"""
import sys
import threading
from typing import Any, Iterable, List, Optional

from .clock import Clock, SystemClock
from .config import DEFAULT_INTERVAL_MS, StatsTaskConfig
from .counter import (
    DEFAULT_FORMAT,
    Counter,
    open_sink,
    new_dev_rx_counter,
    new_dev_tx_counter,
)
from .formatters.registry import FormatterRegistry


class StatsTask:
    """
    Owns one rx counter per rx device and one tx counter per tx device.

    Devices listed in `devices` get both. All counters share the format and
    output. While the clock reports running and `stop()` was not called,
    `run()` updates every counter and idles `interval_ms` between passes;
    afterwards every counter is finalized once, in construction order.
    """

    def __init__(
        self,
        devices: Iterable[Any] = (),
        rx_devices: Iterable[Any] = (),
        tx_devices: Iterable[Any] = (),
        format: str = DEFAULT_FORMAT,
        file: Any = None,
        clock: Optional[Clock] = None,
        interval_ms: float = DEFAULT_INTERVAL_MS,
        name: str = "pktstats",
    ):
        devices = list(devices)
        self.rx_devices = list(rx_devices) + devices
        self.tx_devices = list(tx_devices) + devices
        self.format = format
        self.interval_ms = interval_ms
        self.name = name
        self._own_clock = clock is None
        self.clock = clock or SystemClock()
        self.error: Optional[BaseException] = None

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        FormatterRegistry.resolve(format)
        # one handle for all counters, so a path is not truncated once per counter
        self.file, self.close_file = open_sink(file)
        try:
            self.counters: List[Counter] = []
            for dev in self.rx_devices:
                self.counters.append(new_dev_rx_counter(dev, format=format, file=self.file, clock=self.clock))
            for dev in self.tx_devices:
                self.counters.append(new_dev_tx_counter(dev, format=format, file=self.file, clock=self.clock))
        except Exception:
            if self.close_file:
                self.file.close()
            raise

    @classmethod
    def from_config(cls, config: StatsTaskConfig, clock: Optional[Clock] = None) -> "StatsTask":
        config = config.resolve_devices()
        return cls(
            devices=config.devices,
            rx_devices=config.rx_devices,
            tx_devices=config.tx_devices,
            format=config.format,
            file=config.file,
            clock=clock,
            interval_ms=config.interval_ms,
        )

    def running(self) -> bool:
        return self.clock.is_running() and not self._stop.is_set()

    def run(self) -> None:
        """
        Sampling loop; returns after every counter has been finalized.

        A failing update ends the loop. The counters are still finalized and
        the shared file closed before the error propagates.
        """
        try:
            try:
                while self.running():
                    for ctr in self.counters:
                        ctr.update()
                    self.clock.sleep_idle(self.interval_ms)
            except Exception:
                self._finalize_all()
                raise
            error = self._finalize_all()
            if error is not None:
                raise error
        finally:
            if self.close_file:
                self.file.close()

    def _finalize_all(self) -> Optional[Exception]:
        """Finalize every counter that is still open; returns the first failure."""
        error = None
        for ctr in self.counters:
            if ctr.finalized:
                continue
            try:
                ctr.finalize()
            except Exception as e:
                print(f"[PktStats] WARNING: finalizing {ctr!r} failed: {e!r}", file=sys.stderr)
                if error is None:
                    error = e
        return error

    def _run_in_thread(self) -> None:
        # the thread has no caller to raise to; keep the error for join()ers
        try:
            self.run()
        except Exception as e:
            self.error = e
            print(f"[PktStats] Stats task {self.name!r} failed: {e!r}", file=sys.stderr)

    def start(self) -> "StatsTask":
        if self._thread is not None:
            raise RuntimeError(f"Stats task {self.name!r} already started")
        self._thread = threading.Thread(target=self._run_in_thread, name=self.name, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        """Ask the loop to finish. Does not wait, see join()."""
        self._stop.set()
        if self._own_clock:
            self.clock.stop()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


def start_stats_task(config: Optional[StatsTaskConfig] = None, clock: Optional[Clock] = None,
                     **kwargs: Any) -> StatsTask:
    """
    Build a StatsTask from `config` (or from StatsTaskConfig keyword
    arguments) and start it in a background thread.
    """
    if config is None:
        config = StatsTaskConfig(**kwargs)
    elif kwargs:
        raise TypeError("Pass either a StatsTaskConfig or keyword arguments, not both")
    return StatsTask.from_config(config, clock=clock).start()
