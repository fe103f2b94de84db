"""pktstats - throughput counters for packet-processing pipelines

Samples packet and byte counts from a device, from individually counted
packets, or from manually reported batches, derives Mpps and Mbit/s rates
once per second and prints them through a pluggable formatter.

Quick Start:
    >>> from pktstats import new_manual_tx_counter
    >>>
    >>> ctr = new_manual_tx_counter("worker-1", format="plain")
    >>> for batch in batches:
    ...     send(batch)
    ...     ctr.update_with_size(len(batch), 60)
    >>> ctr.finalize()
    [worker-1] TX: 14.88 (StdDev 0.01) Mpps, 7619 (StdDev 3) Mbit/s (10000 Mbit/s with framing), ...

Core API:
    Counter: shared rate / statistics logic, built by the new_*_counter functions
    StatsTask: background thread sampling device counters until stopped
    FormatterRegistry: output formats ("plain", "CSV", "nil" built in)
"""

__version__ = "0.1.0"

from .clock import Clock, SystemClock
from .config import StatsTaskConfig, load_config
from .counter import (
    Counter,
    new_dev_rx_counter,
    new_dev_tx_counter,
    new_manual_rx_counter,
    new_manual_tx_counter,
    new_pkt_rx_counter,
    new_pkt_tx_counter,
)
from .errors import (
    ConfigurationError,
    CounterFinalizedError,
    InvalidDeviceError,
    PktStatsError,
    UnknownFormatError,
)
from .formatters import Formatter, FormatterRegistry
from .sources import PsutilNetDevice
from .stats import SampleSeries, add_stats, average, median, percentile, std_dev, sum_
from .task import StatsTask, start_stats_task

__all__ = [
    "Clock",
    "SystemClock",
    "StatsTaskConfig",
    "load_config",
    "Counter",
    "new_dev_rx_counter",
    "new_dev_tx_counter",
    "new_manual_rx_counter",
    "new_manual_tx_counter",
    "new_pkt_rx_counter",
    "new_pkt_tx_counter",
    "ConfigurationError",
    "CounterFinalizedError",
    "InvalidDeviceError",
    "PktStatsError",
    "UnknownFormatError",
    "Formatter",
    "FormatterRegistry",
    "PsutilNetDevice",
    "SampleSeries",
    "add_stats",
    "average",
    "median",
    "percentile",
    "std_dev",
    "sum_",
    "StatsTask",
    "start_stats_task",
    "__version__",
]
