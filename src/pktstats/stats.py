"""
Descriptive statistics over per-interval rate samples.

All helpers expect a non-empty sequence of numbers and raise ValueError on an
empty one. `add_stats` is the only caller-facing entry point that tolerates
short series, see its docstring for the exact policy.
"""
import math
from typing import Iterable, Optional, Sequence

import numpy as np


class SampleSeries(list):
    """
    Ordered per-interval samples (e.g. mpps values) with summary fields
    attached by `add_stats`. The summary fields stay None until then.
    """

    def __init__(self, iterable: Iterable[float] = ()):
        super().__init__(iterable)
        self.avg: Optional[float] = None
        self.std_dev: Optional[float] = None
        self.median: Optional[float] = None
        self.sum: Optional[float] = None

    def summary(self) -> dict:
        return {
            "avg": self.avg,
            "std_dev": self.std_dev,
            "median": self.median,
            "sum": self.sum,
        }


def _check(data: Sequence[float]) -> None:
    if len(data) == 0:
        raise ValueError("statistics require at least one sample")


def average(data: Sequence[float]) -> float:
    _check(data)
    return float(np.mean(np.asarray(data, dtype=float)))


def percentile(data: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile: the element at 1-based rank ceil(n * p / 100)
    of the ascending sorted data. No interpolation between neighbours.
    """
    _check(data)
    ordered = sorted(data)
    rank = math.ceil(len(ordered) * p / 100)
    return ordered[max(rank, 1) - 1]


def median(data: Sequence[float]) -> float:
    return percentile(data, 50)


def std_dev(data: Sequence[float]) -> float:
    """
    Sample standard deviation (Bessel's correction, n - 1 divisor).

    The n - 1 divisor is undefined for a single sample; that case returns
    nan rather than raising.
    """
    _check(data)
    if len(data) < 2:
        return float("nan")
    return float(np.std(np.asarray(data, dtype=float), ddof=1))


def sum_(data: Sequence[float]) -> float:
    _check(data)
    return float(np.sum(np.asarray(data, dtype=float)))


def add_stats(series: SampleSeries, drop_ends: bool) -> SampleSeries:
    """
    Attach avg, std_dev, median and sum to `series`.

    Args:
        series (SampleSeries): Samples to summarize. The list itself is not modified.
        drop_ends (bool): Ignore the first and last sample. The first rate sample
            of a run covers the warm-up interval and the last one is the drain
            sample taken after traffic stopped, both skew the averages.

    If the selected window is empty (fewer than three samples with
    `drop_ends`) avg, std_dev and median are nan and sum is 0.0. A window of
    exactly one sample yields std_dev == nan.
    """
    window = list(series[1:-1]) if drop_ends else list(series)
    if not window:
        series.avg = float("nan")
        series.std_dev = float("nan")
        series.median = float("nan")
        series.sum = 0.0
        return series

    series.avg = average(window)
    series.std_dev = std_dev(window)
    series.median = median(window)
    series.sum = sum_(window)
    return series
