import sys
from typing import Any, Tuple

import psutil

from .base_source import BaseSource
from ..errors import InvalidDeviceError


def unwrap_device(dev: Any) -> Any:
    """
    Accept either a device or an object carrying one in `.dev` (e.g. a
    queue handle) and check that it exposes the counter register readers.
    """
    dev = getattr(dev, "dev", None) or dev
    if dev is None or isinstance(dev, (str, bytes, int, float)):
        raise InvalidDeviceError(f"Bad device: {dev!r}")
    for attr in ("get_rx_stats", "get_tx_stats"):
        if not callable(getattr(dev, attr, None)):
            raise InvalidDeviceError(f"Bad device: {dev!r} has no {attr}()")
    return dev


def default_device_name(dev: Any) -> str:
    # the plain formatter adds its own brackets around the name
    name = str(dev)
    if len(name) >= 2 and name[0] in "[<(" and name[-1] in "]>)":
        name = name[1:-1]
    return name


class DeviceSource(BaseSource):
    """
    Pass-through to a device's hardware statistics registers.
    Readings are cumulative since the last register reset.
    """

    kind = "device"
    cumulative = True

    def __init__(self, dev: Any, direction: str):
        if direction not in ("rx", "tx"):
            raise ValueError(f"direction must be 'rx' or 'tx', got {direction!r}")
        self.dev = unwrap_device(dev)
        self.direction = direction

    def get_throughput(self) -> Tuple[int, int]:
        if self.direction == "rx":
            pkts, nbytes = self.dev.get_rx_stats()
        else:
            pkts, nbytes = self.dev.get_tx_stats()
        return int(pkts), int(nbytes)


class PsutilNetDevice:
    """
    Device backed by the host's per-NIC counters as reported by psutil.

    The kernel counters are cumulative since boot and are never reset by
    reading them. Byte counts exclude the Ethernet CRC.
    """

    def __init__(self, interface: str):
        self.interface = interface
        try:
            nics = psutil.net_io_counters(pernic=True)
        except Exception as e:
            raise InvalidDeviceError(f"Cannot read NIC counters: {e}") from e
        if interface not in nics:
            raise InvalidDeviceError(
                f"Unknown network interface {interface!r}, available: {', '.join(sorted(nics))}"
            )
        self._last = nics[interface]

    def _counters(self):
        counters = psutil.net_io_counters(pernic=True).get(self.interface)
        if counters is None:
            # interface went away mid-run, keep reporting the last totals
            print(f"[PktStats] WARNING: interface {self.interface} disappeared", file=sys.stderr)
            return self._last
        self._last = counters
        return counters

    def get_rx_stats(self) -> Tuple[int, int]:
        c = self._counters()
        return c.packets_recv, c.bytes_recv

    def get_tx_stats(self) -> Tuple[int, int]:
        c = self._counters()
        return c.packets_sent, c.bytes_sent

    def __str__(self) -> str:
        return self.interface

    def __repr__(self) -> str:
        return f"PsutilNetDevice({self.interface!r})"
