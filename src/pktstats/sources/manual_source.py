import threading
from typing import Tuple

from .base_source import BaseSource
from .packet_source import CRC_BYTES


class ManualSource(BaseSource):
    """
    Source fed with aggregate counts by the caller, e.g. a worker that
    reports how many packets of a known size it sent in its last batch.

    Each call to `get_throughput()`:
      - Returns everything added since the previous call.
      - Resets the in-flight accumulators to zero.
    """

    kind = "manual"
    cumulative = False

    def __init__(self):
        self.current = 0
        self.current_bytes = 0
        self._lock = threading.Lock()

    def add(self, pkts: int, nbytes: int) -> None:
        with self._lock:
            self.current += pkts
            self.current_bytes += nbytes

    def add_with_size(self, pkts: int, size: int) -> None:
        """Add `pkts` packets of `size` bytes each (CRC not included in `size`)."""
        self.add(pkts, pkts * (size + CRC_BYTES))

    def get_throughput(self) -> Tuple[int, int]:
        with self._lock:
            pkts, nbytes = self.current, self.current_bytes
            self.current, self.current_bytes = 0, 0
        return pkts, nbytes
