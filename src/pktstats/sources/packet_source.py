import threading
from typing import Any, Tuple

from .base_source import BaseSource

# Ethernet frame check sequence, not included in the buffer length
CRC_BYTES = 4


def packet_length(buf: Any) -> int:
    """Length of a packet buffer: `buf.pkt_len` if present, else len(buf)."""
    pkt_len = getattr(buf, "pkt_len", None)
    if pkt_len is None:
        if isinstance(buf, (bytes, bytearray, memoryview)):
            return len(buf)
        raise TypeError(f"Cannot determine packet length of {type(buf).__name__}")
    return int(pkt_len)


class PacketSource(BaseSource):
    """
    Counts packets handed to `count_packet()` one by one.

    The in-flight packet and byte counts are drained by `get_throughput()`.
    """

    kind = "packet"
    cumulative = False

    def __init__(self):
        self.current = 0
        self.current_bytes = 0
        self._lock = threading.Lock()

    def count_packet(self, buf: Any) -> None:
        nbytes = packet_length(buf) + CRC_BYTES
        with self._lock:
            self.current += 1
            self.current_bytes += nbytes

    def get_throughput(self) -> Tuple[int, int]:
        with self._lock:
            pkts, nbytes = self.current, self.current_bytes
            self.current, self.current_bytes = 0, 0
        return pkts, nbytes
