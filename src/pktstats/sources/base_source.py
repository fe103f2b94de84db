from abc import ABC, abstractmethod
from typing import Tuple


class BaseSource(ABC):
    """
    Abstract base class for the ways a counter obtains raw packet and byte
    counts for the current interval (device registers, per-packet counting,
    manual injection).

    Sources are polled by their owning counter once per sampling interval.
    """

    #: "device", "packet" or "manual"
    kind: str = ""

    #: True if readings are running totals, False if they are per-interval
    #: deltas that the counter has to add to its own totals.
    cumulative: bool = False

    @abstractmethod
    def get_throughput(self) -> Tuple[int, int]:
        """
        Return (packets, bytes) for this source.

        Delta sources drain their in-flight accumulators here, so a second
        call with nothing counted in between returns (0, 0).
        """
        pass
