from typing import Any, TextIO

from rich.console import Console
from rich.text import Text

from .base_formatter import Formatter, noop

DIRECTION_STYLES = {
    "RX": "cyan",
    "TX": "blue",
}


def _write_line(file: TextIO, text: Text) -> None:
    """
    Render one line to `file` and flush it. Colour codes are only emitted
    when `file` is a terminal.
    """
    console = Console(file=file, highlight=False, emoji=False, markup=False, soft_wrap=True)
    console.print(text)
    file.flush()


def make_plain_update(direction: str):
    style = DIRECTION_STYLES[direction]

    def update(counter: Any, file: TextIO, total: int, mpps: float, mbit: float, wire_mbit: float) -> None:
        _write_line(file, Text.assemble(
            (f"[{counter.name}] {direction}", style),
            f": {mpps:.2f} Mpps, {mbit:.0f} Mbit/s ({wire_mbit:.0f} Mbit/s with framing)",
        ))

    return update


def make_plain_final(direction: str):
    def final(counter: Any, file: TextIO) -> None:
        _write_line(file, Text(
            f"[{counter.name}] {direction}: "
            f"{counter.mpps.avg:.2f} (StdDev {counter.mpps.std_dev:.2f}) Mpps, "
            f"{counter.mbit.avg:.0f} (StdDev {counter.mbit.std_dev:.0f}) Mbit/s "
            f"({counter.wire_mbit.avg:.0f} Mbit/s with framing), "
            f"total {counter.total} packets with {counter.total_bytes} bytes (incl. CRC)"
        ))

    return final


PLAIN_FORMATTER = Formatter(
    rx_init=noop,  # nothing for plain, machine-readable formats can print a header here
    rx_update=make_plain_update("RX"),
    rx_final=make_plain_final("RX"),
    tx_init=noop,
    tx_update=make_plain_update("TX"),
    tx_final=make_plain_final("TX"),
)
