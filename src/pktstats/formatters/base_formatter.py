from dataclasses import dataclass, fields
from typing import Any, Callable, Optional

EVENTS = ("init", "update", "final")
DIRECTIONS = ("rx", "tx")


@dataclass(frozen=True)
class Formatter:
    """
    Output format for counters: one callback per (direction, event).

    Callback signatures:
        init(counter, file)
        update(counter, file, total, mpps, mbit, wire_mbit)
        final(counter, file)

    A slot left as None is not an error; the counter prints a diagnostic
    trace of the event instead.
    """

    rx_init: Optional[Callable[..., Any]] = None
    rx_update: Optional[Callable[..., Any]] = None
    rx_final: Optional[Callable[..., Any]] = None

    tx_init: Optional[Callable[..., Any]] = None
    tx_update: Optional[Callable[..., Any]] = None
    tx_final: Optional[Callable[..., Any]] = None

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and not callable(value):
                raise TypeError(f"Formatter slot {f.name} must be callable, got {type(value).__name__}")

    def get(self, direction: str, event: str) -> Optional[Callable[..., Any]]:
        if direction not in DIRECTIONS or event not in EVENTS:
            raise ValueError(f"Unknown formatter slot {direction}_{event}")
        return getattr(self, f"{direction}_{event}")


def noop(*args, **kwargs) -> None:
    pass


NIL_FORMATTER = Formatter(
    rx_init=noop,
    rx_update=noop,
    rx_final=noop,
    tx_init=noop,
    tx_update=noop,
    tx_final=noop,
)
