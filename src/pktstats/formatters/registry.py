import threading
from typing import Dict, List

from .base_formatter import Formatter, NIL_FORMATTER
from .plain_formatter import PLAIN_FORMATTER
from ..errors import UnknownFormatError


class FormatterRegistry:
    """
    Process-wide table of output formats, looked up by name when a counter
    is built.
    """

    # Key: format name (e.g. "plain"), value: its Formatter
    _formatters: Dict[str, Formatter] = {}

    # Counters may be built from several threads
    _lock = threading.Lock()

    @classmethod
    def register(cls, name: str, formatter: Formatter) -> None:
        """Register `formatter` under `name`, replacing any previous entry."""
        if not isinstance(name, str) or not name:
            raise ValueError(f"Formatter name must be a non-empty string, got {name!r}")
        if not isinstance(formatter, Formatter):
            raise TypeError(f"Expected a Formatter, got {type(formatter).__name__}")
        with cls._lock:
            cls._formatters[name] = formatter

    @classmethod
    def resolve(cls, name: str) -> Formatter:
        with cls._lock:
            formatter = cls._formatters.get(name)
        if formatter is None:
            raise UnknownFormatError(name)
        return formatter

    @classmethod
    def unregister(cls, name: str) -> None:
        with cls._lock:
            cls._formatters.pop(name, None)

    @classmethod
    def names(cls) -> List[str]:
        with cls._lock:
            return sorted(cls._formatters)


FormatterRegistry.register("plain", PLAIN_FORMATTER)
# Formatter that does nothing
FormatterRegistry.register("nil", NIL_FORMATTER)
# TODO: real comma-separated output with a header line from the init callbacks
FormatterRegistry.register("CSV", PLAIN_FORMATTER)
