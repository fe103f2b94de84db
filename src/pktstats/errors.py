class PktStatsError(Exception):
    """Base class for all pktstats errors."""


class ConfigurationError(PktStatsError, ValueError):
    """Raised when a counter or task cannot be built from the given arguments."""


class UnknownFormatError(ConfigurationError):
    def __init__(self, format_name: str):
        super().__init__(f"Unsupported output format {format_name!r}")
        self.format_name = format_name


class InvalidDeviceError(ConfigurationError):
    pass


class CounterFinalizedError(PktStatsError, RuntimeError):
    """Raised when a finalized counter is sampled or finalized again."""
