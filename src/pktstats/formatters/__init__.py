from .base_formatter import Formatter, NIL_FORMATTER
from .plain_formatter import PLAIN_FORMATTER
from .registry import FormatterRegistry

register = FormatterRegistry.register
resolve = FormatterRegistry.resolve

__all__ = [
    "Formatter",
    "FormatterRegistry",
    "NIL_FORMATTER",
    "PLAIN_FORMATTER",
    "register",
    "resolve",
]
