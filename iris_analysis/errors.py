"""
Exceptions raised by the Iris analysis library.

Statistics over an empty record set do not raise: they return ``None`` as the
"no data" result so that an agent conversation keeps progressing.
"""


class DataLoadError(IOError):
    """The Iris CSV is unreadable, empty or missing required columns."""


class InvalidArgumentError(ValueError):
    """A column, percentile, confidence level, order or method is not valid."""
