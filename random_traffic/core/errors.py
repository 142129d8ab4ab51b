from __future__ import annotations


class RandomTrafficError(Exception):
    """Base class for errors raised by the random-traffic pipeline."""


class ConfigurationError(RandomTrafficError, ValueError):
    """Invalid configuration value. Raised before any simulation setup."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class SchedulingError(RandomTrafficError, ValueError):
    """An event could not be scheduled (e.g. it would fall before time zero)."""


class ReportWriteError(RandomTrafficError, OSError):
    """The flow report could not be written."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Cannot write flow report to '{path}': {cause}")
        self.path = path
        self.cause = cause
