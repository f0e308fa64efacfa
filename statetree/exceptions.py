"""
Store exceptions.

Every error raised by statetree derives from StoreError so callers can catch
the whole family in one place.
"""


class StoreError(Exception):
    """Base class for errors raised by statetree."""

    pass


class ConfigurationError(StoreError):
    """Raised when a store, setter, or action is malformed."""

    pass


class StoreClosedError(StoreError):
    """Raised when writing to a store after close()."""

    pass


class CircularDependencyError(StoreError):
    """Raised when computed fields keep changing each other and never settle."""

    pass
