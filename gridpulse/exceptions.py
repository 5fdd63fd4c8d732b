"""Exceptions raised by the analytics services."""


class GridPulseError(Exception):
    """Base exception for the analytics layer."""
    pass


class InvalidInputError(GridPulseError, ValueError):
    """Raised when a calculator receives input it cannot produce a result from."""
    pass
