"""Errors raised by the sourcing package."""


class SourcingError(Exception):
    """Base class for sourcing errors."""


class InvalidQueryError(SourcingError, ValueError):
    """Raised when a search query is absent, blank, or too long."""
