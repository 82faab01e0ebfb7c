"""Exception types raised while reading databases and aggregating lists."""

from __future__ import annotations


class ProxyListsError(Exception):
    """Base class for all proxylists errors."""


class DatabaseOpenError(ProxyListsError, OSError):
    """Raised when the database file cannot be opened or memory-mapped."""


class FormatViolation(ProxyListsError, ValueError):
    """Raised when a decode step reads outside the mapped region or hits malformed bytes.

    Readers catch this and substitute a sentinel, so it never escapes the public API.
    """


class AggregationLockError(ProxyListsError, RuntimeError):
    """Raised when the shared bucket accumulator lock cannot be acquired."""


class ExtractionTimeoutError(ProxyListsError, TimeoutError):
    """Raised when an extraction run exceeds its configured timeout."""


class ExtractionCancelledError(ProxyListsError):
    """Raised when an extraction run is cancelled before all chunks complete."""


__all__ = [
    "AggregationLockError",
    "DatabaseOpenError",
    "ExtractionCancelledError",
    "ExtractionTimeoutError",
    "FormatViolation",
    "ProxyListsError",
]
