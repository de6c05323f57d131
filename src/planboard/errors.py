"""Failures raised by data sources.

Every data source translates its native errors into one of these so the
stores only ever have to catch ``DataSourceError``.
"""

from __future__ import annotations


class DataSourceError(Exception):
    """Base class for remote call failures. ``str(err)`` is shown to the user verbatim."""


class TransientError(DataSourceError):
    """Network, backend or auth failure. Recoverable by rollback and retry."""


class ValidationError(DataSourceError):
    """The backend rejected the input."""


class NotFoundError(DataSourceError):
    """The target record no longer exists remotely."""
