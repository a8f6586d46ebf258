"""Exceptions raised by the record store and the match engine."""

from __future__ import annotations


class BMError(Exception):
    """Base class for every error bm reports to its caller."""


class LockUnavailableError(BMError):
    """The store lock file could not be locked."""


class StoreUnavailableError(BMError):
    """The data file could not be opened, written or closed."""


class CorruptRecordError(BMError):
    """A torn or unparseable line was found in the data file."""


class IDSpaceExhaustedError(BMError):
    """Every candidate generated ID is already taken."""


class NoMatchError(BMError):
    """No record matches the query."""


class DeleteFailedError(BMError):
    """Rewriting the data file failed; the store handle is no longer usable."""
