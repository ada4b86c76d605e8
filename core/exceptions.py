"""
Domain errors raised by the extraction/merge pipeline.
"""
from typing import Optional, Tuple


class UniDineError(Exception):
    """Base class for UniDine domain errors."""


class MissingDataError(UniDineError):
    """Merge was invoked without a restaurant name or a user id."""


class PersistenceConflictError(UniDineError):
    """A create hit the (user_id, name, location) uniqueness constraint."""

    def __init__(self, key: Tuple, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"Restaurant already exists for key {key}")


class EnrichmentFailure(UniDineError):
    """The optional places lookup failed. Always swallowed by the merge engine."""


class SaveFailedError(UniDineError):
    """Persisting a mention failed even after retrying."""
