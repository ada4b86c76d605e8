"""Core module containing configuration, database setup and domain errors."""
from core.config import settings
from core.database import Base, get_db, engine, SessionLocal, init_db
from core.exceptions import (
    UniDineError,
    MissingDataError,
    PersistenceConflictError,
    EnrichmentFailure,
    SaveFailedError
)

__all__ = [
    "settings",
    "Base",
    "get_db",
    "engine",
    "SessionLocal",
    "init_db",
    "UniDineError",
    "MissingDataError",
    "PersistenceConflictError",
    "EnrichmentFailure",
    "SaveFailedError"
]
