"""
SQLAlchemy-backed persistence for restaurant records.

Each call is atomic on its own (one commit per call); a find followed by a
create is not, which is why the merge engine retries on conflicts.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import PersistenceConflictError, SaveFailedError
from models.restaurant import RestaurantRecord

logger = logging.getLogger(__name__)

IDENTITY_COLUMNS = frozenset({"user_id", "name", "location", "name_key", "location_key"})


def fold(value: str) -> str:
    """Case-folded form of a name or location."""
    return (value or "").strip().lower()


def dedup_key(value: str, case_insensitive: bool) -> str:
    """name_key/location_key value for a new record under the given policy."""
    return fold(value) if case_insensitive else (value or "")


class RestaurantRepository:
    """Find/create/update for RestaurantRecord rows of one database session."""

    def __init__(self, db: Session):
        self.db = db

    def find_one(
        self,
        user_id: int,
        name: str,
        location: str,
        case_insensitive: bool = False
    ) -> Optional[RestaurantRecord]:
        """
        Look up a record by its identity key.

        Args:
            user_id: Owner of the record
            name: Restaurant name
            location: Restaurant location
            case_insensitive: Compare lower-cased dedup keys instead of the
                exact display strings; keys stored exactly are lower-cased
                on the fly so they still match

        Returns:
            The record, or None if the key is unknown
        """
        query = self.db.query(RestaurantRecord).filter(RestaurantRecord.user_id == user_id)
        if case_insensitive:
            query = query.filter(
                func.lower(RestaurantRecord.name_key) == fold(name),
                func.lower(RestaurantRecord.location_key) == fold(location)
            )
        else:
            query = query.filter(
                RestaurantRecord.name == name,
                RestaurantRecord.location == location
            )
        return query.order_by(RestaurantRecord.id).first()

    def create(self, values: dict, case_insensitive: bool = False) -> RestaurantRecord:
        """
        Insert a new record.

        Args:
            values: RestaurantRecord column values
            case_insensitive: Store lower-cased dedup keys, so a concurrent
                create differing only in case is rejected

        Raises:
            PersistenceConflictError: The identity or the dedup key already exists
            SaveFailedError: Any other database error
        """
        record = RestaurantRecord(**values)
        record.name_key = dedup_key(record.name, case_insensitive)
        record.location_key = dedup_key(record.location, case_insensitive)
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            key = (values.get("user_id"), values.get("name"), values.get("location"))
            logger.info("Uniqueness conflict creating restaurant %s", key)
            raise PersistenceConflictError(key) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SaveFailedError(f"Could not create restaurant: {e}") from e
        self.db.refresh(record)
        return record

    def update(self, record_id: int, patch: dict) -> RestaurantRecord:
        """
        Apply a patch to an existing record.

        List/JSON values in the patch must be new objects, not mutated
        copies of the stored ones. Identity columns are not patchable.

        Raises:
            SaveFailedError: Record vanished or the database rejected the write
        """
        record = self.db.get(RestaurantRecord, record_id)
        if record is None:
            raise SaveFailedError(f"Restaurant {record_id} no longer exists")

        identity_fields = IDENTITY_COLUMNS.intersection(patch)
        if identity_fields:
            raise SaveFailedError(f"Cannot change {sorted(identity_fields)} of restaurant {record_id}")

        for field, value in patch.items():
            setattr(record, field, value)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SaveFailedError(f"Could not update restaurant {record_id}: {e}") from e
        self.db.refresh(record)
        return record
