"""
SQLAlchemy model for the per-user restaurant collection.
"""
from enum import Enum

from sqlalchemy import (
    Column, String, Float, Integer, Text, DateTime, JSON, UniqueConstraint
)
from sqlalchemy.sql import func

from core.database import Base


class VisitStatus(str, Enum):
    """Where the restaurant sits in the user's to-visit list."""
    WANT_TO_VISIT = "want_to_visit"
    VISITED = "visited"
    NOT_INTERESTED = "not_interested"


UNKNOWN_RESTAURANT = "Unknown Restaurant"
UNKNOWN_LOCATION = "Unknown Location"
UNKNOWN_CUISINE = "Unknown"


class RestaurantRecord(Base):
    """
    A restaurant accumulated over every mention a single user has made of it.

    Identity is (user_id, name, location). name_key/location_key hold the
    dedup key under the policy in force when the row was created (lower-cased
    when case-insensitive, exact otherwise) and are unique per user, so two
    racing creates of the same folded key cannot both land.

    user_id is a lookup key only, no foreign key: records are never owned or
    cascaded by the users table.
    """

    __tablename__ = "restaurants"
    __table_args__ = (
        UniqueConstraint("user_id", "name", "location", name="uq_restaurant_identity"),
        UniqueConstraint("user_id", "name_key", "location_key", name="uq_restaurant_dedup_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False, comment="Display-case name")
    location = Column(String(255), nullable=False, default=UNKNOWN_LOCATION)
    # Dedup key, see class docstring
    name_key = Column(String(255), nullable=False)
    location_key = Column(String(255), nullable=False)

    cuisine = Column(JSON, nullable=False, default=list)
    dishes = Column(JSON, nullable=False, default=list)
    price_range = Column(String(4), nullable=True, comment="$, $$, $$$ or $$$$")

    # Extraction confidence of the latest mention that supplied one
    confidence_name = Column(Float, nullable=False, default=0.0)
    confidence_location = Column(Float, nullable=False, default=0.0)
    confidence_cuisine = Column(Float, nullable=False, default=0.0)
    confidence_overall = Column(Float, nullable=False, default=0.0)

    mentions = Column(Integer, nullable=False, default=1)
    mention_texts = Column(JSON, nullable=False, default=list)
    media_link = Column(String(500), nullable=True)

    visit_status = Column(String(20), nullable=False, default=VisitStatus.WANT_TO_VISIT.value)
    visit_date = Column(DateTime(timezone=True), nullable=True)
    first_mentioned = Column(DateTime(timezone=True), nullable=False)
    last_mentioned = Column(DateTime(timezone=True), nullable=False)

    # Places enrichment, never touches the identity fields
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    rating = Column(Float, nullable=True)
    phone = Column(String(50), nullable=True)
    website = Column(String(500), nullable=True)
    google_place_id = Column(String(255), nullable=True)

    user_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def get_extraction_confidence(self) -> dict:
        """Return extraction confidence as a dictionary."""
        return {
            "name": self.confidence_name or 0.0,
            "location": self.confidence_location or 0.0,
            "cuisine": self.confidence_cuisine or 0.0,
            "overall": self.confidence_overall or 0.0
        }

    def identity(self) -> tuple:
        """Dedup key (user_id, name, location)."""
        return (self.user_id, self.name, self.location)
