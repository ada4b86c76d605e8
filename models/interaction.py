"""
SQLAlchemy model for inbound Instagram interactions (DMs, comments, mentions).
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, UniqueConstraint
)
from sqlalchemy.sql import func

from core.database import Base


class Interaction(Base):
    """A single webhook event after processing."""

    __tablename__ = "interactions"
    __table_args__ = (
        UniqueConstraint("instagram_user_id", "external_id", name="uq_interaction_event"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    instagram_user_id = Column(String(64), nullable=False)
    external_id = Column(String(128), nullable=False, comment="Message id / comment id")
    type = Column(String(20), nullable=False, comment="direct_message, comment or mention")
    media_id = Column(String(64), nullable=True)
    media_link = Column(String(500), nullable=True)
    content = Column(Text, nullable=False, default="")

    sentiment = Column(String(20), nullable=False, default="neutral")
    intent = Column(String(20), nullable=False, default="other")

    restaurant_id = Column(Integer, nullable=True, comment="Record saved from this event")
    responded = Column(Boolean, nullable=False, default=False)
    response_text = Column(Text, nullable=True)

    timestamp = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
