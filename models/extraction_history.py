"""
SQLAlchemy model for the extraction audit trail.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, Index
from sqlalchemy.sql import func

from core.database import Base


class ExtractionHistory(Base):
    """One row per successful extraction requested through the API."""

    __tablename__ = "extraction_history"
    __table_args__ = (
        Index("ix_extraction_history_user_time", "user_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    original_text = Column(Text, nullable=False)
    extraction_result = Column(JSON, nullable=False, comment="Analysis block of the extraction")
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
