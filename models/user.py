"""
SQLAlchemy model for User table.
"""
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func

from core.database import Base


class User(Base):
    """User model representing the users table."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    # Linked Instagram account (sender id as delivered by webhooks)
    instagram_id = Column(String(64), nullable=True, unique=True, index=True)
    instagram_username = Column(String(255), nullable=True)
