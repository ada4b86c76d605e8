"""
Shared fixtures.
Every test runs against an in-memory SQLite database with external
services (OpenAI, Google Places, Instagram) left unconfigured.
"""
import os
import sys

# Must be set before core.config is imported anywhere
os.environ["DB_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["INSTAGRAM_APP_SECRET"] = ""
os.environ["INSTAGRAM_WEBHOOK_VERIFY_TOKEN"] = ""

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

import models  # noqa: F401  (registers tables on Base.metadata)
from core.database import Base, SessionLocal, engine
from models.user import User


@pytest.fixture
def db_session():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from main import app
    return TestClient(app)


@pytest.fixture
def user(db_session):
    """A user with a linked Instagram account."""
    u = User(
        name="Asha",
        email="asha@example.com",
        instagram_id="17841400000000001",
        instagram_username="asha.eats"
    )
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u
