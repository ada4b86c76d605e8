"""Models module containing SQLAlchemy ORM models."""
from models.user import User
from models.restaurant import RestaurantRecord, VisitStatus
from models.extraction_history import ExtractionHistory
from models.interaction import Interaction

__all__ = ["User", "RestaurantRecord", "VisitStatus", "ExtractionHistory", "Interaction"]
