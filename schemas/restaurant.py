"""
Pydantic schemas for Restaurant-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel
from typing import Optional, List, Dict

from models.restaurant import VisitStatus
from schemas.extraction import ExtractionConfidence


class RestaurantRecordResponse(BaseModel):
    """A restaurant from the user's collection."""
    id: int
    user_id: int
    name: str
    location: str
    cuisine: List[str] = []
    dishes: List[str] = []
    price_range: Optional[str] = None
    mentions: int
    mention_texts: List[str] = []
    extraction_confidence: ExtractionConfidence
    visit_status: VisitStatus
    visit_date: Optional[datetime] = None
    first_mentioned: datetime
    last_mentioned: datetime
    media_link: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def from_record(cls, record) -> "RestaurantRecordResponse":
        """Build the response from a RestaurantRecord row."""
        return cls(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            location=record.location,
            cuisine=list(record.cuisine or []),
            dishes=list(record.dishes or []),
            price_range=record.price_range,
            mentions=record.mentions,
            mention_texts=list(record.mention_texts or []),
            extraction_confidence=ExtractionConfidence(**record.get_extraction_confidence()),
            visit_status=VisitStatus(record.visit_status),
            visit_date=record.visit_date,
            first_mentioned=record.first_mentioned,
            last_mentioned=record.last_mentioned,
            media_link=record.media_link,
            address=record.address,
            latitude=record.latitude,
            longitude=record.longitude,
            rating=record.rating,
            phone=record.phone,
            website=record.website
        )


class SaveRestaurantResponse(BaseModel):
    """Response schema for POST /extraction/save."""
    success: bool
    message: str
    restaurant: Optional[RestaurantRecordResponse] = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class RestaurantListResponse(BaseModel):
    """Response schema for GET /restaurants."""
    success: bool = True
    restaurants: List[RestaurantRecordResponse] = []
    pagination: Pagination


class CuisineCount(BaseModel):
    cuisine: str
    count: int


class RestaurantStatsResponse(BaseModel):
    """Response schema for GET /restaurants/stats."""
    total_recommendations: int
    visit_status_stats: Dict[str, int]
    top_cuisines: List[CuisineCount] = []


class VisitStatusUpdate(BaseModel):
    """Request schema for PATCH /restaurants/{id}/status."""
    visit_status: VisitStatus
