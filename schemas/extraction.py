"""
Pydantic schemas for restaurant-mention extraction.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


PriceRange = Literal["$", "$$", "$$$", "$$$$"]


class ExtractionConfidence(BaseModel):
    """Per-field confidence of one extraction, all in [0, 1]."""
    name: float = Field(default=0.0, ge=0.0, le=1.0)
    location: float = Field(default=0.0, ge=0.0, le=1.0)
    cuisine: float = Field(default=0.0, ge=0.0, le=1.0)
    overall: float = Field(default=0.0, ge=0.0, le=1.0)

    class Config:
        from_attributes = True


class RestaurantMention(BaseModel):
    """A single restaurant reference found in one message."""
    name: Optional[str] = None
    location: Optional[str] = None
    cuisine: List[str] = []
    dishes: List[str] = []
    price_range: Optional[PriceRange] = None
    is_recommendation: bool = False
    extraction_confidence: ExtractionConfidence = Field(default_factory=ExtractionConfidence)
    source_text: str = ""
    media_link: Optional[str] = None


class ExtractionAnalysis(BaseModel):
    """Raw analysis block, present on both the success and the failure path."""
    is_restaurant_mention: bool = False
    is_recommendation: bool = False
    restaurant_name: Optional[str] = None
    restaurant_name_confidence: float = 0.0
    location: Optional[str] = None
    location_confidence: float = 0.0
    cuisine: List[str] = []
    cuisine_confidence: float = 0.0
    dishes_mentioned: List[str] = []
    price_range: Optional[PriceRange] = None
    overall: float = 0.0


class ExtractionResult(BaseModel):
    """Response schema of a single extraction call."""
    success: bool
    restaurant: Optional[RestaurantMention] = None
    is_recommendation: bool = False
    analysis: ExtractionAnalysis = Field(default_factory=ExtractionAnalysis)
    message: str


class ExtractRequest(BaseModel):
    """Request schema for POST /extraction/extract."""
    user_id: int
    text: str
    media_link: Optional[str] = None


class SaveRestaurantRequest(BaseModel):
    """Request schema for POST /extraction/save."""
    user_id: int
    restaurant: RestaurantMention
    original_text: str
    extraction_confidence: Optional[ExtractionConfidence] = None
    media_link: Optional[str] = None


class ExtractionHistoryItem(BaseModel):
    """One stored extraction."""
    id: int
    original_text: str
    extraction_result: Dict[str, Any]
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


class HistoryPagination(BaseModel):
    total: int
    offset: int
    limit: int


class ExtractionHistoryResponse(BaseModel):
    """Response schema for GET /extraction/history."""
    success: bool = True
    history: List[ExtractionHistoryItem] = []
    pagination: HistoryPagination
