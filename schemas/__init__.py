"""Schemas module containing Pydantic request/response DTOs."""
from schemas.user import UserResponse, InstagramLinkUpdate
from schemas.extraction import (
    ExtractionConfidence,
    RestaurantMention,
    ExtractionAnalysis,
    ExtractionResult,
    ExtractRequest,
    SaveRestaurantRequest,
    ExtractionHistoryItem,
    ExtractionHistoryResponse
)
from schemas.restaurant import (
    RestaurantRecordResponse,
    SaveRestaurantResponse,
    RestaurantListResponse,
    RestaurantStatsResponse,
    VisitStatusUpdate
)

__all__ = [
    "UserResponse",
    "InstagramLinkUpdate",
    "ExtractionConfidence",
    "RestaurantMention",
    "ExtractionAnalysis",
    "ExtractionResult",
    "ExtractRequest",
    "SaveRestaurantRequest",
    "ExtractionHistoryItem",
    "ExtractionHistoryResponse",
    "RestaurantRecordResponse",
    "SaveRestaurantResponse",
    "RestaurantListResponse",
    "RestaurantStatsResponse",
    "VisitStatusUpdate"
]
