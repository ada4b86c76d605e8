"""
Extraction API endpoints.
Runs the mention extractor on free text and saves confirmed mentions.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import MissingDataError, SaveFailedError
from models.extraction_history import ExtractionHistory
from schemas.extraction import (
    ExtractionHistoryItem,
    ExtractionHistoryResponse,
    ExtractionResult,
    ExtractRequest,
    HistoryPagination,
    SaveRestaurantRequest
)
from schemas.restaurant import RestaurantRecordResponse, SaveRestaurantResponse
from services.enrichment_service import get_default_enricher
from services.extraction_service import extract
from services.merge_service import merge_mention
from services.restaurant_repository import RestaurantRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extraction", tags=["extraction"])


@router.post("/extract", response_model=ExtractionResult)
def extract_restaurant(request: ExtractRequest, db: Session = Depends(get_db)):
    """
    Extract restaurant information from text.

    A text that does not mention a restaurant is not an error: the response
    has success=false and a short explanation. Successful extractions are
    recorded in the user's extraction history.
    """
    if not request.text or not request.text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Text is required"
        )

    result = extract(request.text, media_link=request.media_link)

    if result.success:
        db.add(ExtractionHistory(
            user_id=request.user_id,
            original_text=request.text,
            extraction_result=result.analysis.model_dump()
        ))
        db.commit()

    return result


@router.post("/save", response_model=SaveRestaurantResponse, status_code=status.HTTP_201_CREATED)
def save_restaurant(request: SaveRestaurantRequest, db: Session = Depends(get_db)):
    """
    Save an extracted restaurant to the user's collection.

    Merges into the existing (user, name, location) record when there is one.
    """
    try:
        record = merge_mention(
            RestaurantRepository(db),
            request.restaurant,
            request.original_text,
            request.user_id,
            confidence=request.extraction_confidence,
            media_link=request.media_link,
            enricher=get_default_enricher()
        )
    except MissingDataError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SaveFailedError as e:
        logger.error("Save failed for user %s: %s", request.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save restaurant"
        )

    return SaveRestaurantResponse(
        success=True,
        message="Restaurant saved successfully",
        restaurant=RestaurantRecordResponse.from_record(record)
    )


@router.get("/history", response_model=ExtractionHistoryResponse)
def get_extraction_history(
    user_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db)
):
    """Extraction history for a user, newest first."""
    query = db.query(ExtractionHistory).filter(ExtractionHistory.user_id == user_id)
    total = query.count()
    rows = query.order_by(
        ExtractionHistory.timestamp.desc(),
        ExtractionHistory.id.desc()
    ).offset(offset).limit(limit).all()

    return ExtractionHistoryResponse(
        history=[ExtractionHistoryItem.model_validate(row) for row in rows],
        pagination=HistoryPagination(total=total, offset=offset, limit=limit)
    )
