"""
Restaurant collection API endpoints.
Every route is scoped to the owning user through the user_id query parameter.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from models.restaurant import RestaurantRecord, VisitStatus
from schemas.restaurant import (
    Pagination,
    RestaurantListResponse,
    RestaurantRecordResponse,
    RestaurantStatsResponse,
    VisitStatusUpdate
)
from services.restaurant_service import (
    SORT_COLUMNS,
    delete_restaurant,
    get_user_cuisines,
    get_user_restaurant,
    get_user_stats,
    list_user_restaurants,
    update_visit_status
)

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def _get_owned_or_404(db: Session, record_id: int, user_id: int) -> RestaurantRecord:
    record = get_user_restaurant(db, record_id, user_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Restaurant with id {record_id} not found"
        )
    return record


@router.get("", response_model=RestaurantListResponse)
def list_restaurants(
    user_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: str = "last_mentioned",
    order: Literal["asc", "desc"] = "desc",
    visit_status: Optional[VisitStatus] = None,
    cuisine: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    List the user's saved restaurants.

    Supports filtering by visit status and cuisine, free-text search and
    sorting by last_mentioned, first_mentioned, name or mentions.
    """
    if sort not in SORT_COLUMNS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort field. Must be one of: {', '.join(SORT_COLUMNS)}"
        )

    records, pagination = list_user_restaurants(
        db,
        user_id,
        page=page,
        limit=limit,
        sort=sort,
        order=order,
        visit_status=visit_status.value if visit_status else None,
        cuisine=cuisine,
        search=search
    )
    return RestaurantListResponse(
        restaurants=[RestaurantRecordResponse.from_record(r) for r in records],
        pagination=Pagination(**pagination)
    )


@router.get("/stats", response_model=RestaurantStatsResponse)
def restaurant_stats(user_id: int, db: Session = Depends(get_db)):
    """Totals per visit status and the user's top cuisines."""
    return RestaurantStatsResponse(**get_user_stats(db, user_id))


@router.get("/cuisines", response_model=List[str])
def restaurant_cuisines(user_id: int, db: Session = Depends(get_db)):
    """Distinct cuisines in the user's collection."""
    return get_user_cuisines(db, user_id)


@router.get("/{record_id}", response_model=RestaurantRecordResponse)
def get_restaurant(record_id: int, user_id: int, db: Session = Depends(get_db)):
    """Get one saved restaurant."""
    record = _get_owned_or_404(db, record_id, user_id)
    return RestaurantRecordResponse.from_record(record)


@router.patch("/{record_id}/status", response_model=RestaurantRecordResponse)
def change_visit_status(
    record_id: int,
    user_id: int,
    update: VisitStatusUpdate,
    db: Session = Depends(get_db)
):
    """
    Update the visit status.

    The first change to "visited" stamps visit_date.
    """
    record = _get_owned_or_404(db, record_id, user_id)
    record = update_visit_status(db, record, update.visit_status)
    return RestaurantRecordResponse.from_record(record)


@router.delete("/{record_id}", status_code=status.HTTP_200_OK)
def remove_restaurant(record_id: int, user_id: int, db: Session = Depends(get_db)):
    """Delete a saved restaurant."""
    record = _get_owned_or_404(db, record_id, user_id)
    delete_restaurant(db, record)
    return {"success": True, "message": "Restaurant deleted successfully"}
