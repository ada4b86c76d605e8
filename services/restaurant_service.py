"""
Restaurant collection service.
Listing, statistics and visit-status changes on a user's saved restaurants.
"""
import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from models.restaurant import RestaurantRecord, VisitStatus

logger = logging.getLogger(__name__)


SORT_COLUMNS = {
    "last_mentioned": RestaurantRecord.last_mentioned,
    "first_mentioned": RestaurantRecord.first_mentioned,
    "name": RestaurantRecord.name,
    "mentions": RestaurantRecord.mentions
}


def get_user_restaurant(db: Session, record_id: int, user_id: int) -> Optional[RestaurantRecord]:
    """Fetch one record, only if it belongs to the user."""
    return db.query(RestaurantRecord).filter(
        RestaurantRecord.id == record_id,
        RestaurantRecord.user_id == user_id
    ).first()


def list_user_restaurants(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    sort: str = "last_mentioned",
    order: str = "desc",
    visit_status: Optional[str] = None,
    cuisine: Optional[str] = None,
    search: Optional[str] = None
) -> Tuple[List[RestaurantRecord], Dict[str, int]]:
    """
    List a user's restaurants with filters and pagination.

    Cuisine and search are matched in Python because cuisine, dishes and
    mention texts are JSON lists.

    Args:
        db: Database session
        user_id: Owner of the collection
        page: 1-based page number
        limit: Page size
        sort: One of SORT_COLUMNS
        order: "asc" or "desc"
        visit_status: Only records with this status
        cuisine: Only records whose cuisine list contains this value
        search: Case-insensitive substring over name, location, cuisine,
            dishes and mention texts

    Returns:
        Tuple of (records on the page, pagination dict)
    """
    page = max(1, page)
    limit = max(1, limit)

    query = db.query(RestaurantRecord).filter(RestaurantRecord.user_id == user_id)
    if visit_status:
        query = query.filter(RestaurantRecord.visit_status == visit_status)

    column = SORT_COLUMNS.get(sort, RestaurantRecord.last_mentioned)
    query = query.order_by(column.asc() if order == "asc" else column.desc(), RestaurantRecord.id)

    records = query.all()

    if cuisine:
        records = [r for r in records if cuisine in (r.cuisine or [])]

    if search:
        needle = search.lower()
        records = [r for r in records if _matches_search(r, needle)]

    total = len(records)
    start = (page - 1) * limit
    pagination = {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit)
    }
    return records[start:start + limit], pagination


def _matches_search(record: RestaurantRecord, needle: str) -> bool:
    haystack = [record.name or "", record.location or ""]
    haystack.extend(record.cuisine or [])
    haystack.extend(record.dishes or [])
    haystack.extend(record.mention_texts or [])
    return any(needle in value.lower() for value in haystack)


def get_user_stats(db: Session, user_id: int, top_n: int = 5) -> dict:
    """
    Collection statistics: total, per-status counts and top cuisines.

    Returns:
        Dictionary with total_recommendations, visit_status_stats
        (every status present) and top_cuisines
    """
    records = db.query(RestaurantRecord).filter(RestaurantRecord.user_id == user_id).all()

    status_counts = {status.value: 0 for status in VisitStatus}
    cuisine_counts: Counter = Counter()
    for record in records:
        if record.visit_status in status_counts:
            status_counts[record.visit_status] += 1
        cuisine_counts.update(record.cuisine or [])

    return {
        "total_recommendations": len(records),
        "visit_status_stats": status_counts,
        "top_cuisines": [
            {"cuisine": cuisine, "count": count}
            for cuisine, count in cuisine_counts.most_common(top_n)
        ]
    }


def get_user_cuisines(db: Session, user_id: int) -> List[str]:
    """Sorted distinct cuisines across the user's collection."""
    records = db.query(RestaurantRecord.cuisine).filter(RestaurantRecord.user_id == user_id).all()
    cuisines = set()
    for (values,) in records:
        cuisines.update(values or [])
    return sorted(cuisines)


def update_visit_status(
    db: Session,
    record: RestaurantRecord,
    visit_status: VisitStatus
) -> RestaurantRecord:
    """
    Change the visit status.

    visit_date is stamped the first time the record becomes visited and is
    never overwritten afterwards.
    """
    record.visit_status = visit_status.value
    if visit_status == VisitStatus.VISITED and record.visit_date is None:
        record.visit_date = datetime.now(timezone.utc)

    db.commit()
    db.refresh(record)
    logger.info("Restaurant %s marked %s", record.id, record.visit_status)
    return record


def delete_restaurant(db: Session, record: RestaurantRecord) -> None:
    db.delete(record)
    db.commit()
