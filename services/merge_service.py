"""
Restaurant merge engine.

Reconciles a newly extracted mention with the user's collection: an
existing (user_id, name, location) record is updated, otherwise a new one
is created. The lookup and the write are separate statements, so a create
that loses a race against a concurrent create is retried as an update.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from core.config import settings
from core.exceptions import (
    MissingDataError,
    PersistenceConflictError,
    SaveFailedError
)
from models.restaurant import (
    UNKNOWN_CUISINE,
    UNKNOWN_LOCATION,
    RestaurantRecord,
    VisitStatus
)
from schemas.extraction import ExtractionConfidence, RestaurantMention
from services.enrichment_service import get_default_enricher
from services.extraction_service import extract
from services.restaurant_repository import RestaurantRepository

logger = logging.getLogger(__name__)


def union_preserving_order(existing: Optional[Iterable[str]], new: Optional[Iterable[str]]) -> List[str]:
    """Existing items first, then new ones not already present (case-sensitive)."""
    merged = list(existing or [])
    for item in new or []:
        if item not in merged:
            merged.append(item)
    return merged


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _confidence_columns(confidence: ExtractionConfidence) -> dict:
    return {
        "confidence_name": confidence.name,
        "confidence_location": confidence.location,
        "confidence_cuisine": confidence.cuisine,
        "confidence_overall": confidence.overall
    }


def _enrichment_fields(enricher, name: str, location: str) -> dict:
    """Run the optional enricher; any failure is logged and ignored."""
    if enricher is None:
        return {}
    try:
        return enricher.enrich(name, location) or {}
    except Exception as e:
        logger.warning("Enrichment failed for %r (%s), saving without it: %s", name, location, e)
        return {}


def _update_existing(
    repository: RestaurantRepository,
    record: RestaurantRecord,
    mention: RestaurantMention,
    source_text: str,
    confidence: Optional[ExtractionConfidence],
    media_link: Optional[str]
) -> RestaurantRecord:
    patch = {
        "cuisine": union_preserving_order(record.cuisine, mention.cuisine),
        "dishes": union_preserving_order(record.dishes, mention.dishes),
        "mentions": (record.mentions or 0) + 1,
        "last_mentioned": _now(),
        # Every mention is kept, repeats included
        "mention_texts": list(record.mention_texts or []) + [source_text]
    }
    if confidence is not None:
        patch.update(_confidence_columns(confidence))
    if media_link:
        patch["media_link"] = media_link

    updated = repository.update(record.id, patch)
    logger.info("Updated restaurant %s, mentions=%d", updated.identity(), updated.mentions)
    return updated


def _create_new(
    repository: RestaurantRepository,
    mention: RestaurantMention,
    location: str,
    source_text: str,
    user_id: int,
    confidence: ExtractionConfidence,
    media_link: Optional[str],
    enricher,
    case_insensitive: bool
) -> RestaurantRecord:
    now = _now()
    values = {
        "user_id": user_id,
        "name": mention.name,
        "location": location,
        "cuisine": list(mention.cuisine) or [UNKNOWN_CUISINE],
        "dishes": list(mention.dishes),
        "price_range": mention.price_range,
        "mentions": 1,
        "mention_texts": [source_text],
        "media_link": media_link,
        "visit_status": VisitStatus.WANT_TO_VISIT.value,
        "visit_date": None,
        "first_mentioned": now,
        "last_mentioned": now,
        **_confidence_columns(confidence)
    }

    for field, value in _enrichment_fields(enricher, mention.name, location).items():
        # Places data fills gaps, it never overrides what the user said
        if values.get(field) is None:
            values[field] = value

    created = repository.create(values, case_insensitive=case_insensitive)
    logger.info("Saved new restaurant %s", created.identity())
    return created


def merge_mention(
    repository: RestaurantRepository,
    mention: RestaurantMention,
    source_text: str,
    user_id: Optional[int],
    confidence: Optional[ExtractionConfidence] = None,
    media_link: Optional[str] = None,
    case_insensitive: Optional[bool] = None,
    enricher=None,
    max_attempts: Optional[int] = None
) -> RestaurantRecord:
    """
    Create or update the user's record for a mention.

    Found by (user_id, name, location):
        cuisines and dishes are unioned in order, mentions += 1,
        last_mentioned = now, source_text is appended to mention_texts,
        the stored confidence is replaced only when `confidence` is passed,
        media_link is overwritten when one is supplied. visit_status,
        visit_date and first_mentioned are left alone.
    Not found:
        a new record with mentions=1, want_to_visit, mention_texts=[source_text],
        cuisine defaulting to ["Unknown"]. Enrichment runs here, best effort.

    Not idempotent: merging the same arguments twice counts two mentions.

    Args:
        repository: Persistence collaborator
        mention: Extracted restaurant mention
        source_text: Raw text the mention came from
        user_id: Owner of the collection
        confidence: Confidence to store; on create the mention's own
            confidence is used when omitted
        media_link: Instagram media link, falls back to mention.media_link
        case_insensitive: Identity lookup policy, defaults to settings
        enricher: Optional object with enrich(name, location) -> dict
        max_attempts: Conflict retries, defaults to settings

    Returns:
        The created or updated RestaurantRecord

    Raises:
        MissingDataError: No name or no user id
        SaveFailedError: Persistence still failing after the retries
    """
    if mention is None or not mention.name or user_id is None:
        raise MissingDataError("A restaurant name and a user id are required")

    location = mention.location or UNKNOWN_LOCATION
    media_link = media_link or mention.media_link
    if case_insensitive is None:
        case_insensitive = settings.CASE_INSENSITIVE_DEDUP
    attempts = max_attempts or settings.MERGE_MAX_ATTEMPTS

    retrying = Retrying(
        retry=retry_if_exception_type(PersistenceConflictError),
        stop=stop_after_attempt(attempts),
        reraise=True
    )
    try:
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info("Retrying merge of %r as update after conflict", mention.name)
                existing = repository.find_one(
                    user_id, mention.name, location, case_insensitive=case_insensitive
                )
                if existing is not None:
                    return _update_existing(
                        repository, existing, mention, source_text, confidence, media_link
                    )
                return _create_new(
                    repository, mention, location, source_text, user_id,
                    confidence or mention.extraction_confidence, media_link, enricher, case_insensitive
                )
    except PersistenceConflictError as e:
        logger.error("Giving up on %r after %d conflicting attempts", mention.name, attempts)
        raise SaveFailedError(f"Could not save {mention.name!r}") from e


def extract_and_maybe_save(
    repository: RestaurantRepository,
    text: str,
    user_id: int,
    confidence_threshold: Optional[float] = None,
    media_link: Optional[str] = None,
    enricher=None
) -> Optional[RestaurantRecord]:
    """
    Extract a mention from text and merge it when confident enough.

    Args:
        repository: Persistence collaborator
        text: Raw message text
        user_id: Owner of the collection
        confidence_threshold: Overall confidence must be strictly above this;
            defaults to SAVE_CONFIDENCE_THRESHOLD
        media_link: Instagram media link of the message, if any
        enricher: Places enricher, defaults to the configured one

    Returns:
        The saved record, or None when nothing was persisted
    """
    threshold = settings.SAVE_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold

    result = extract(text, media_link=media_link)
    if not result.success:
        logger.info("Not saving: %s", result.message)
        return None

    overall = result.restaurant.extraction_confidence.overall
    if overall <= threshold:
        logger.info(
            "Not saving %r: confidence %.2f <= threshold %.2f",
            result.restaurant.name, overall, threshold
        )
        return None

    return merge_mention(
        repository,
        result.restaurant,
        text,
        user_id,
        confidence=result.restaurant.extraction_confidence,
        media_link=media_link,
        enricher=enricher if enricher is not None else get_default_enricher()
    )
