"""
Restaurant-mention extraction.
Runs the matcher and the confidence scorer and shapes the result returned
to ingestion adapters and the extraction API.
"""
import logging
from typing import Optional

from models.restaurant import UNKNOWN_LOCATION, UNKNOWN_RESTAURANT
from schemas.extraction import (
    ExtractionAnalysis,
    ExtractionResult,
    RestaurantMention
)
from services.confidence import score
from services.lexicon import DEFAULT_LEXICON, Lexicon
from services.matcher import match

logger = logging.getLogger(__name__)


NOT_A_MENTION_MESSAGE = "This doesn't appear to mention a restaurant."


def extract(
    text: str,
    media_link: Optional[str] = None,
    lexicon: Lexicon = DEFAULT_LEXICON
) -> ExtractionResult:
    """
    Extract a structured restaurant mention from free text.

    A text that fails the restaurant gate is not an error: the result has
    success=False, no restaurant, a polite message and a zeroed analysis block.
    On success, a missing name or location is reported as the
    "Unknown Restaurant" / "Unknown Location" placeholder. No confidence
    threshold is applied here; callers decide whether to persist.

    Args:
        text: Message, comment or caption text
        media_link: Link to the originating Instagram media, copied onto the mention
        lexicon: Keyword/literal tables for the matcher

    Returns:
        ExtractionResult
    """
    signals = match(text, lexicon)

    if not signals.is_mention:
        return ExtractionResult(
            success=False,
            is_recommendation=False,
            analysis=ExtractionAnalysis(is_restaurant_mention=False),
            message=NOT_A_MENTION_MESSAGE
        )

    confidence = score(signals)

    analysis = ExtractionAnalysis(
        is_restaurant_mention=True,
        is_recommendation=signals.is_recommendation,
        restaurant_name=signals.name,
        restaurant_name_confidence=confidence.name,
        location=signals.location,
        location_confidence=confidence.location,
        cuisine=list(signals.cuisine),
        cuisine_confidence=confidence.cuisine,
        dishes_mentioned=list(signals.dishes),
        price_range=signals.price_range,
        overall=confidence.overall
    )

    restaurant = RestaurantMention(
        name=signals.name or UNKNOWN_RESTAURANT,
        location=signals.location or UNKNOWN_LOCATION,
        cuisine=list(signals.cuisine),
        dishes=list(signals.dishes),
        price_range=signals.price_range,
        is_recommendation=signals.is_recommendation,
        extraction_confidence=confidence,
        source_text=text,
        media_link=media_link
    )

    percent = round(confidence.overall * 100)
    logger.info(
        "Extracted %r at %r with %d%% confidence",
        restaurant.name, restaurant.location, percent
    )

    return ExtractionResult(
        success=True,
        restaurant=restaurant,
        is_recommendation=signals.is_recommendation,
        analysis=analysis,
        message=f"Successfully extracted restaurant information with {percent}% confidence."
    )
