"""Services module containing business logic."""
from services.extraction_service import extract
from services.merge_service import merge_mention, extract_and_maybe_save
from services.restaurant_repository import RestaurantRepository
from services.enrichment_service import PlacesEnricher, get_default_enricher
from services.ai_service import analyze_message, generate_response
from services.webhook_service import process_webhook_events

__all__ = [
    "extract",
    "merge_mention",
    "extract_and_maybe_save",
    "RestaurantRepository",
    "PlacesEnricher",
    "get_default_enricher",
    "analyze_message",
    "generate_response",
    "process_webhook_events"
]
