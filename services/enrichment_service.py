"""
Google Places enrichment for newly saved restaurants.
Best effort only: every failure surfaces as EnrichmentFailure and the
caller keeps the unenriched record.
"""
import logging
from typing import Dict, Optional

import httpx

from core.config import settings
from core.exceptions import EnrichmentFailure
from models.restaurant import UNKNOWN_LOCATION, UNKNOWN_RESTAURANT

logger = logging.getLogger(__name__)


TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

PRICE_LEVEL_MAP = {
    1: "$",
    2: "$$",
    3: "$$$",
    4: "$$$$"
}


class PlacesEnricher:
    """Looks a restaurant up in Google Places and returns extra fields."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
        self.timeout = timeout if timeout is not None else settings.ENRICHMENT_TIMEOUT
        # Injected clients belong to the caller; otherwise one is opened per lookup
        self.client = client

    def _get(self, client: httpx.Client, url: str, params: dict) -> dict:
        try:
            response = client.get(url, params={**params, "key": self.api_key})
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise EnrichmentFailure(f"Places request failed: {e}") from e

    def enrich(self, name: str, location: Optional[str] = None) -> Dict:
        """
        Fetch address, coordinates, rating, price range and contact info.

        Args:
            name: Restaurant name
            location: Known location, used to narrow the search

        Returns:
            Dict of RestaurantRecord column values (only the ones found);
            empty when there is nothing to look up

        Raises:
            EnrichmentFailure: On any HTTP or payload error
        """
        if not self.api_key or not name or name == UNKNOWN_RESTAURANT:
            return {}

        query = name if not location or location == UNKNOWN_LOCATION else f"{name} {location}"
        if self.client is not None:
            return self._lookup(self.client, query)
        with httpx.Client(timeout=self.timeout) as client:
            return self._lookup(client, query)

    def _lookup(self, client: httpx.Client, query: str) -> Dict:
        data = self._get(client, TEXT_SEARCH_URL, {"query": query})

        results = data.get("results") or []
        if not results:
            logger.info("No Places result for %r", query)
            return {}

        place = results[0]
        fields: Dict = {"google_place_id": place.get("place_id")}

        if place.get("formatted_address"):
            fields["address"] = place["formatted_address"]

        geo = (place.get("geometry") or {}).get("location") or {}
        if "lat" in geo and "lng" in geo:
            fields["latitude"] = geo["lat"]
            fields["longitude"] = geo["lng"]

        if place.get("rating"):
            fields["rating"] = place["rating"]

        price_range = PRICE_LEVEL_MAP.get(place.get("price_level"))
        if price_range:
            fields["price_range"] = price_range

        if place.get("place_id"):
            details = self._get(client, DETAILS_URL, {
                "place_id": place["place_id"],
                "fields": "formatted_phone_number,website"
            }).get("result") or {}
            if details.get("formatted_phone_number"):
                fields["phone"] = details["formatted_phone_number"]
            if details.get("website"):
                fields["website"] = details["website"]

        return fields


def get_default_enricher() -> Optional[PlacesEnricher]:
    """PlacesEnricher when an API key is configured, otherwise None."""
    if not settings.enrichment_enabled:
        return None
    return PlacesEnricher()
