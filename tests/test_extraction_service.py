"""
Tests for extract(): result shape on both paths.
Run with: pytest tests/test_extraction_service.py -v
"""
import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.extraction_service import NOT_A_MENTION_MESSAGE, extract


SAMPLE_TEXTS = [
    "",
    "Just doing laundry today",
    "I tried Pump House last week, amazing food!",
    "Try Sushi Spot, I had amazing sashimi and omakase!",
    "Dinner at Taco Palace in San Diego, cheap and delicious Mexican food",
    "Found a great place in Manhattan for Italian food",
    "We went to a restaurant called Golden Dragon in Chicago.",
    "food " * 200,
    "레스토랑 food 🍜 in Tokyo",
]


class TestNotAMention:
    """Gate failures are results, not errors."""

    def test_laundry(self):
        result = extract("Just doing laundry today")

        assert result.success is False
        assert result.restaurant is None
        assert result.message == NOT_A_MENTION_MESSAGE

    def test_analysis_block_is_zeroed(self):
        result = extract("Just doing laundry today")

        assert result.is_recommendation is False
        assert result.analysis.is_restaurant_mention is False
        assert result.analysis.restaurant_name is None
        assert result.analysis.overall == 0.0
        assert result.analysis.restaurant_name_confidence == 0.0
        assert result.analysis.location_confidence == 0.0
        assert result.analysis.cuisine_confidence == 0.0

    @pytest.mark.parametrize("text", ["", "   ", "Visiting Tokyo with Maria"])
    def test_empty_and_non_food_text(self, text):
        result = extract(text)
        assert result.success is False
        assert result.restaurant is None


class TestSuccess:
    """Successful extractions."""

    def test_pump_house(self):
        result = extract("I tried Pump House last week, amazing food!")

        assert result.success is True
        assert result.restaurant.name == "Pump House"
        assert result.restaurant.extraction_confidence.name == 1.0
        assert result.is_recommendation is True
        assert result.restaurant.is_recommendation is True

    def test_sushi_spot(self):
        result = extract("Try Sushi Spot, I had amazing sashimi and omakase!")

        assert result.restaurant.name == "Sushi Spot"
        assert result.restaurant.cuisine == ["Japanese"]
        assert result.restaurant.dishes == ["Sashimi", "Omakase"]

    def test_placeholders_replace_missing_name_and_location(self):
        result = extract("what should i eat for lunch")

        assert result.success is True
        assert result.restaurant.name == "Unknown Restaurant"
        assert result.restaurant.location == "Unknown Location"
        assert result.restaurant.cuisine == []
        # The analysis block keeps the raw "nothing found"
        assert result.analysis.restaurant_name is None
        assert result.analysis.location is None

    def test_message_contains_rounded_percentage(self):
        result = extract("Dinner at Taco Palace in San Diego, cheap and delicious Mexican food")

        confidence = result.restaurant.extraction_confidence
        assert confidence.overall == pytest.approx(0.98)
        assert result.message == "Successfully extracted restaurant information with 98% confidence."
        assert result.restaurant.location == "San Diego"
        assert result.restaurant.price_range == "$"

    def test_analysis_mirrors_restaurant(self):
        result = extract("Try Sushi Spot, I had amazing sashimi and omakase!")
        analysis = result.analysis

        assert analysis.is_restaurant_mention is True
        assert analysis.restaurant_name == "Sushi Spot"
        assert analysis.restaurant_name_confidence == 1.0
        assert analysis.cuisine_confidence == 0.9
        assert analysis.dishes_mentioned == ["Sashimi", "Omakase"]
        assert analysis.overall == result.restaurant.extraction_confidence.overall

    def test_source_text_and_media_link(self):
        text = "I tried Pump House last week, amazing food!"
        result = extract(text, media_link="https://www.instagram.com/reel/abc/")

        assert result.restaurant.source_text == text
        assert result.restaurant.media_link == "https://www.instagram.com/reel/abc/"

    def test_no_threshold_applied(self):
        """Low-confidence mentions are still returned."""
        result = extract("Loved the pasta from Giovanni last night")

        assert result.success is True
        assert result.restaurant.extraction_confidence.overall == pytest.approx(0.2)


@pytest.mark.parametrize("text", SAMPLE_TEXTS)
def test_confidence_always_bounded(text):
    result = extract(text)
    assert 0.0 <= result.analysis.overall <= 1.0
    if result.restaurant:
        confidence = result.restaurant.extraction_confidence
        for value in (confidence.name, confidence.location, confidence.cuisine, confidence.overall):
            assert 0.0 <= value <= 1.0
