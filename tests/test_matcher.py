"""
Tests for the rule-based mention matcher and confidence scorer.
Run with: pytest tests/test_matcher.py -v
"""
import pytest
import re
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.confidence import CONFIDENCE_WEIGHTS, score, weighted_overall
from services.lexicon import DEFAULT_LEXICON, Lexicon, LocationRule, NameRule
from services.matcher import MatchSignals, match, passes_gate


# ==============================
# Gate
# ==============================
class TestGate:
    """Restaurant-domain gate."""

    @pytest.mark.parametrize("text", [
        "Just doing laundry today",
        "",
        "   ",
        "Going for a run in the park",
    ])
    def test_non_mentions_fail(self, text):
        assert passes_gate(text) is False

    def test_keyword_is_case_insensitive_substring(self):
        assert passes_gate("DELICIOUS")
        assert passes_gate("the sushiya near my office")

    def test_known_name_literal_passes_without_food_words(self):
        assert passes_gate("Meet me at Socials tonight")

    def test_failed_gate_short_circuits(self):
        """Nothing else is extracted when the gate fails."""
        signals = match("Visiting Tokyo with Maria, it was expensive")

        assert signals == MatchSignals()
        assert signals.location is None
        assert signals.price_range is None


# ==============================
# Names
# ==============================
class TestNames:
    """Name rules: first match wins."""

    def test_exact_literal(self):
        signals = match("I tried Pump House last week, amazing food!")
        assert signals.name == "Pump House"
        assert signals.name_confidence == 1.0

    def test_looser_literal(self):
        signals = match("Meet me at Socials tonight")
        assert signals.name == "Socials"
        assert signals.name_confidence == 0.8

    def test_restaurant_called(self):
        signals = match("We went to a restaurant called Golden Dragon in Chicago.")
        assert signals.name == "Golden Dragon"
        assert signals.name_confidence == 0.9

    def test_name_before_restaurant_keyword(self):
        signals = match("The Blue Lotus restaurant has great food")
        assert signals.name == "Blue Lotus"
        assert signals.name_confidence == 0.7

    def test_capitalized_word_skips_stopwords(self):
        signals = match("Loved the pasta from Giovanni last night")
        assert signals.name == "Giovanni"
        assert signals.name_confidence == 0.4

    def test_literal_beats_heuristics(self):
        signals = match("The restaurant called Taco Palace is great")
        assert signals.name == "Taco Palace"
        assert signals.name_confidence == 1.0

    def test_no_name_still_a_mention(self):
        signals = match("what should i eat for lunch")
        assert signals.is_mention is True
        assert signals.name is None
        assert signals.name_confidence == 0.0


# ==============================
# Locations
# ==============================
class TestLocations:
    """Gazetteer first, then the name rule, then prepositions."""

    def test_gazetteer_alias_maps_to_canonical_city(self):
        signals = match("Best dosa in Bangalore, the food was great")
        assert signals.location == "Bengaluru"
        assert signals.location_confidence == 1.0

    def test_gazetteer_is_case_insensitive(self):
        signals = match("sushi dinner in tokyo")
        assert signals.location == "Tokyo"

    def test_location_found_without_name(self):
        signals = match("Had dinner at Marios yesterday")
        assert signals.name is None
        assert signals.location == "Marios"
        assert signals.location_confidence == 0.6

    def test_located_in_scores_higher(self):
        signals = match("A cozy cafe located in Brooklyn Heights")
        assert signals.location == "Brooklyn Heights"
        assert signals.location_confidence == 0.8

    def test_restaurant_name_is_not_a_location(self):
        signals = match("Dinner at Pump House was great")
        assert signals.name == "Pump House"
        assert signals.location is None

    def test_name_rule_location(self):
        signals = match("Found a great place in Manhattan for Italian food")
        assert signals.name == "Unknown Restaurant"
        assert signals.name_confidence == 0.3
        assert signals.location == "Manhattan"
        assert signals.location_confidence == 0.8


# ==============================
# Cuisine, dishes, price, sentiment
# ==============================
class TestAttributes:
    """Independent attribute scans."""

    def test_name_implies_cuisine(self):
        signals = match("Try Sushi Spot, I had amazing sashimi and omakase!")
        assert signals.cuisine == ["Japanese"]
        assert signals.cuisine_confidence == 0.9
        assert signals.dishes == ["Sashimi", "Omakase"]

    def test_implied_cuisine_first_then_generic_without_duplicates(self):
        signals = match("Taco Palace does great Mexican and Korean fusion food")
        assert signals.cuisine == ["Mexican", "Korean"]
        assert signals.cuisine_confidence == 0.9

    def test_generic_cuisine_only(self):
        signals = match("Craving Thai food tonight")
        assert signals.cuisine == ["Thai"]
        assert signals.cuisine_confidence == 0.7

    def test_dishes_follow_table_order(self):
        signals = match("Burger Barn has a double bacon cheeseburger and milkshakes")
        assert signals.dishes == ["Burger", "Double Bacon Cheeseburger", "Milkshakes"]

    @pytest.mark.parametrize("text,expected", [
        ("an expensive but amazing dinner", "$$$"),
        ("moderate prices, good food", "$$"),
        ("cheap eats downtown", "$"),
        ("budget lunch spot", "$"),
        ("a dinner to remember", None),
    ])
    def test_price_range(self, text, expected):
        assert match(text).price_range == expected

    def test_most_expensive_tier_wins(self):
        assert match("pricey but not cheap food").price_range == "$$$"

    def test_recommendation_language(self):
        assert match("You must try this pizza").is_recommendation is True
        assert match("The food was okay").is_recommendation is False


# ==============================
# Pluggable lexicon
# ==============================
def test_custom_lexicon_replaces_tables():
    """A different gazetteer needs no pipeline changes."""
    lexicon = Lexicon(
        fallback_names=["Golden Dragon"],
        name_rules=[NameRule("Golden Dragon", "Golden Dragon", 1.0, cuisine="Chinese", cuisine_confidence=0.9)],
        cities=[LocationRule("Mumbai|Bombay", "Mumbai")]
    )

    signals = match("Golden Dragon, Bombay. Go!", lexicon)

    assert signals.is_mention
    assert signals.name == "Golden Dragon"
    assert signals.location == "Mumbai"
    assert signals.cuisine == ["Chinese"]
    # The default tables are not consulted
    assert match("I tried Pump House", lexicon).is_mention is False


def test_rule_patterns_compiled_once():
    rules = DEFAULT_LEXICON.name_rules + DEFAULT_LEXICON.cities + DEFAULT_LEXICON.dish_rules

    assert rules
    for rule in rules:
        assert isinstance(rule.regex, re.Pattern)
        assert rule.regex is rule.regex
        assert rule.regex.flags & re.IGNORECASE

    rule = NameRule("Golden Dragon", "Golden Dragon", 1.0)
    assert rule == NameRule("Golden Dragon", "Golden Dragon", 1.0)
    assert "regex" not in repr(rule)


# ==============================
# Confidence scoring
# ==============================
class TestConfidence:
    """Weighted, normalised overall confidence."""

    def test_weights(self):
        assert CONFIDENCE_WEIGHTS == {"name": 0.5, "location": 0.3, "cuisine": 0.2}

    def test_all_components(self):
        signals = MatchSignals(
            is_mention=True,
            name="Taco Palace", name_confidence=1.0,
            location="San Diego", location_confidence=1.0,
            cuisine=["Mexican"], cuisine_confidence=0.9
        )
        confidence = score(signals)
        assert confidence.overall == pytest.approx(0.98)

    def test_unset_fields_contribute_zero(self):
        signals = MatchSignals(is_mention=True, name=None, name_confidence=0.9,
                               location="Chicago", location_confidence=1.0)
        confidence = score(signals)
        assert confidence.name == 0.0
        assert confidence.cuisine == 0.0
        assert confidence.overall == pytest.approx(0.3)

    def test_normalised_by_weight_sum(self):
        overall = weighted_overall({"name": 0.5}, {"name": 2.0, "location": 2.0})
        assert overall == pytest.approx(0.25)

    def test_zero_weights(self):
        assert weighted_overall({"name": 1.0}, {"name": 0.0}) == 0.0

    def test_out_of_range_components_are_clamped(self):
        assert weighted_overall({"name": 3.0, "location": -1.0, "cuisine": 1.0}) == pytest.approx(0.7)
