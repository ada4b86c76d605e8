"""
Tests for the restaurant merge engine.
Run with: pytest tests/test_merge_service.py -v
"""
import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import EnrichmentFailure, MissingDataError, SaveFailedError
from models.restaurant import RestaurantRecord, VisitStatus
from schemas.extraction import ExtractionConfidence, RestaurantMention
from services.merge_service import (
    extract_and_maybe_save,
    merge_mention,
    union_preserving_order
)
from services.restaurant_repository import RestaurantRepository
from services.restaurant_service import update_visit_status

USER_ID = 1


def taco_palace(**overrides) -> RestaurantMention:
    values = dict(
        name="Taco Palace",
        location="San Diego",
        cuisine=["Mexican"],
        dishes=[],
        extraction_confidence=ExtractionConfidence(name=1.0, location=1.0, cuisine=0.9, overall=0.98)
    )
    values.update(overrides)
    return RestaurantMention(**values)


class StaleFirstReadRepository(RestaurantRepository):
    """Misses the first lookup, as if another writer created the row meanwhile."""

    def __init__(self, db, misses=1):
        super().__init__(db)
        self.misses = misses
        self.lookups = 0

    def find_one(self, *args, **kwargs):
        self.lookups += 1
        if self.lookups <= self.misses:
            return None
        return super().find_one(*args, **kwargs)


class FailingEnricher:
    def enrich(self, name, location=None):
        raise EnrichmentFailure("Places timed out")


class StaticEnricher:
    def __init__(self, fields):
        self.fields = fields
        self.calls = []

    def enrich(self, name, location=None):
        self.calls.append((name, location))
        return dict(self.fields)


@pytest.fixture
def repository(db_session):
    return RestaurantRepository(db_session)


def count_records(db_session) -> int:
    db_session.expire_all()
    return db_session.query(RestaurantRecord).count()


def test_union_preserving_order():
    assert union_preserving_order(["Mexican"], ["Street Food", "Mexican"]) == ["Mexican", "Street Food"]
    assert union_preserving_order(None, ["a", "a"]) == ["a"]
    assert union_preserving_order(["Thai"], ["thai"]) == ["Thai", "thai"]


class TestCreate:
    """First mention of an identity key."""

    def test_new_record(self, repository):
        record = merge_mention(repository, taco_palace(), "Taco Palace was amazing", USER_ID)

        assert record.id is not None
        assert record.mentions == 1
        assert record.mention_texts == ["Taco Palace was amazing"]
        assert record.visit_status == VisitStatus.WANT_TO_VISIT.value
        assert record.visit_date is None
        assert record.first_mentioned == record.last_mentioned
        assert record.cuisine == ["Mexican"]
        assert record.confidence_overall == pytest.approx(0.98)

    def test_missing_cuisine_defaults_to_unknown(self, repository):
        record = merge_mention(repository, taco_palace(cuisine=[]), "text", USER_ID)

        assert record.cuisine == ["Unknown"]
        assert record.dishes == []

    def test_missing_location_uses_placeholder(self, repository):
        record = merge_mention(repository, taco_palace(location=None), "text", USER_ID)
        assert record.location == "Unknown Location"

    def test_name_required(self, repository, db_session):
        with pytest.raises(MissingDataError):
            merge_mention(repository, taco_palace(name=None), "text", USER_ID)
        with pytest.raises(MissingDataError):
            merge_mention(repository, taco_palace(name=""), "text", USER_ID)
        assert count_records(db_session) == 0

    def test_user_required(self, repository):
        with pytest.raises(MissingDataError):
            merge_mention(repository, taco_palace(), "text", None)

    def test_same_name_other_user_is_separate(self, repository, db_session):
        merge_mention(repository, taco_palace(), "one", USER_ID)
        other = merge_mention(repository, taco_palace(), "two", USER_ID + 1)

        assert other.mentions == 1
        assert count_records(db_session) == 2


class TestUpdate:
    """Repeat mentions of an identity key."""

    def test_create_then_update_unions_cuisine(self, repository, db_session):
        first = merge_mention(repository, taco_palace(cuisine=["Mexican"]), "first", USER_ID)
        second = merge_mention(
            repository, taco_palace(cuisine=["Mexican", "Street Food"]), "second", USER_ID
        )

        assert second.id == first.id
        assert second.mentions == 2
        assert second.cuisine == ["Mexican", "Street Food"]
        assert count_records(db_session) == 1

    def test_taco_palace_twice(self, repository):
        merge_mention(repository, taco_palace(), "Best tacos in San Diego", USER_ID)
        record = merge_mention(repository, taco_palace(), "Taco Palace again, so good", USER_ID)

        assert record.mentions == 2
        assert record.mention_texts == ["Best tacos in San Diego", "Taco Palace again, so good"]

    def test_not_idempotent(self, repository):
        """Identical arguments still count as separate mentions."""
        baseline = merge_mention(repository, taco_palace(), "same text", USER_ID)
        mentions, texts = baseline.mentions, len(baseline.mention_texts)

        merge_mention(repository, taco_palace(), "same text", USER_ID)
        record = merge_mention(repository, taco_palace(), "same text", USER_ID)

        assert record.mentions == mentions + 2
        assert len(record.mention_texts) == texts + 2
        assert record.mention_texts == ["same text"] * 3

    def test_dishes_appended_in_order(self, repository):
        merge_mention(repository, taco_palace(dishes=["Burrito"]), "a", USER_ID)
        record = merge_mention(repository, taco_palace(dishes=["Nachos", "Burrito"]), "b", USER_ID)

        assert record.dishes == ["Burrito", "Nachos"]

    def test_confidence_retained_unless_passed(self, repository):
        merge_mention(repository, taco_palace(), "a", USER_ID)

        low = ExtractionConfidence(name=0.4, location=0.0, cuisine=0.0, overall=0.2)
        kept = merge_mention(repository, taco_palace(extraction_confidence=low), "b", USER_ID)
        assert kept.confidence_overall == pytest.approx(0.98)

        replaced = merge_mention(repository, taco_palace(), "c", USER_ID, confidence=low)
        assert replaced.confidence_overall == pytest.approx(0.2)
        assert replaced.confidence_name == pytest.approx(0.4)

    def test_media_link_overwritten_only_when_supplied(self, repository):
        merge_mention(repository, taco_palace(), "a", USER_ID, media_link="https://instagram.com/p/1")
        record = merge_mention(repository, taco_palace(), "b", USER_ID)
        assert record.media_link == "https://instagram.com/p/1"

        record = merge_mention(repository, taco_palace(), "c", USER_ID, media_link="https://instagram.com/p/2")
        assert record.media_link == "https://instagram.com/p/2"

    def test_timestamps_and_visit_fields(self, repository, db_session):
        created = merge_mention(repository, taco_palace(), "a", USER_ID)
        first_mentioned = created.first_mentioned
        update_visit_status(db_session, created, VisitStatus.VISITED)
        visit_date = created.visit_date

        record = merge_mention(repository, taco_palace(), "b", USER_ID)

        assert record.first_mentioned == first_mentioned
        assert record.last_mentioned >= first_mentioned
        assert record.visit_status == VisitStatus.VISITED.value
        assert record.visit_date == visit_date

    def test_case_sensitive_by_default(self, repository, db_session):
        merge_mention(repository, taco_palace(), "a", USER_ID)
        record = merge_mention(repository, taco_palace(name="taco palace", location="san diego"), "b", USER_ID)

        assert record.mentions == 1
        assert count_records(db_session) == 2

    def test_case_insensitive_policy(self, repository, db_session):
        merge_mention(repository, taco_palace(), "a", USER_ID)
        record = merge_mention(
            repository,
            taco_palace(name="taco palace", location="SAN DIEGO "),
            "b",
            USER_ID,
            case_insensitive=True
        )

        assert record.mentions == 2
        # Display case of the first mention is kept
        assert record.name == "Taco Palace"
        assert count_records(db_session) == 1


class TestConflicts:
    """Uniqueness conflicts on create are retried as updates."""

    def test_lost_race_becomes_update(self, db_session):
        merge_mention(RestaurantRepository(db_session), taco_palace(), "first writer", USER_ID)

        racy = StaleFirstReadRepository(db_session)
        record = merge_mention(racy, taco_palace(), "second writer", USER_ID)

        assert racy.lookups == 2
        assert record.mentions == 2
        assert record.mention_texts == ["first writer", "second writer"]
        assert count_records(db_session) == 1

    def test_lost_race_differing_only_in_case(self, db_session):
        pizza = dict(name="Pizza Place", location="NYC", cuisine=["Italian"])
        merge_mention(
            RestaurantRepository(db_session), taco_palace(**pizza), "first writer", USER_ID,
            case_insensitive=True
        )

        racy = StaleFirstReadRepository(db_session)
        record = merge_mention(
            racy, taco_palace(name="pizza place", location="nyc", cuisine=["Italian"]),
            "second writer", USER_ID, case_insensitive=True
        )

        assert racy.lookups == 2
        assert record.name == "Pizza Place"
        assert record.mentions == 2
        assert count_records(db_session) == 1

    def test_exact_policy_keeps_case_variants_apart(self, db_session):
        repository = RestaurantRepository(db_session)
        merge_mention(repository, taco_palace(name="Pizza Place", location="NYC"), "a", USER_ID)
        merge_mention(
            StaleFirstReadRepository(db_session),
            taco_palace(name="pizza place", location="nyc"), "b", USER_ID
        )

        assert count_records(db_session) == 2

    def test_conflict_that_never_resolves(self, db_session):
        merge_mention(RestaurantRepository(db_session), taco_palace(), "first", USER_ID)

        racy = StaleFirstReadRepository(db_session, misses=10)
        with pytest.raises(SaveFailedError):
            merge_mention(racy, taco_palace(), "second", USER_ID, max_attempts=2)

        assert racy.lookups == 2
        assert count_records(db_session) == 1


class TestEnrichment:
    """Enrichment is best effort and only runs on create."""

    def test_failure_is_ignored(self, repository):
        record = merge_mention(repository, taco_palace(), "a", USER_ID, enricher=FailingEnricher())

        assert record.id is not None
        assert record.address is None

    def test_fills_missing_fields_only(self, repository):
        enricher = StaticEnricher({
            "address": "123 Harbor Dr, San Diego, CA",
            "latitude": 32.71,
            "longitude": -117.16,
            "price_range": "$$$",
            "rating": 4.5
        })
        record = merge_mention(
            repository, taco_palace(price_range="$"), "a", USER_ID, enricher=enricher
        )

        assert enricher.calls == [("Taco Palace", "San Diego")]
        assert record.address == "123 Harbor Dr, San Diego, CA"
        assert record.rating == 4.5
        assert record.price_range == "$"
        # Identity untouched
        assert record.location == "San Diego"

    def test_not_called_on_update(self, repository):
        merge_mention(repository, taco_palace(), "a", USER_ID)
        enricher = StaticEnricher({"address": "somewhere"})

        record = merge_mention(repository, taco_palace(), "b", USER_ID, enricher=enricher)

        assert enricher.calls == []
        assert record.address is None


class TestExtractAndMaybeSave:
    """Extract, threshold, merge."""

    def test_saves_confident_mention(self, repository):
        text = "Dinner at Taco Palace in San Diego, cheap and delicious Mexican food"
        record = extract_and_maybe_save(repository, text, USER_ID, media_link="https://instagram.com/reel/9")

        assert record is not None
        assert record.name == "Taco Palace"
        assert record.location == "San Diego"
        assert record.cuisine == ["Mexican"]
        assert record.price_range == "$"
        assert record.mention_texts == [text]
        assert record.media_link == "https://instagram.com/reel/9"

    def test_non_mention_not_saved(self, repository, db_session):
        assert extract_and_maybe_save(repository, "Just doing laundry today", USER_ID) is None
        assert count_records(db_session) == 0

    def test_threshold_is_strict(self, repository, db_session):
        # Name only: overall is exactly 0.5
        text = "I tried Pump House last week, amazing food!"
        assert extract_and_maybe_save(repository, text, USER_ID) is None
        assert count_records(db_session) == 0

        record = extract_and_maybe_save(repository, text, USER_ID, confidence_threshold=0.4)
        assert record is not None
        assert record.name == "Pump House"
        assert record.cuisine == ["Unknown"]
