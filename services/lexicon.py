"""
Keyword and literal tables used by the restaurant-mention matcher.

Everything the matcher knows about restaurants lives here as data, so a
different gazetteer (or a real extraction model's vocabulary) can be swapped
in by building another Lexicon without touching the matching pipeline.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class NameRule:
    """A known restaurant literal, optionally implying cuisine and location."""
    pattern: str
    name: str
    confidence: float
    cuisine: Optional[str] = None
    cuisine_confidence: float = 0.0
    location: Optional[str] = None
    location_confidence: float = 0.0

    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "regex", _compile(self.pattern))


@dataclass(frozen=True)
class LocationRule:
    """A gazetteer entry: any of the aliases maps to one canonical city."""
    pattern: str
    location: str
    confidence: float = 1.0

    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "regex", _compile(self.pattern))


@dataclass(frozen=True)
class DishRule:
    """A dish keyword and the display name recorded when it is present."""
    pattern: str
    dish: str

    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "regex", _compile(self.pattern))


def _compile(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


# ==============================
# Step 1: restaurant-domain gate
# ==============================
RESTAURANT_KEYWORDS = [
    "restaurant", "cafe", "diner", "eatery", "food", "meal", "dinner",
    "lunch", "breakfast", "cuisine", "eat", "dine", "dining", "menu",
    "chef", "delicious", "tasty", "burger", "pasta", "pizza", "sushi",
    "dish", "appetizer"
]

# Messages naming a known place pass the gate even without food words
FALLBACK_NAME_LITERALS = ["Pump House", "Socials", "Palace", "Barn", "Heaven", "Spot"]


# ==============================
# Step 2: name candidates (first match wins)
# ==============================
KNOWN_NAME_RULES = [
    NameRule(r"Pump House", "Pump House", 1.0),
    NameRule(r"Socials", "Socials", 0.8),
    NameRule(r"Sushi Spot", "Sushi Spot", 1.0, cuisine="Japanese", cuisine_confidence=0.9),
    NameRule(r"Burger Barn", "Burger Barn", 1.0, cuisine="American", cuisine_confidence=0.8),
    NameRule(r"Taco Palace", "Taco Palace", 1.0, cuisine="Mexican", cuisine_confidence=0.9),
    NameRule(r"Burger Heaven", "Burger Heaven", 1.0, cuisine="American", cuisine_confidence=0.8),
    NameRule(
        r"place in Manhattan", "Unknown Restaurant", 0.3,
        cuisine="Italian", cuisine_confidence=0.6,
        location="Manhattan", location_confidence=0.8
    ),
]

# "a restaurant called Golden Dragon in ..." / "restaurant named Golden Dragon."
CALLED_PATTERN = r"restaurant\s+(?:called|named)\s+([^,.!?]+?)(?=\s+in\s|\s+at\s|\s*[,.!?]|\s*$)"
CALLED_CONFIDENCE = 0.9

# "the Golden Dragon restaurant": capitalised words right before the keyword
SUFFIX_PATTERN = r"((?:[A-Z][\w'&-]*\s+){0,3}[A-Z][\w'&-]*)\s+[Rr]estaurant"
SUFFIX_CONFIDENCE = 0.7

CAPITALIZED_CONFIDENCE = 0.4

STOPWORDS = [
    "the", "and", "but", "for", "nor", "yet", "so", "as", "at", "by", "in",
    "of", "on", "to", "up", "it", "is",
    # sentence openers that are capitalised without being names
    "i", "i'm", "i've", "we", "we're", "my", "our", "you", "your", "they",
    "this", "that", "these", "those", "there", "here", "just", "had", "have",
    "went", "tried", "try", "visited", "visit", "ate", "love", "loved",
    "great", "amazing", "best", "last", "today", "tonight", "yesterday",
    "check", "must", "if", "when", "what", "where", "who", "why", "how",
    "a", "an", "omg", "wow", "lunch", "dinner", "breakfast", "brunch",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
]


# ==============================
# Step 3: locations
# ==============================
CITY_GAZETTEER = [
    LocationRule(r"Bengaluru|Bangalore", "Bengaluru"),
    LocationRule(r"Tokyo", "Tokyo"),
    LocationRule(r"Chicago", "Chicago"),
    LocationRule(r"San Diego", "San Diego"),
    LocationRule(r"Los Angeles", "Los Angeles"),
]

# Prepositional fallback, each with its confidence; prepositions are
# case-insensitive, the captured place must be capitalised
LOCATION_PATTERNS: List[Tuple[str, float]] = [
    (r"\b(?i:located\s+in)\s+((?:[A-Z][\w'-]*)(?:\s+[A-Z][\w'-]*){0,3})", 0.8),
    (r"\b(?i:in|at)\s+((?:[A-Z][\w'-]*)(?:\s+[A-Z][\w'-]*){0,3})", 0.6),
]


# ==============================
# Step 4: cuisines
# ==============================
CUISINE_TYPES = [
    "Italian", "Mexican", "Chinese", "Japanese", "Indian", "Thai", "French",
    "Mediterranean", "American", "Korean", "Vietnamese", "Greek", "Spanish",
    "Turkish", "Lebanese", "Brazilian", "Peruvian"
]
GENERIC_CUISINE_CONFIDENCE = 0.7


# ==============================
# Step 5: dishes (scan order is output order)
# ==============================
DISH_RULES = [
    DishRule(r"Alfredo Pasta", "Alfredo Pasta"),
    DishRule(r"burger", "Burger"),
    DishRule(r"sashimi", "Sashimi"),
    DishRule(r"omakase", "Omakase"),
    DishRule(r"bacon cheeseburger", "Double Bacon Cheeseburger"),
    DishRule(r"milkshake", "Milkshakes"),
]


# ==============================
# Steps 6 and 7: sentiment and price
# ==============================
RECOMMENDATION_PHRASES = [
    "recommend", "must try", "amazing", "incredible", "fantastic", "great",
    "delicious", "excellent", "wonderful", "best", "try their",
    "have to check out", "you should visit"
]

# Checked top to bottom, first tier that matches wins
PRICE_TIERS: List[Tuple[str, str]] = [
    (r"\b(?:expensive|high-end|pricey|luxury)\b", "$$$"),
    (r"\b(?:mid-range|moderate|average price)\b", "$$"),
    (r"\b(?:cheap|affordable|budget|inexpensive)\b", "$"),
]


@dataclass
class Lexicon:
    """
    The full set of literal tables the matcher runs against.

    Build a custom instance to plug in another gazetteer; DEFAULT_LEXICON
    carries the tables above.
    """
    restaurant_keywords: List[str] = field(default_factory=lambda: list(RESTAURANT_KEYWORDS))
    fallback_names: List[str] = field(default_factory=lambda: list(FALLBACK_NAME_LITERALS))
    name_rules: List[NameRule] = field(default_factory=lambda: list(KNOWN_NAME_RULES))
    called_pattern: str = CALLED_PATTERN
    called_confidence: float = CALLED_CONFIDENCE
    suffix_pattern: str = SUFFIX_PATTERN
    suffix_confidence: float = SUFFIX_CONFIDENCE
    capitalized_confidence: float = CAPITALIZED_CONFIDENCE
    stopwords: List[str] = field(default_factory=lambda: list(STOPWORDS))
    cities: List[LocationRule] = field(default_factory=lambda: list(CITY_GAZETTEER))
    location_patterns: List[Tuple[str, float]] = field(default_factory=lambda: list(LOCATION_PATTERNS))
    cuisines: List[str] = field(default_factory=lambda: list(CUISINE_TYPES))
    generic_cuisine_confidence: float = GENERIC_CUISINE_CONFIDENCE
    dish_rules: List[DishRule] = field(default_factory=lambda: list(DISH_RULES))
    recommendation_phrases: List[str] = field(default_factory=lambda: list(RECOMMENDATION_PHRASES))
    price_tiers: List[Tuple[str, str]] = field(default_factory=lambda: list(PRICE_TIERS))

    def __post_init__(self):
        self.keyword_regex = _compile("|".join(re.escape(k) for k in self.restaurant_keywords))
        self.fallback_regex = _compile("|".join(re.escape(n) for n in self.fallback_names))
        self.called_regex = _compile(self.called_pattern)
        # Capitalisation is the signal here, so no IGNORECASE
        self.suffix_regex = re.compile(self.suffix_pattern)
        self.location_regexes = [(re.compile(p), c) for p, c in self.location_patterns]
        self.cuisine_regexes = [
            (cuisine, _compile(rf"\b{re.escape(cuisine)}\b")) for cuisine in self.cuisines
        ]
        self.recommendation_regex = _compile(
            "|".join(re.escape(p) for p in self.recommendation_phrases)
        )
        self.price_regexes = [(_compile(p), tier) for p, tier in self.price_tiers]
        self.stopword_set = {w.lower() for w in self.stopwords}

    def is_stopword(self, word: str) -> bool:
        return word.lower() in self.stopword_set

    def is_known_place_or_cuisine(self, word: str) -> bool:
        """True for words another extraction step already accounts for."""
        if any(word.lower() == c.lower() for c in self.cuisines):
            return True
        return any(rule.regex.fullmatch(word) for rule in self.cities)


DEFAULT_LEXICON = Lexicon()
