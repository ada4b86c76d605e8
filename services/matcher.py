"""
Rule-based restaurant-mention matcher.

Turns free text (a DM, comment or reel caption) into raw match signals:
whether it talks about a restaurant at all, and the name, location, cuisine,
dish, price and recommendation cues found in it. Pure function, no I/O.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from services.lexicon import DEFAULT_LEXICON, Lexicon

logger = logging.getLogger(__name__)

_TOKEN_STRIP = ".,!?;:\"()[]{}"


@dataclass
class MatchSignals:
    """Everything the matcher found in one text. Unset fields mean no match."""
    is_mention: bool = False
    name: Optional[str] = None
    name_confidence: float = 0.0
    location: Optional[str] = None
    location_confidence: float = 0.0
    cuisine: List[str] = field(default_factory=list)
    cuisine_confidence: float = 0.0
    dishes: List[str] = field(default_factory=list)
    price_range: Optional[str] = None
    is_recommendation: bool = False


def passes_gate(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    """
    Restaurant-domain gate.

    True if the text contains a restaurant keyword (case-insensitive substring)
    or one of the known-name fallback literals.
    """
    if not text:
        return False
    return bool(lexicon.keyword_regex.search(text) or lexicon.fallback_regex.search(text))


def _append_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


def match_name(text: str, lexicon: Lexicon = DEFAULT_LEXICON):
    """
    Find the single name candidate. Rules are tried in order, first match wins:
    known literals, "restaurant called X", "X restaurant", then the first
    capitalised non-stopword.

    Returns:
        Tuple of (name, confidence, matched NameRule or None)
    """
    for rule in lexicon.name_rules:
        if rule.regex.search(text):
            return rule.name, rule.confidence, rule

    called = lexicon.called_regex.search(text)
    if called and called.group(1).strip():
        return called.group(1).strip(), lexicon.called_confidence, None

    for suffix in lexicon.suffix_regex.finditer(text):
        words = suffix.group(1).split()
        # Drop leading openers ("We Loved Golden Dragon restaurant")
        while words and lexicon.is_stopword(words[0]):
            words.pop(0)
        if words:
            return " ".join(words), lexicon.suffix_confidence, None

    # Words following "in"/"at" are left for the location step
    place_words = {
        w for regex, _ in lexicon.location_regexes
        for m in regex.finditer(text) for w in m.group(1).split()
    }
    for raw in text.split():
        word = raw.strip(_TOKEN_STRIP)
        if len(word) <= 2 or not word[0].isupper() or word in place_words:
            continue
        if lexicon.is_stopword(word) or lexicon.is_known_place_or_cuisine(word):
            continue
        return word, lexicon.capitalized_confidence, None

    return None, 0.0, None


def match_location(
    text: str,
    exclude: Optional[str] = None,
    name_rule=None,
    lexicon: Lexicon = DEFAULT_LEXICON
) -> Tuple[Optional[str], float]:
    """
    Find a location: gazetteer cities first (confidence 1.0), then a location
    implied by the known-name rule, then the prepositional fallback
    ("located in X", "in X", "at X").

    Args:
        text: Text to scan
        exclude: Candidate to ignore, normally the restaurant name already
            found ("dinner at Pump House" is not a location)
        name_rule: NameRule that produced the name, if any
        lexicon: Tables to match against

    Returns:
        Tuple of (location, confidence), (None, 0.0) if nothing matched
    """
    for rule in lexicon.cities:
        if rule.regex.search(text):
            return rule.location, rule.confidence

    if name_rule is not None and name_rule.location:
        return name_rule.location, name_rule.location_confidence

    for regex, confidence in lexicon.location_regexes:
        for m in regex.finditer(text):
            candidate = m.group(1).strip()
            if exclude and candidate.lower().startswith(exclude.lower()):
                continue
            if lexicon.is_stopword(candidate):
                continue
            return candidate, confidence

    return None, 0.0


def match_cuisine(
    text: str,
    name_rule=None,
    lexicon: Lexicon = DEFAULT_LEXICON
) -> Tuple[List[str], float]:
    """
    Collect cuisines: the one implied by a known name comes first, then
    generic cuisine words in table order. Duplicates are suppressed.
    """
    cuisines: List[str] = []
    confidence = 0.0

    if name_rule is not None and name_rule.cuisine:
        cuisines.append(name_rule.cuisine)
        confidence = name_rule.cuisine_confidence

    for cuisine, regex in lexicon.cuisine_regexes:
        if regex.search(text):
            _append_unique(cuisines, cuisine)

    if cuisines and confidence == 0.0:
        confidence = lexicon.generic_cuisine_confidence

    return cuisines, confidence


def match_dishes(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> List[str]:
    """Dishes present in the text, in dish-table order."""
    dishes: List[str] = []
    for rule in lexicon.dish_rules:
        if rule.regex.search(text):
            _append_unique(dishes, rule.dish)
    return dishes


def match_price_range(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> Optional[str]:
    for regex, tier in lexicon.price_regexes:
        if regex.search(text):
            return tier
    return None


def is_recommendation(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> bool:
    return bool(text) and bool(lexicon.recommendation_regex.search(text))


def match(text: str, lexicon: Lexicon = DEFAULT_LEXICON) -> MatchSignals:
    """
    Run the full matcher over one text.

    The domain gate is the only short-circuit: if it fails, an empty
    MatchSignals with is_mention=False is returned and nothing else runs.
    Every later step runs independently, so a text can yield a location
    without a name and so on.

    Args:
        text: Arbitrary text, may be empty
        lexicon: Keyword/literal tables to match against

    Returns:
        MatchSignals
    """
    text = text or ""
    if not passes_gate(text, lexicon):
        logger.debug("Gate failed, not a restaurant mention")
        return MatchSignals()

    signals = MatchSignals(is_mention=True)

    name, name_confidence, name_rule = match_name(text, lexicon)
    signals.name = name
    signals.name_confidence = name_confidence

    signals.location, signals.location_confidence = match_location(
        text, exclude=name, name_rule=name_rule, lexicon=lexicon
    )

    signals.cuisine, signals.cuisine_confidence = match_cuisine(text, name_rule, lexicon)
    signals.dishes = match_dishes(text, lexicon)
    signals.is_recommendation = is_recommendation(text, lexicon)
    signals.price_range = match_price_range(text, lexicon)

    logger.debug(
        "Matched name=%r (%.2f) location=%r (%.2f) cuisine=%r dishes=%r",
        signals.name, signals.name_confidence,
        signals.location, signals.location_confidence,
        signals.cuisine, signals.dishes
    )
    return signals
