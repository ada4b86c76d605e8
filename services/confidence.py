"""
Confidence scoring for extracted restaurant mentions.
"""
from typing import Dict

from schemas.extraction import ExtractionConfidence
from services.matcher import MatchSignals


# Field weights of the overall confidence
CONFIDENCE_WEIGHTS: Dict[str, float] = {
    "name": 0.5,
    "location": 0.3,
    "cuisine": 0.2
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value or 0.0)))


def weighted_overall(
    components: Dict[str, float],
    weights: Dict[str, float] = CONFIDENCE_WEIGHTS
) -> float:
    """
    Weighted mean of the component confidences.

    Normalised by the weight sum so the result stays in [0, 1] whatever
    the weights are. Missing components count as 0.

    Args:
        components: Field name to confidence
        weights: Field name to weight

    Returns:
        Overall confidence in [0, 1], 0.0 if all weights are 0
    """
    total_weight = sum(weights.values())
    if total_weight == 0:
        return 0.0
    weighted = sum(_clamp(components.get(k, 0.0)) * w for k, w in weights.items())
    return _clamp(weighted / total_weight)


def score(signals: MatchSignals) -> ExtractionConfidence:
    """
    Turn matcher output into per-field and overall confidence.

    A field the matcher left unset contributes 0, never None.
    """
    components = {
        "name": signals.name_confidence if signals.name else 0.0,
        "location": signals.location_confidence if signals.location else 0.0,
        "cuisine": signals.cuisine_confidence if signals.cuisine else 0.0
    }
    components = {k: _clamp(v) for k, v in components.items()}
    return ExtractionConfidence(
        name=components["name"],
        location=components["location"],
        cuisine=components["cuisine"],
        overall=weighted_overall(components)
    )
