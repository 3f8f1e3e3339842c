#!/usr/bin/env python3
"""
Feedback Boost - bounded score adjustment from historical ratings.

The boost is capped at boost_fraction x (largest weight / total weight).
With boost_fraction < 0.5 the spread between the best-boosted and the
worst-penalized candidate stays below one full criterion weight, so
feedback can reorder near-ties but cannot lift a clear mismatch over a
strong match.
"""

from typing import Any, Dict, Optional, Tuple

from core.config_loader import ScorerConfig
from core.feedback.models import FeedbackData
from core.scorer.weights import WeightVector


def boost_cap(weights: WeightVector, config: ScorerConfig) -> float:
    return max(0.0, config.boost_fraction) * weights.max_share


def calculate_feedback_boost(
    feedback: Optional[FeedbackData],
    weights: WeightVector,
    config: ScorerConfig
) -> Tuple[float, Dict[str, Any]]:
    """
    Calculate the additive boost for one candidate.

    Returns: (boost, details)
    """
    if feedback is None or feedback.total_feedback_count <= 0:
        return 0.0, {}

    cap = boost_cap(weights, config)
    saturation = max(1, config.feedback_saturation_count)
    evidence = min(1.0, feedback.total_feedback_count / saturation)

    raw = cap * feedback.net_ratio * evidence

    verified = len(feedback.actual_prices_used)
    if verified > 0:
        raw += cap * config.verified_price_bonus

    boost = max(-cap, min(cap, raw))

    details = {
        'cap': round(cap, 6),
        'net_ratio': round(feedback.net_ratio, 4),
        'evidence': round(evidence, 4),
        'verified_prices': verified,
        'positive': feedback.positive_feedback_count,
        'negative': feedback.negative_feedback_count,
    }
    return boost, details
