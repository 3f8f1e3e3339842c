#!/usr/bin/env python3
"""
Price Estimator - aggregate match prices into a point estimate.

estimate_price() is a similarity x confidence weighted average with a
+/-10% envelope around the observed extremes. suggest_price_with_feedback()
adds a bounded nudge toward the lane average when match-based confidence
is weak and the lane is well sampled.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from core.config_loader import PricingConfig
from core.normalizer import NormalizedQuote
from core.pricing.models import LaneStats, PriceEstimate, SmartPriceSuggestion
from core.scorer.models import ScoredQuoteMatch

logger = logging.getLogger(__name__)


def _contributions(
    matches: Iterable[ScoredQuoteMatch],
    default_confidence: float
) -> List[Tuple[float, float]]:
    """(price, weight) pairs for matches that carry a usable price."""
    pairs = []
    for match in matches:
        price = match.suggested_price
        if price is None or price <= 0:
            continue
        confidence = match.price_confidence if match.price_confidence is not None else default_confidence
        weight = match.similarity_score * confidence
        if weight <= 0:
            continue
        pairs.append((float(price), float(weight)))
    return pairs


def estimate_price(
    matches: Sequence[ScoredQuoteMatch],
    config: Optional[PricingConfig] = None
) -> PriceEstimate:
    """Weighted average, envelope range and confidence over the top matches."""
    config = config or PricingConfig()
    pairs = _contributions(matches, config.default_price_confidence)
    if not pairs:
        return PriceEstimate.insufficient()

    prices = np.array([p for p, _ in pairs])
    weights = np.array([w for _, w in pairs])

    weighted_average = float(np.dot(prices, weights) / weights.sum())
    # Guard against float drift past the observed extremes
    weighted_average = min(max(weighted_average, float(prices.min())), float(prices.max()))

    return PriceEstimate(
        weighted_average=round(weighted_average, 2),
        range_low=round(float(prices.min()) * (1.0 - config.range_envelope), 2),
        range_high=round(float(prices.max()) * (1.0 + config.range_envelope), 2),
        confidence=round(float(weights.mean()), 2),
        based_on=len(pairs),
    )


def lane_key(normalized: NormalizedQuote) -> Tuple[str, str, str]:
    return (
        normalized.origin_region.value,
        normalized.destination_region.value,
        normalized.service.value,
    )


def compute_lane_stats(
    quotes: Iterable[NormalizedQuote],
    lane: Tuple[str, str, str]
) -> LaneStats:
    """Average price, count and win rate over historical quotes on one lane."""
    origin, destination, service = lane
    prices = []
    outcomes = []
    for nq in quotes:
        if lane_key(nq) != lane:
            continue
        price = nq.quote.realized_price
        if price is not None:
            prices.append(price)
        if nq.quote.job_won is not None:
            outcomes.append(1.0 if nq.quote.job_won else 0.0)

    stats = LaneStats(origin_region=origin, destination_region=destination, service_type=service)
    stats.quote_count = len(prices)
    if prices:
        stats.average_price = round(float(np.mean(prices)), 2)
        stats.median_price = round(float(np.median(prices)), 2)
    if outcomes:
        stats.win_rate = round(float(np.mean(outcomes)), 4)
    return stats


def suggest_price_with_feedback(
    matches: Sequence[ScoredQuoteMatch],
    lane_stats: Optional[LaneStats] = None,
    config: Optional[PricingConfig] = None
) -> SmartPriceSuggestion:
    """Match-based estimate, nudged toward the lane average when warranted.

    The nudge only fires when match confidence is below lane_low_confidence
    and the lane has at least lane_min_samples quotes. The blend factor is
    capped at lane_max_blend so the lane never replaces the estimate.
    """
    config = config or PricingConfig()
    estimate = estimate_price(matches, config)
    suggestion = SmartPriceSuggestion(estimate=estimate, lane_stats=lane_stats)

    lane_usable = (
        lane_stats is not None
        and lane_stats.average_price is not None
        and lane_stats.quote_count >= config.lane_min_samples
    )

    if not estimate.has_price:
        if lane_usable:
            suggestion.suggested_price = lane_stats.average_price
            suggestion.range_low = round(lane_stats.average_price * (1.0 - config.range_envelope), 2)
            suggestion.range_high = round(lane_stats.average_price * (1.0 + config.range_envelope), 2)
            suggestion.confidence = round(config.default_price_confidence * 0.5, 2)
            suggestion.adjustments.append(
                f"No priced matches; using lane average over {lane_stats.quote_count} quotes"
            )
        return suggestion

    suggestion.suggested_price = estimate.weighted_average
    suggestion.range_low = estimate.range_low
    suggestion.range_high = estimate.range_high
    suggestion.confidence = estimate.confidence

    if lane_usable and estimate.confidence < config.lane_low_confidence:
        alpha = min(config.lane_max_blend, config.lane_blend_weight * (1.0 - estimate.confidence))
        blended = (1.0 - alpha) * estimate.weighted_average + alpha * lane_stats.average_price
        suggestion.suggested_price = round(blended, 2)
        suggestion.range_low = round(min(estimate.range_low, blended), 2)
        suggestion.range_high = round(max(estimate.range_high, blended), 2)
        suggestion.lane_blend = round(alpha, 4)
        suggestion.adjustments.append(
            f"Blended {alpha:.0%} toward lane average ${lane_stats.average_price:,.0f} "
            f"({lane_stats.quote_count} quotes, match confidence {estimate.confidence:.2f})"
        )

    return suggestion
