#!/usr/bin/env python3
"""
Per-match price suggestion.

Turns one historical quote into a price for the query: realized price
adjusted for container/OOG differences, with a confidence that starts at
the similarity score and moves with outcome and age of the historical
quote.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from core.config_loader import PricingConfig
from core.normalizer import NormalizedQuote
from core.normalizer.cargo import CONTAINER_PRICING_MULTIPLIERS, OOG_MULTIPLIER
from core.pricing.models import MatchPriceSuggestion

logger = logging.getLogger(__name__)


def _container_multiplier(query: NormalizedQuote, candidate: NormalizedQuote) -> float:
    """Relative price factor for moving the candidate's equipment to the query's."""
    multiplier = 1.0
    if query.container_type and candidate.container_type:
        q = CONTAINER_PRICING_MULTIPLIERS.get(query.container_type, 1.0)
        c = CONTAINER_PRICING_MULTIPLIERS.get(candidate.container_type, 1.0)
        if c > 0:
            multiplier *= q / c

    if query.out_of_gauge and not candidate.out_of_gauge:
        multiplier *= OOG_MULTIPLIER
    elif candidate.out_of_gauge and not query.out_of_gauge:
        multiplier /= OOG_MULTIPLIER

    return multiplier


def _age_days(candidate: NormalizedQuote, as_of: Optional[datetime]) -> Optional[float]:
    ts = candidate.quote.reference_time
    if ts is None or as_of is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    return max(0.0, (as_of - ts).total_seconds() / 86400.0)


def suggest_match_price(
    query: NormalizedQuote,
    candidate: NormalizedQuote,
    similarity: float,
    as_of: Optional[datetime],
    config: PricingConfig
) -> Optional[MatchPriceSuggestion]:
    """Suggest a price from a single match, or None if it has no realized price."""
    base = candidate.quote.realized_price
    if base is None:
        return None

    notes = []
    confidence = float(similarity)

    if candidate.quote.final_agreed_price:
        if candidate.quote.job_won:
            confidence += config.won_bonus
            notes.append('won job with final price')
        else:
            confidence += config.final_price_bonus
            notes.append('final agreed price')

    age = _age_days(candidate, as_of)
    if age is not None:
        if age > config.stale_days:
            confidence -= config.stale_penalty
            notes.append(f'older than {config.stale_days} days')
        if age > config.very_stale_days:
            confidence -= config.very_stale_penalty
            notes.append(f'older than {config.very_stale_days} days')

    confidence = max(0.1, min(1.0, confidence))

    multiplier = _container_multiplier(query, candidate) if config.apply_container_multipliers else 1.0
    if multiplier != 1.0:
        notes.append(f'equipment multiplier {multiplier:.2f}')

    price = base * multiplier
    variance = (1.0 - confidence) * config.variance_factor

    return MatchPriceSuggestion(
        price=round(price, 2),
        confidence=round(confidence, 4),
        range_low=round(price * (1.0 - variance), 2),
        range_high=round(price * (1.0 + variance), 2),
        base_price=base,
        multiplier=multiplier,
        notes=notes,
    )
