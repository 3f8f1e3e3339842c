#!/usr/bin/env python3
"""
Per-criterion similarity functions.

Each function takes the normalized query, the normalized candidate, the
ScorerConfig and the reference time, and returns a score in [0, 1] or
None when either side lacks the data. None means "skip": the criterion
drops out of both numerator and denominator of the weighted score.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from core.config_loader import ScorerConfig
from core.normalizer import NormalizedQuote, ServiceCategory, CargoCategory, Region, are_compatible
from core.normalizer.geo import haversine_miles

CriterionFn = Callable[[NormalizedQuote, NormalizedQuote, ScorerConfig, datetime], Optional[float]]


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def _norm_text(value: Optional[str]) -> str:
    return ' '.join(str(value).lower().split()) if value else ''


def _exact(a: Optional[str], b: Optional[str]) -> Optional[float]:
    a, b = _norm_text(a), _norm_text(b)
    if not a or not b:
        return None
    return 1.0 if a == b else 0.0


def _region(a: Region, b: Region, present: bool, config: ScorerConfig) -> Optional[float]:
    if not present:
        return None
    if a == b and a != Region.OTHER:
        return 1.0
    return _clamp01(config.region_partial_credit)


def origin_region(q, c, config, as_of):
    return _region(q.origin_region, c.origin_region, q.has_origin and c.has_origin, config)


def destination_region(q, c, config, as_of):
    return _region(q.destination_region, c.destination_region, q.has_destination and c.has_destination, config)


def origin_city(q, c, config, as_of):
    return _exact(q.quote.origin_city, c.quote.origin_city)


def destination_city(q, c, config, as_of):
    return _exact(q.quote.destination_city, c.quote.destination_city)


def service_type(q, c, config, as_of):
    if ServiceCategory.OTHER in (q.service, c.service):
        return None
    return 1.0 if q.service == c.service else 0.0


def service_compatibility(q, c, config, as_of):
    if ServiceCategory.OTHER in (q.service, c.service):
        return None
    if q.service == c.service:
        return 1.0
    if are_compatible(q.service, c.service):
        return _clamp01(config.compatible_service_score)
    return 0.0


def cargo_category(q, c, config, as_of):
    if CargoCategory.UNKNOWN in (q.cargo, c.cargo):
        return None
    if q.cargo == c.cargo:
        return 1.0
    if CargoCategory.GENERAL in (q.cargo, c.cargo):
        return _clamp01(config.general_cargo_credit)
    return 0.0


def cargo_weight_range(q, c, config, as_of):
    """1.0 at equal weight, log-linear falloff to 0 at weight_zero_ratio."""
    if q.weight_kg is None or c.weight_kg is None:
        return None
    ratio = max(q.weight_kg, c.weight_kg) / min(q.weight_kg, c.weight_kg)
    if config.weight_zero_ratio <= 1:
        return 1.0 if ratio == 1 else 0.0
    return _clamp01(1.0 - math.log(ratio) / math.log(config.weight_zero_ratio))


def number_of_pieces(q, c, config, as_of):
    a, b = q.quote.number_of_pieces, c.quote.number_of_pieces
    if not a or not b or a <= 0 or b <= 0:
        return None
    return _clamp01(1.0 - abs(a - b) / max(a, b))


def hazmat(q, c, config, as_of):
    a, b = q.quote.hazardous_material, c.quote.hazardous_material
    if a is None or b is None:
        return None
    return 1.0 if bool(a) == bool(b) else 0.0


def container_type(q, c, config, as_of):
    if q.container_type is None or c.container_type is None:
        return None
    return 1.0 if q.container_type == c.container_type else 0.0


def recency(q, c, config, as_of):
    """Exponential half-life decay on candidate age, floored."""
    ts = c.quote.reference_time
    if ts is None or as_of is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    age_days = max(0.0, (as_of - ts).total_seconds() / 86400.0)
    if config.recency_half_life_days <= 0:
        return 1.0
    decayed = 0.5 ** (age_days / config.recency_half_life_days)
    return _clamp01(max(config.recency_floor, decayed))


def _proximity(a, b, scale: float) -> Optional[float]:
    if a is None or b is None or scale <= 0:
        return None
    return _clamp01(1.0 - haversine_miles(a, b) / scale)


def distance_similarity(q, c, config, as_of):
    """Blend of lane-length similarity and endpoint proximity."""
    parts = []

    if q.lane_miles is not None and c.lane_miles is not None and max(q.lane_miles, c.lane_miles) > 0:
        rel = abs(q.lane_miles - c.lane_miles) / max(q.lane_miles, c.lane_miles)
        parts.append(_clamp01(1.0 - rel) ** config.distance_decay_exponent)

    endpoint = [
        p for p in (
            _proximity(q.origin_point, c.origin_point, config.distance_proximity_miles),
            _proximity(q.destination_point, c.destination_point, config.distance_proximity_miles),
        ) if p is not None
    ]
    if endpoint:
        parts.append(sum(endpoint) / len(endpoint))

    if not parts:
        return None
    return _clamp01(sum(parts) / len(parts))


CRITERION_FUNCTIONS: Dict[str, CriterionFn] = {
    'origin_region': origin_region,
    'origin_city': origin_city,
    'destination_region': destination_region,
    'destination_city': destination_city,
    'service_type': service_type,
    'service_compatibility': service_compatibility,
    'cargo_category': cargo_category,
    'cargo_weight_range': cargo_weight_range,
    'number_of_pieces': number_of_pieces,
    'hazmat': hazmat,
    'container_type': container_type,
    'recency': recency,
    'distance_similarity': distance_similarity,
}


def score_criteria(
    query: NormalizedQuote,
    candidate: NormalizedQuote,
    config: ScorerConfig,
    as_of: Optional[datetime]
) -> Dict[str, float]:
    """Score every applicable criterion; skipped criteria are absent from the result."""
    scores: Dict[str, float] = {}
    for name, fn in CRITERION_FUNCTIONS.items():
        value = fn(query, candidate, config, as_of)
        if value is not None:
            scores[name] = value
    return scores
