#!/usr/bin/env python3
"""
Service type normalization.

Maps free-text service descriptions ("LTL Ground", "drayage - port",
"FCL 40HC", "ocean + dray") onto a closed set of categories.
"""

import logging
import re
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ServiceCategory(str, Enum):
    GROUND = "GROUND"
    OCEAN = "OCEAN"
    DRAYAGE = "DRAYAGE"
    INTERMODAL = "INTERMODAL"
    AIR = "AIR"
    OTHER = "OTHER"


# Evaluated in order; the first category with a matching keyword wins for a
# single segment. GROUND precedes AIR so "air ride truck" stays a truck move.
SERVICE_KEYWORDS: List[Tuple[ServiceCategory, Tuple[str, ...]]] = [
    (ServiceCategory.DRAYAGE, (
        'drayage', 'dray', 'port pickup', 'container pickup', 'chassis',
        'port delivery', 'terminal pickup',
    )),
    (ServiceCategory.INTERMODAL, (
        'intermodal', 'rail', 'multimodal', 'multi-modal', 'door to door',
        'door-to-door', 'combined transport',
    )),
    (ServiceCategory.OCEAN, (
        'ocean', 'sea', 'fcl', 'lcl', 'vessel', 'maritime', 'sea freight',
        'port to port', 'port-to-port', 'roro', 'ro-ro', 'breakbulk', 'break bulk',
    )),
    (ServiceCategory.GROUND, (
        'ground', 'ftl', 'ltl', 'truck', 'trucking', 'truckload', 'flatbed',
        'road', 'otr', 'over the road', 'dry van', 'van', 'step deck', 'stepdeck',
        'lowboy', 'rgn', 'hotshot', 'hot shot', 'reefer truck', 'partial',
    )),
    (ServiceCategory.AIR, (
        'air', 'air freight', 'airfreight', 'next flight out', 'nfo', 'air cargo',
    )),
]

_COMPILED_KEYWORDS = [
    (category, [re.compile(r'\b' + re.escape(kw) + r'\b') for kw in keywords])
    for category, keywords in SERVICE_KEYWORDS
]

_COMPOUND_SPLIT = re.compile(r'[/,;+&]')

# Pairs of distinct categories that can stand in for one another at reduced credit.
SERVICE_COMPATIBILITY: FrozenSet[FrozenSet[ServiceCategory]] = frozenset({
    frozenset({ServiceCategory.GROUND, ServiceCategory.DRAYAGE}),
    frozenset({ServiceCategory.GROUND, ServiceCategory.INTERMODAL}),
    frozenset({ServiceCategory.OCEAN, ServiceCategory.INTERMODAL}),
    frozenset({ServiceCategory.DRAYAGE, ServiceCategory.INTERMODAL}),
})


def _classify_segment(segment: str) -> Optional[ServiceCategory]:
    for category, patterns in _COMPILED_KEYWORDS:
        if any(p.search(segment) for p in patterns):
            return category
    return None


def normalize_service_type(raw: Optional[str]) -> ServiceCategory:
    """Normalize free-text service type to a ServiceCategory.

    Compound inputs ("Ocean / Drayage") are split and combined: ocean with a
    land leg becomes INTERMODAL, ground with drayage stays GROUND. Anything
    unrecognized, including empty input, is OTHER.
    """
    if not raw or not str(raw).strip():
        return ServiceCategory.OTHER

    text = str(raw).lower().strip()
    segments = [s.strip() for s in _COMPOUND_SPLIT.split(text) if s.strip()]

    found: List[ServiceCategory] = []
    for segment in segments:
        category = _classify_segment(segment)
        if category is not None and category not in found:
            found.append(category)

    if not found:
        logger.debug(f"Unrecognized service type '{raw}', using OTHER")
        return ServiceCategory.OTHER

    if len(found) > 1:
        kinds = set(found)
        if ServiceCategory.OCEAN in kinds and kinds & {ServiceCategory.GROUND, ServiceCategory.DRAYAGE}:
            return ServiceCategory.INTERMODAL
        if kinds == {ServiceCategory.GROUND, ServiceCategory.DRAYAGE}:
            return ServiceCategory.GROUND

    return found[0]


def are_compatible(a: ServiceCategory, b: ServiceCategory) -> bool:
    return frozenset({a, b}) in SERVICE_COMPATIBILITY


def correct_service_by_distance(
    category: ServiceCategory,
    lane_miles: Optional[float],
    oversize: bool = False
) -> ServiceCategory:
    """Fix service categories that cannot be right for the lane length.

    A sub-150 mile "ocean" move is really a port drayage (or a ground move
    for oversize freight); a sub-300 mile ocean move is treated as intermodal.
    """
    if lane_miles is None:
        return category

    if category in (ServiceCategory.OCEAN, ServiceCategory.INTERMODAL) and lane_miles < 150:
        corrected = ServiceCategory.GROUND if oversize else ServiceCategory.DRAYAGE
        logger.debug(f"Service {category.value} over {lane_miles:.0f} mi corrected to {corrected.value}")
        return corrected

    if category == ServiceCategory.OCEAN and lane_miles < 300:
        logger.debug(f"Service OCEAN over {lane_miles:.0f} mi corrected to INTERMODAL")
        return ServiceCategory.INTERMODAL

    return category
