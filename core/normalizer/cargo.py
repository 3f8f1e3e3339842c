#!/usr/bin/env python3
"""
Cargo classification and cargo-derived attributes.

classify_cargo() evaluates CARGO_RULES top to bottom and returns the
category of the first rule whose predicate matches. The order is the
documented tie-break: "40ft container of machinery" is MACHINERY because
the machinery rule sits above the container rule.

Also provides weight conversion/bucketing, container type detection and
the out-of-gauge check used by pricing.
"""

import re
from enum import Enum
from typing import Callable, List, Optional, Tuple


class CargoCategory(str, Enum):
    MACHINERY = "MACHINERY"
    VEHICLE = "VEHICLE"
    CONTAINER = "CONTAINER"
    INDUSTRIAL = "INDUSTRIAL"
    AGRICULTURAL = "AGRICULTURAL"
    OVERSIZED = "OVERSIZED"
    HAZMAT = "HAZMAT"
    GENERAL = "GENERAL"
    UNKNOWN = "UNKNOWN"


Predicate = Callable[[str], bool]


def keyword_rule(*keywords: str) -> Predicate:
    """Build a predicate matching any keyword on word boundaries, plural allowed."""
    pattern = re.compile(
        r'\b(?:' + '|'.join(re.escape(k) for k in keywords) + r')s?\b'
    )
    return lambda text: pattern.search(text) is not None


CARGO_RULES: List[Tuple[Predicate, CargoCategory]] = [
    (keyword_rule(
        'machinery', 'machine', 'excavator', 'bulldozer', 'dozer', 'backhoe',
        'loader', 'crane', 'forklift', 'generator', 'compressor', 'skid steer',
        'heavy equipment', 'construction equipment', 'cnc', 'lathe', 'press brake',
    ), CargoCategory.MACHINERY),
    (keyword_rule(
        'vehicle', 'car', 'auto', 'automobile', 'suv', 'motorcycle', 'boat',
        'yacht', 'trailer', 'rv', 'bus', 'pickup truck',
    ), CargoCategory.VEHICLE),
    (keyword_rule(
        'container', 'teu', 'feu', 'high cube', 'shipping container',
        '20ft', '40ft', '20 ft', '40 ft', '20 foot', '40 foot',
    ), CargoCategory.CONTAINER),
    (keyword_rule(
        'steel', 'pipe', 'beam', 'coil', 'lumber', 'timber', 'metal', 'aluminum',
        'rebar', 'plate', 'industrial', 'transformer', 'tank', 'cable', 'reel',
    ), CargoCategory.INDUSTRIAL),
    (keyword_rule(
        'grain', 'hay', 'fertilizer', 'seed', 'produce', 'agricultural', 'farm',
        'livestock', 'feed', 'cotton',
    ), CargoCategory.AGRICULTURAL),
    (keyword_rule(
        'oversized', 'oversize', 'overweight', 'oog', 'out of gauge', 'wide load',
        'over dimensional', 'over-dimensional', 'odc', 'project cargo', 'heavy lift',
    ), CargoCategory.OVERSIZED),
    (keyword_rule(
        'hazmat', 'hazardous', 'dangerous goods', 'flammable', 'corrosive',
        'chemical', 'lithium', 'battery', 'batterie',
    ), CargoCategory.HAZMAT),
]


def classify_cargo(description: Optional[str]) -> CargoCategory:
    """Classify a cargo description; GENERAL when nothing matches, UNKNOWN when empty."""
    if not description or not str(description).strip():
        return CargoCategory.UNKNOWN

    text = str(description).lower()
    for predicate, category in CARGO_RULES:
        if predicate(text):
            return category
    return CargoCategory.GENERAL


_LB_UNITS = {'lb', 'lbs', 'pound', 'pounds', '#'}
_TON_UNITS = {'ton', 'tons', 't', 'mt', 'tonne', 'tonnes', 'metric ton', 'metric tons'}
LB_TO_KG = 0.453592


def to_kilograms(weight: Optional[float], unit: Optional[str]) -> Optional[float]:
    """Convert a weight to kilograms; None for missing or non-positive weights."""
    if weight is None:
        return None
    try:
        value = float(weight)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None

    unit_key = (unit or 'kg').strip().lower().rstrip('.')
    if unit_key in _LB_UNITS:
        return value * LB_TO_KG
    if unit_key in _TON_UNITS:
        return value * 1000.0
    return value


WEIGHT_RANGES: List[Tuple[str, float]] = [
    ('LIGHT', 500.0),
    ('MEDIUM', 2000.0),
    ('HEAVY', 10000.0),
    ('VERY_HEAVY', 25000.0),
]


def weight_range(kg: Optional[float]) -> Optional[str]:
    if kg is None:
        return None
    for name, upper in WEIGHT_RANGES:
        if kg < upper:
            return name
    return 'PROJECT'


# Evaluated in order against description + service text.
CONTAINER_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ('REEFER', re.compile(r'\b(reefer|refrigerated|temperature controlled)\b')),
    ('FLAT_RACK', re.compile(r'\b(flat ?rack|flatrack|fr)\b')),
    ('OPEN_TOP', re.compile(r'\b(open ?top|ot)\b')),
    ('40HC', re.compile(r"\b40\s*(ft|')?\s*(hc|hq|high ?cube)\b")),
    ('40STD', re.compile(r"\b40\s*(ft|foot|')?\s*(std|standard|dry|gp|dv)?\b")),
    ('20STD', re.compile(r"\b20\s*(ft|foot|')?\s*(std|standard|dry|gp|dv)?\b")),
    ('RORO', re.compile(r'\b(roro|ro-ro|roll on)\b')),
]

CONTAINER_PRICING_MULTIPLIERS = {
    'REEFER': 1.35,
    'FLAT_RACK': 1.50,
    'OPEN_TOP': 1.30,
    '40HC': 1.10,
    '40STD': 1.0,
    '20STD': 0.75,
    'RORO': 1.0,
}

OOG_MULTIPLIER = 1.25

_CONTAINER_CONTEXT = re.compile(r"\b(container|ft|foot|fcl|hc|hq|std|teu|feu|')")


def detect_container_type(description: Optional[str], service: Optional[str] = None) -> Optional[str]:
    """Detect container/equipment type from free text, or None if nothing is stated."""
    text = f"{description or ''} {service or ''}".lower().strip()
    if not text:
        return None

    for name, pattern in CONTAINER_PATTERNS:
        if name in ('40STD', '20STD') and not _CONTAINER_CONTEXT.search(text):
            # Bare "20" or "40" is more often a count than a box size
            continue
        if pattern.search(text):
            return name
    return None


_OOG_KEYWORDS = re.compile(
    r'\b(oog|out of gauge|oversized?|over ?width|over ?height|over-dimensional|wide load|flat ?rack|open ?top)\b'
)
OOG_DIMENSION_LIMIT = 102.0  # inches, standard trailer width


def is_out_of_gauge(
    description: Optional[str],
    height: Optional[float] = None,
    width: Optional[float] = None
) -> bool:
    if description and _OOG_KEYWORDS.search(str(description).lower()):
        return True
    for dim in (height, width):
        if dim is not None and dim > OOG_DIMENSION_LIMIT:
            return True
    return False
