#!/usr/bin/env python3
"""
Region classification.

Buckets a (city, state/province, country) triple into a macro-region via
static lookup tables. US states map to domestic regions, everything else
maps by country to an international region, and anything the tables do
not know is OTHER. Never raises.
"""

from enum import Enum
from typing import Dict, Optional


class Region(str, Enum):
    NORTHEAST = "NORTHEAST"
    SOUTHEAST = "SOUTHEAST"
    GULF = "GULF"
    WEST = "WEST"
    MIDWEST = "MIDWEST"
    CENTRAL = "CENTRAL"
    CANADA = "CANADA"
    LATIN_AMERICA = "LATIN_AMERICA"
    EUROPE = "EUROPE"
    ASIA_PACIFIC = "ASIA_PACIFIC"
    MIDDLE_EAST = "MIDDLE_EAST"
    AFRICA = "AFRICA"
    OTHER = "OTHER"


US_STATE_REGIONS: Dict[str, Region] = {
    **{s: Region.NORTHEAST for s in ('ME', 'NH', 'VT', 'MA', 'RI', 'CT', 'NY', 'NJ', 'PA', 'DE', 'MD', 'DC')},
    **{s: Region.SOUTHEAST for s in ('VA', 'WV', 'NC', 'SC', 'GA', 'FL', 'TN', 'KY')},
    **{s: Region.GULF for s in ('TX', 'LA', 'MS', 'AL')},
    **{s: Region.MIDWEST for s in ('OH', 'MI', 'IN', 'IL', 'WI', 'MN', 'IA', 'MO')},
    **{s: Region.CENTRAL for s in ('ND', 'SD', 'NE', 'KS', 'OK', 'AR')},
    **{s: Region.WEST for s in ('WA', 'OR', 'CA', 'NV', 'AZ', 'UT', 'ID', 'MT', 'WY', 'CO', 'NM', 'AK', 'HI')},
}

US_STATE_NAMES: Dict[str, str] = {
    'alabama': 'AL', 'alaska': 'AK', 'arizona': 'AZ', 'arkansas': 'AR', 'california': 'CA',
    'colorado': 'CO', 'connecticut': 'CT', 'delaware': 'DE', 'district of columbia': 'DC',
    'florida': 'FL', 'georgia': 'GA', 'hawaii': 'HI', 'idaho': 'ID', 'illinois': 'IL',
    'indiana': 'IN', 'iowa': 'IA', 'kansas': 'KS', 'kentucky': 'KY', 'louisiana': 'LA',
    'maine': 'ME', 'maryland': 'MD', 'massachusetts': 'MA', 'michigan': 'MI', 'minnesota': 'MN',
    'mississippi': 'MS', 'missouri': 'MO', 'montana': 'MT', 'nebraska': 'NE', 'nevada': 'NV',
    'new hampshire': 'NH', 'new jersey': 'NJ', 'new mexico': 'NM', 'new york': 'NY',
    'north carolina': 'NC', 'north dakota': 'ND', 'ohio': 'OH', 'oklahoma': 'OK', 'oregon': 'OR',
    'pennsylvania': 'PA', 'rhode island': 'RI', 'south carolina': 'SC', 'south dakota': 'SD',
    'tennessee': 'TN', 'texas': 'TX', 'utah': 'UT', 'vermont': 'VT', 'virginia': 'VA',
    'washington': 'WA', 'west virginia': 'WV', 'wisconsin': 'WI', 'wyoming': 'WY',
}

CANADIAN_PROVINCES: Dict[str, str] = {
    'ontario': 'ON', 'quebec': 'QC', 'british columbia': 'BC', 'alberta': 'AB',
    'manitoba': 'MB', 'saskatchewan': 'SK', 'nova scotia': 'NS', 'new brunswick': 'NB',
    'newfoundland': 'NL', 'newfoundland and labrador': 'NL', 'prince edward island': 'PE',
    'yukon': 'YT', 'northwest territories': 'NT', 'nunavut': 'NU',
}
_PROVINCE_CODES = set(CANADIAN_PROVINCES.values())

US_COUNTRY_ALIASES = {'us', 'usa', 'u.s.', 'u.s.a.', 'united states', 'united states of america', 'america'}

# Canonical country name -> region. Aliases resolve through COUNTRY_ALIASES.
COUNTRY_REGIONS: Dict[str, Region] = {
    'canada': Region.CANADA,
    **{c: Region.LATIN_AMERICA for c in (
        'mexico', 'brazil', 'chile', 'colombia', 'peru', 'argentina', 'panama',
        'guatemala', 'costa rica', 'dominican republic', 'ecuador', 'honduras',
    )},
    **{c: Region.EUROPE for c in (
        'germany', 'netherlands', 'belgium', 'united kingdom', 'france', 'spain',
        'italy', 'poland', 'sweden', 'norway', 'denmark', 'ireland', 'portugal', 'greece',
    )},
    **{c: Region.ASIA_PACIFIC for c in (
        'china', 'japan', 'south korea', 'taiwan', 'vietnam', 'thailand', 'singapore',
        'malaysia', 'indonesia', 'philippines', 'india', 'australia', 'new zealand', 'hong kong',
    )},
    **{c: Region.MIDDLE_EAST for c in (
        'united arab emirates', 'saudi arabia', 'qatar', 'israel', 'oman', 'kuwait', 'turkey',
    )},
    **{c: Region.AFRICA for c in (
        'south africa', 'nigeria', 'egypt', 'kenya', 'morocco', 'ghana',
    )},
}

COUNTRY_ALIASES: Dict[str, str] = {
    'ca': 'canada', 'can': 'canada',
    'mx': 'mexico', 'mex': 'mexico', 'br': 'brazil', 'cl': 'chile', 'co': 'colombia',
    'de': 'germany', 'deutschland': 'germany', 'nl': 'netherlands', 'holland': 'netherlands',
    'be': 'belgium', 'uk': 'united kingdom', 'gb': 'united kingdom', 'great britain': 'united kingdom',
    'england': 'united kingdom', 'fr': 'france', 'es': 'spain', 'it': 'italy', 'pl': 'poland',
    'cn': 'china', 'prc': 'china', 'jp': 'japan', 'kr': 'south korea', 'korea': 'south korea',
    'tw': 'taiwan', 'vn': 'vietnam', 'viet nam': 'vietnam', 'th': 'thailand', 'sg': 'singapore',
    'my': 'malaysia', 'id': 'indonesia', 'ph': 'philippines', 'in': 'india', 'au': 'australia',
    'nz': 'new zealand', 'hk': 'hong kong', 'ae': 'united arab emirates', 'uae': 'united arab emirates',
    'sa': 'saudi arabia', 'ksa': 'saudi arabia', 'qa': 'qatar', 'il': 'israel', 'tr': 'turkey',
    'za': 'south africa', 'ng': 'nigeria', 'eg': 'egypt', 'ke': 'kenya', 'ma': 'morocco',
}

# City -> (state code or None, canonical country). Used only when the state is missing.
KNOWN_CITIES: Dict[str, tuple] = {
    'chicago': ('IL', 'us'), 'atlanta': ('GA', 'us'), 'houston': ('TX', 'us'),
    'dallas': ('TX', 'us'), 'los angeles': ('CA', 'us'), 'long beach': ('CA', 'us'),
    'oakland': ('CA', 'us'), 'seattle': ('WA', 'us'), 'tacoma': ('WA', 'us'),
    'new york': ('NY', 'us'), 'newark': ('NJ', 'us'), 'savannah': ('GA', 'us'),
    'charleston': ('SC', 'us'), 'miami': ('FL', 'us'), 'jacksonville': ('FL', 'us'),
    'new orleans': ('LA', 'us'), 'memphis': ('TN', 'us'), 'nashville': ('TN', 'us'),
    'detroit': ('MI', 'us'), 'columbus': ('OH', 'us'), 'cleveland': ('OH', 'us'),
    'denver': ('CO', 'us'), 'phoenix': ('AZ', 'us'), 'baltimore': ('MD', 'us'),
    'boston': ('MA', 'us'), 'philadelphia': ('PA', 'us'), 'pittsburgh': ('PA', 'us'),
    'norfolk': ('VA', 'us'), 'mobile': ('AL', 'us'), 'kansas city': ('MO', 'us'),
    'st louis': ('MO', 'us'), 'st. louis': ('MO', 'us'), 'minneapolis': ('MN', 'us'),
    'indianapolis': ('IN', 'us'), 'portland': ('OR', 'us'), 'salt lake city': ('UT', 'us'),
    'san antonio': ('TX', 'us'), 'laredo': ('TX', 'us'), 'el paso': ('TX', 'us'),
    'charlotte': ('NC', 'us'),
    'toronto': ('ON', 'canada'), 'vancouver': ('BC', 'canada'), 'montreal': ('QC', 'canada'),
    'mexico city': (None, 'mexico'), 'manzanillo': (None, 'mexico'), 'santos': (None, 'brazil'),
    'shanghai': (None, 'china'), 'shenzhen': (None, 'china'), 'ningbo': (None, 'china'),
    'qingdao': (None, 'china'), 'busan': (None, 'south korea'), 'tokyo': (None, 'japan'),
    'yokohama': (None, 'japan'), 'singapore': (None, 'singapore'), 'hong kong': (None, 'hong kong'),
    'ho chi minh city': (None, 'vietnam'), 'mumbai': (None, 'india'), 'nhava sheva': (None, 'india'),
    'rotterdam': (None, 'netherlands'), 'antwerp': (None, 'belgium'), 'hamburg': (None, 'germany'),
    'bremerhaven': (None, 'germany'), 'felixstowe': (None, 'united kingdom'), 'london': (None, 'united kingdom'),
    'le havre': (None, 'france'), 'valencia': (None, 'spain'), 'genoa': (None, 'italy'),
    'dubai': (None, 'united arab emirates'), 'jebel ali': (None, 'united arab emirates'),
}


def _clean(value: Optional[str]) -> str:
    return ' '.join(str(value).strip().lower().split()) if value else ''


def canonical_country(country: Optional[str]) -> Optional[str]:
    """Return 'us', a canonical country name, or None when unknown/empty."""
    key = _clean(country)
    if not key:
        return None
    if key in US_COUNTRY_ALIASES:
        return 'us'
    key = COUNTRY_ALIASES.get(key, key)
    return key if key in COUNTRY_REGIONS else None


def state_code(state: Optional[str]) -> Optional[str]:
    """Return a US state or Canadian province code, or None."""
    key = _clean(state)
    if not key:
        return None
    upper = key.upper().replace('.', '')
    if upper in US_STATE_REGIONS or upper in _PROVINCE_CODES:
        return upper
    return US_STATE_NAMES.get(key) or CANADIAN_PROVINCES.get(key)


def lookup_city(city: Optional[str]) -> Optional[tuple]:
    return KNOWN_CITIES.get(_clean(city))


def classify_region(
    state: Optional[str] = None,
    country: Optional[str] = None,
    city: Optional[str] = None
) -> Region:
    """Classify a location into a macro-region. Unknown inputs give OTHER."""
    country_key = canonical_country(country)
    code = state_code(state)

    if country_key and country_key != 'us':
        return COUNTRY_REGIONS[country_key]

    if code:
        if code in _PROVINCE_CODES:
            return Region.CANADA
        return US_STATE_REGIONS[code]

    city_info = lookup_city(city)
    if city_info:
        city_state, city_country = city_info
        if country_key == 'us' and city_country != 'us':
            return Region.OTHER
        if city_state in US_STATE_REGIONS:
            return US_STATE_REGIONS[city_state]
        if city_state in _PROVINCE_CODES:
            return Region.CANADA
        return COUNTRY_REGIONS.get(city_country, Region.OTHER)

    return Region.OTHER


def has_location(state: Optional[str], country: Optional[str], city: Optional[str]) -> bool:
    return any(_clean(v) for v in (state, country, city))
