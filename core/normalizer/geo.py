#!/usr/bin/env python3
"""
Coarse geographic distance proxy.

Not geocoding: each endpoint resolves to a representative point (known
city, else state/province centroid, else a country point) and the lane
length is the great-circle distance between them times a road circuity
factor. Good enough to tell a 40 mile dray from a 700 mile linehaul.
"""

import math
from typing import Dict, Optional, Tuple

from core.normalizer.region import canonical_country, lookup_city, state_code

Point = Tuple[float, float]

EARTH_RADIUS_MILES = 3958.8
ROAD_CIRCUITY = 1.2
MIN_LANE_MILES = 25.0  # Same-centroid lanes are still local moves, not zero-mile ones

STATE_CENTROIDS: Dict[str, Point] = {
    'AL': (32.8, -86.8), 'AK': (64.7, -152.0), 'AZ': (34.3, -111.7), 'AR': (34.9, -92.4),
    'CA': (37.2, -119.5), 'CO': (39.0, -105.5), 'CT': (41.6, -72.7), 'DE': (39.0, -75.5),
    'DC': (38.9, -77.0), 'FL': (28.6, -82.4), 'GA': (32.7, -83.4), 'HI': (20.3, -156.4),
    'ID': (44.4, -114.6), 'IL': (40.0, -89.2), 'IN': (39.9, -86.3), 'IA': (42.1, -93.5),
    'KS': (38.5, -98.4), 'KY': (37.5, -85.3), 'LA': (31.1, -92.0), 'ME': (45.4, -69.2),
    'MD': (39.0, -76.8), 'MA': (42.3, -71.8), 'MI': (44.3, -85.4), 'MN': (46.3, -94.3),
    'MS': (32.7, -89.7), 'MO': (38.4, -92.5), 'MT': (47.0, -109.6), 'NE': (41.5, -99.8),
    'NV': (39.3, -116.6), 'NH': (43.7, -71.6), 'NJ': (40.2, -74.7), 'NM': (34.4, -106.1),
    'NY': (42.9, -75.5), 'NC': (35.6, -79.4), 'ND': (47.5, -100.5), 'OH': (40.3, -82.8),
    'OK': (35.6, -97.5), 'OR': (43.9, -120.6), 'PA': (40.9, -77.8), 'RI': (41.7, -71.5),
    'SC': (33.9, -80.9), 'SD': (44.4, -100.2), 'TN': (35.9, -86.4), 'TX': (31.5, -99.3),
    'UT': (39.3, -111.7), 'VT': (44.1, -72.7), 'VA': (37.5, -78.9), 'WA': (47.4, -120.5),
    'WV': (38.6, -80.6), 'WI': (44.6, -89.9), 'WY': (43.0, -107.6),
    'BC': (49.28, -123.12), 'AB': (51.05, -114.07), 'ON': (43.65, -79.38), 'QC': (45.50, -73.57),
    'MB': (49.90, -97.14), 'SK': (50.45, -104.61), 'NS': (44.65, -63.57), 'NB': (45.96, -66.64),
    'NL': (47.56, -52.71), 'PE': (46.24, -63.13),
}

# Representative freight hub per country rather than a geometric centroid.
COUNTRY_POINTS: Dict[str, Point] = {
    'us': (39.8, -98.6), 'canada': (43.65, -79.38), 'mexico': (19.43, -99.13),
    'brazil': (-23.55, -46.63), 'chile': (-33.45, -70.67), 'colombia': (4.71, -74.07),
    'peru': (-12.05, -77.04), 'argentina': (-34.60, -58.38), 'panama': (8.98, -79.52),
    'guatemala': (14.63, -90.51), 'costa rica': (9.93, -84.08), 'dominican republic': (18.49, -69.93),
    'ecuador': (-2.19, -79.89), 'honduras': (15.50, -88.03),
    'china': (31.23, 121.47), 'japan': (35.68, 139.69), 'south korea': (35.18, 129.08),
    'taiwan': (25.03, 121.57), 'vietnam': (10.82, 106.63), 'thailand': (13.76, 100.50),
    'singapore': (1.35, 103.82), 'malaysia': (3.14, 101.69), 'indonesia': (-6.21, 106.85),
    'philippines': (14.60, 120.98), 'india': (19.08, 72.88), 'australia': (-33.87, 151.21),
    'new zealand': (-36.85, 174.76), 'hong kong': (22.32, 114.17),
    'germany': (53.55, 9.99), 'netherlands': (51.92, 4.48), 'belgium': (51.22, 4.40),
    'united kingdom': (51.51, -0.13), 'france': (48.86, 2.35), 'spain': (39.47, -0.38),
    'italy': (44.41, 8.93), 'poland': (54.35, 18.65), 'sweden': (57.71, 11.97),
    'norway': (59.91, 10.75), 'denmark': (55.68, 12.57), 'ireland': (53.35, -6.26),
    'portugal': (38.72, -9.14), 'greece': (37.94, 23.65),
    'united arab emirates': (25.20, 55.27), 'saudi arabia': (21.49, 39.19), 'qatar': (25.29, 51.53),
    'israel': (32.79, 34.99), 'oman': (23.59, 58.41), 'kuwait': (29.38, 47.99), 'turkey': (41.01, 28.98),
    'south africa': (-33.92, 18.42), 'nigeria': (6.52, 3.38), 'egypt': (31.20, 29.92),
    'kenya': (-4.04, 39.67), 'morocco': (33.57, -7.59), 'ghana': (5.60, -0.19),
}

CITY_POINTS: Dict[str, Point] = {
    'chicago': (41.88, -87.63), 'atlanta': (33.75, -84.39), 'houston': (29.76, -95.37),
    'dallas': (32.78, -96.80), 'los angeles': (34.05, -118.24), 'long beach': (33.77, -118.19),
    'oakland': (37.80, -122.27), 'seattle': (47.61, -122.33), 'tacoma': (47.25, -122.44),
    'new york': (40.71, -74.01), 'newark': (40.74, -74.17), 'savannah': (32.08, -81.09),
    'charleston': (32.78, -79.93), 'miami': (25.76, -80.19), 'jacksonville': (30.33, -81.66),
    'new orleans': (29.95, -90.07), 'memphis': (35.15, -90.05), 'nashville': (36.16, -86.78),
    'detroit': (42.33, -83.05), 'columbus': (39.96, -83.00), 'cleveland': (41.50, -81.69),
    'denver': (39.74, -104.99), 'phoenix': (33.45, -112.07), 'baltimore': (39.29, -76.61),
    'boston': (42.36, -71.06), 'philadelphia': (39.95, -75.17), 'pittsburgh': (40.44, -80.00),
    'norfolk': (36.85, -76.29), 'mobile': (30.69, -88.04), 'kansas city': (39.10, -94.58),
    'st louis': (38.63, -90.20), 'st. louis': (38.63, -90.20), 'minneapolis': (44.98, -93.27),
    'indianapolis': (39.77, -86.16), 'portland': (45.52, -122.68), 'salt lake city': (40.76, -111.89),
    'san antonio': (29.42, -98.49), 'laredo': (27.51, -99.51), 'el paso': (31.76, -106.49),
    'charlotte': (35.23, -80.84),
    'toronto': (43.65, -79.38), 'vancouver': (49.28, -123.12), 'montreal': (45.50, -73.57),
    'mexico city': (19.43, -99.13), 'manzanillo': (19.05, -104.32), 'santos': (-23.96, -46.33),
    'shanghai': (31.23, 121.47), 'shenzhen': (22.54, 114.06), 'ningbo': (29.87, 121.54),
    'qingdao': (36.07, 120.38), 'busan': (35.18, 129.08), 'tokyo': (35.68, 139.69),
    'yokohama': (35.44, 139.64), 'singapore': (1.35, 103.82), 'hong kong': (22.32, 114.17),
    'ho chi minh city': (10.82, 106.63), 'mumbai': (19.08, 72.88), 'nhava sheva': (18.95, 72.95),
    'rotterdam': (51.92, 4.48), 'antwerp': (51.22, 4.40), 'hamburg': (53.55, 9.99),
    'bremerhaven': (53.54, 8.58), 'felixstowe': (51.96, 1.35), 'london': (51.51, -0.13),
    'le havre': (49.49, 0.11), 'valencia': (39.47, -0.38), 'genoa': (44.41, 8.93),
    'dubai': (25.20, 55.27), 'jebel ali': (25.01, 55.06),
}


def locate(
    city: Optional[str] = None,
    state: Optional[str] = None,
    country: Optional[str] = None
) -> Optional[Point]:
    """Resolve an endpoint to a representative point, or None if unknown."""
    code = state_code(state)
    country_key = canonical_country(country)

    city_key = ' '.join(str(city).strip().lower().split()) if city else ''
    city_info = lookup_city(city_key)
    if city_info and city_key in CITY_POINTS:
        city_state, city_country = city_info
        consistent = (
            (code is None or city_state == code)
            and (country_key is None or city_country == country_key)
        )
        if consistent:
            return CITY_POINTS[city_key]

    if code and (country_key in (None, 'us', 'canada')):
        return STATE_CENTROIDS.get(code)

    if country_key:
        return COUNTRY_POINTS.get(country_key)

    return None


def haversine_miles(a: Point, b: Point) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(h)))


def estimate_lane_miles(origin: Optional[Point], destination: Optional[Point]) -> Optional[float]:
    """Approximate lane length in miles between two resolved points."""
    if origin is None or destination is None:
        return None
    return max(MIN_LANE_MILES, haversine_miles(origin, destination) * ROAD_CIRCUITY)


def distance_category(miles: float) -> str:
    """Human-readable distance band used in pricing prompts."""
    if miles <= 50:
        return 'Local (0-50 miles)'
    if miles <= 100:
        return 'Short Haul (50-100 miles)'
    if miles <= 200:
        return 'Medium Haul (100-200 miles)'
    if miles <= 350:
        return 'Extended (200-350 miles)'
    if miles <= 500:
        return 'Long Haul (350-500 miles)'
    return 'Regional/Cross-Country (500+ miles)'
