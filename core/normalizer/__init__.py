#!/usr/bin/env python3
"""
Normalizer Module - canonical views of free-text quote fields.

Public API:
- normalize_quote: Build a NormalizedQuote from a QuoteRecord
- NormalizedQuote: Derived, non-persistent canonical view
- ServiceCategory, CargoCategory, Region: Closed taxonomies

Modules:
- service_type.py: Service keyword mapping, compatibility, distance correction
- cargo.py: Ordered cargo rules, weight conversion, container/OOG detection
- region.py: State/country -> macro-region lookup tables
- geo.py: Coarse lane distance proxy
"""

from dataclasses import dataclass
from typing import Optional

from core.dto import QuoteRecord
from core.normalizer.service_type import (
    ServiceCategory,
    normalize_service_type,
    correct_service_by_distance,
    are_compatible,
)
from core.normalizer.cargo import (
    CargoCategory,
    classify_cargo,
    to_kilograms,
    weight_range,
    detect_container_type,
    is_out_of_gauge,
)
from core.normalizer.region import Region, classify_region, has_location
from core.normalizer.geo import Point, locate, estimate_lane_miles


@dataclass(frozen=True)
class NormalizedQuote:
    """Canonical view of a quote. Recomputed per scoring call, never cached."""
    quote: QuoteRecord
    service: ServiceCategory
    cargo: CargoCategory
    origin_region: Region
    destination_region: Region
    has_origin: bool
    has_destination: bool
    weight_kg: Optional[float]
    weight_range: Optional[str]
    container_type: Optional[str]
    out_of_gauge: bool
    origin_point: Optional[Point]
    destination_point: Optional[Point]
    lane_miles: Optional[float]

    @property
    def quote_id(self) -> int:
        return self.quote.quote_id

    @property
    def lane(self) -> tuple:
        return (self.origin_region, self.destination_region, self.service)


def normalize_quote(quote: QuoteRecord, correct_by_distance: bool = True) -> NormalizedQuote:
    origin_point = locate(quote.origin_city, quote.origin_state_province, quote.origin_country)
    destination_point = locate(
        quote.destination_city, quote.destination_state_province, quote.destination_country
    )

    if quote.total_distance_miles is not None and quote.total_distance_miles > 0:
        lane_miles = quote.total_distance_miles
    else:
        lane_miles = estimate_lane_miles(origin_point, destination_point)

    oog = is_out_of_gauge(quote.cargo_description, quote.cargo_height, quote.cargo_width)
    container = detect_container_type(quote.cargo_description, quote.service_type)

    service = normalize_service_type(quote.service_type)
    if correct_by_distance:
        service = correct_service_by_distance(
            service, lane_miles, oversize=oog or container in ('FLAT_RACK', 'OPEN_TOP')
        )

    weight_kg = to_kilograms(quote.cargo_weight, quote.weight_unit)

    return NormalizedQuote(
        quote=quote,
        service=service,
        cargo=classify_cargo(quote.cargo_description),
        origin_region=classify_region(
            quote.origin_state_province, quote.origin_country, quote.origin_city
        ),
        destination_region=classify_region(
            quote.destination_state_province, quote.destination_country, quote.destination_city
        ),
        has_origin=has_location(
            quote.origin_state_province, quote.origin_country, quote.origin_city
        ),
        has_destination=has_location(
            quote.destination_state_province, quote.destination_country, quote.destination_city
        ),
        weight_kg=weight_kg,
        weight_range=weight_range(weight_kg),
        container_type=container,
        out_of_gauge=oog,
        origin_point=origin_point,
        destination_point=destination_point,
        lane_miles=lane_miles,
    )


__all__ = [
    'NormalizedQuote',
    'normalize_quote',
    'ServiceCategory',
    'CargoCategory',
    'Region',
    'normalize_service_type',
    'correct_service_by_distance',
    'are_compatible',
    'classify_cargo',
    'classify_region',
    'to_kilograms',
    'weight_range',
    'detect_container_type',
    'is_out_of_gauge',
]
