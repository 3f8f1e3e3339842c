#!/usr/bin/env python3
"""
Data Transfer Objects for quotes.

QuoteRecord is a plain-data snapshot of a ShippingQuote row. Repositories
build them inside a unit of work so the scorer, estimator and oracle
adapter never hold a live session or lazy-load attributes.
"""

from dataclasses import dataclass
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Any, Optional


def _num(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_datetime(value: Any) -> Optional[datetime]:
    """Normalize date/datetime values to timezone-aware UTC datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return None


@dataclass(frozen=True)
class QuoteRecord:
    quote_id: int
    origin_city: Optional[str] = None
    origin_state_province: Optional[str] = None
    origin_country: Optional[str] = None
    destination_city: Optional[str] = None
    destination_state_province: Optional[str] = None
    destination_country: Optional[str] = None
    service_type: Optional[str] = None
    cargo_description: Optional[str] = None
    cargo_weight: Optional[float] = None
    weight_unit: Optional[str] = None
    cargo_length: Optional[float] = None
    cargo_width: Optional[float] = None
    cargo_height: Optional[float] = None
    dimension_unit: Optional[str] = None
    number_of_pieces: Optional[int] = None
    hazardous_material: Optional[bool] = None
    initial_quote_amount: Optional[float] = None
    final_agreed_price: Optional[float] = None
    job_won: Optional[bool] = None
    quote_status: Optional[str] = None
    client_company_name: Optional[str] = None
    total_distance_miles: Optional[float] = None
    quote_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def realized_price(self) -> Optional[float]:
        """Final agreed price when present, otherwise the initial quote amount."""
        for price in (self.final_agreed_price, self.initial_quote_amount):
            if price is not None and price > 0:
                return price
        return None

    @property
    def reference_time(self) -> Optional[datetime]:
        return self.quote_date or self.created_at

    @classmethod
    def from_orm(cls, quote: Any) -> "QuoteRecord":
        pieces = quote.number_of_pieces
        return cls(
            quote_id=int(quote.quote_id),
            origin_city=quote.origin_city,
            origin_state_province=quote.origin_state_province,
            origin_country=quote.origin_country,
            destination_city=quote.destination_city,
            destination_state_province=quote.destination_state_province,
            destination_country=quote.destination_country,
            service_type=quote.service_type,
            cargo_description=quote.cargo_description,
            cargo_weight=_num(quote.cargo_weight),
            weight_unit=quote.weight_unit,
            cargo_length=_num(quote.cargo_length),
            cargo_width=_num(quote.cargo_width),
            cargo_height=_num(quote.cargo_height),
            dimension_unit=quote.dimension_unit,
            number_of_pieces=int(pieces) if pieces is not None else None,
            hazardous_material=quote.hazardous_material,
            initial_quote_amount=_num(quote.initial_quote_amount),
            final_agreed_price=_num(quote.final_agreed_price),
            job_won=quote.job_won,
            quote_status=quote.quote_status,
            client_company_name=quote.client_company_name,
            total_distance_miles=_num(quote.total_distance_miles),
            quote_date=_as_datetime(quote.quote_date),
            created_at=_as_datetime(quote.created_at),
        )
