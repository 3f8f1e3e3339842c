#!/usr/bin/env python3
"""
Test suite configuration and utilities.

All tests run against in-memory SQLite or pure objects; none need a
running PostgreSQL or network access:

    # Run all tests
    python -m pytest tests/ -v

    # Skip repository and pipeline tests that build a SQLite schema
    python -m pytest tests/ -v -m "not db"

    # Using unittest (pure unit tests only)
    python -m unittest discover tests -v
"""

from datetime import datetime, timezone
from typing import Any, Dict

from core.dto import QuoteRecord

REFERENCE_TIME = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_quote(quote_id: int = 1, **overrides: Any) -> QuoteRecord:
    """QuoteRecord for a Chicago -> Atlanta ground move unless overridden."""
    fields: Dict[str, Any] = dict(
        quote_id=quote_id,
        origin_city='Chicago',
        origin_state_province='IL',
        origin_country='USA',
        destination_city='Atlanta',
        destination_state_province='GA',
        destination_country='USA',
        service_type='Ground',
        cargo_description='General freight on pallets',
        cargo_weight=5000.0,
        weight_unit='lbs',
        number_of_pieces=4,
        hazardous_material=False,
        quote_date=REFERENCE_TIME,
        created_at=REFERENCE_TIME,
    )
    fields.update(overrides)
    return QuoteRecord(**fields)


def quote_row(**overrides: Any) -> Dict[str, Any]:
    """Column dict for repo.quotes.add_quote, Chicago -> Atlanta ground by default."""
    row: Dict[str, Any] = dict(
        origin_city='Chicago',
        origin_state_province='IL',
        origin_country='USA',
        destination_city='Atlanta',
        destination_state_province='GA',
        destination_country='USA',
        service_type='Ground',
        cargo_description='General freight on pallets',
        cargo_weight=5000,
        weight_unit='lbs',
        number_of_pieces=4,
        hazardous_material=False,
        quote_date=REFERENCE_TIME,
    )
    row.update(overrides)
    return row
