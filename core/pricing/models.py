#!/usr/bin/env python3
"""
Pricing Models - data structures for price suggestions and estimates.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MatchPriceSuggestion:
    """Price suggested by a single historical match."""
    price: float
    confidence: float
    range_low: float
    range_high: float
    base_price: float
    multiplier: float = 1.0
    notes: List[str] = field(default_factory=list)


@dataclass
class PriceEstimate:
    """Aggregated estimate across matches.

    When insufficient_data is True no numeric field carries a value; callers
    must check the flag rather than treating None as zero.
    """
    weighted_average: Optional[float] = None
    range_low: Optional[float] = None
    range_high: Optional[float] = None
    confidence: float = 0.0
    based_on: int = 0
    insufficient_data: bool = False

    @classmethod
    def insufficient(cls) -> "PriceEstimate":
        return cls(insufficient_data=True)

    @property
    def has_price(self) -> bool:
        return not self.insufficient_data and self.weighted_average is not None


@dataclass
class LaneStats:
    """Aggregate statistics for an (origin region, destination region, service) lane."""
    origin_region: str
    destination_region: str
    service_type: str
    quote_count: int = 0
    average_price: Optional[float] = None
    median_price: Optional[float] = None
    win_rate: Optional[float] = None


@dataclass
class SmartPriceSuggestion:
    """Match-based estimate optionally nudged toward the lane average."""
    estimate: PriceEstimate
    suggested_price: Optional[float] = None
    range_low: Optional[float] = None
    range_high: Optional[float] = None
    confidence: float = 0.0
    lane_stats: Optional[LaneStats] = None
    lane_blend: float = 0.0
    adjustments: List[str] = field(default_factory=list)

    @property
    def has_price(self) -> bool:
        return self.suggested_price is not None
