#!/usr/bin/env python3
"""
Feedback Models - data structures for the feedback ledger and learner.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


FEEDBACK_REASONS = (
    'good_match',
    'wrong_route',
    'wrong_cargo',
    'wrong_service',
    'price_too_high',
    'price_too_low',
    'outdated',
    'other',
)


@dataclass
class FeedbackData:
    """Aggregate of all feedback on matches that pointed at one historical quote."""
    quote_id: int
    total_feedback_count: int = 0
    positive_feedback_count: int = 0
    negative_feedback_count: int = 0
    average_rating: float = 0.0
    feedback_reasons: List[str] = field(default_factory=list)
    actual_prices_used: List[float] = field(default_factory=list)

    @property
    def net_ratio(self) -> float:
        """(positive - negative) / total, in [-1, 1]."""
        if self.total_feedback_count <= 0:
            return 0.0
        return (self.positive_feedback_count - self.negative_feedback_count) / self.total_feedback_count


@dataclass
class RatedMatch:
    """One rated match as the learner sees it."""
    match_id: int
    rating: int
    criteria: Dict[str, float]


@dataclass
class WeightAdjustment:
    criterion: str
    old_weight: float
    new_weight: float
    correlation: float
    positive_mean: float
    negative_mean: float
    samples: int

    @property
    def delta(self) -> float:
        return self.new_weight - self.old_weight


@dataclass
class LearningReport:
    ran: bool
    reason: str = ""
    samples: int = 0
    adjusted_count: int = 0
    adjustments: List[WeightAdjustment] = field(default_factory=list)
    previous_version: Optional[int] = None
    new_version: Optional[int] = None

    @property
    def total_change(self) -> float:
        return sum(abs(a.delta) for a in self.adjustments)


@dataclass
class PricingOutcome:
    actual_price_quoted: Optional[float] = None
    actual_price_accepted: Optional[float] = None
    job_won: Optional[bool] = None
