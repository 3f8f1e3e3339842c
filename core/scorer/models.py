#!/usr/bin/env python3
"""
Scoring Models - Data structures for scoring results.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from core.dto import QuoteRecord


@dataclass
class ScoredQuoteMatch:
    """One ranked (query, candidate) match with price suggestion."""
    source_quote_id: int
    candidate: QuoteRecord

    similarity_score: float = 0.0  # final score after feedback boost, in [0, 1]
    raw_score: float = 0.0  # criterion-weighted score before feedback
    feedback_boost: float = 0.0
    applicable_weight: float = 0.0

    criteria: Dict[str, float] = field(default_factory=dict)
    feedback_details: Dict[str, Any] = field(default_factory=dict)

    suggested_price: Optional[float] = None
    price_confidence: Optional[float] = None
    price_range_low: Optional[float] = None
    price_range_high: Optional[float] = None
    price_notes: list = field(default_factory=list)

    weight_version: int = 0

    @property
    def matched_quote_id(self) -> int:
        return self.candidate.quote_id

    def criteria_breakdown(self) -> Dict[str, Any]:
        """Serializable breakdown stored alongside the persisted match."""
        return {
            'criteria': {k: round(v, 4) for k, v in self.criteria.items()},
            'raw_score': round(self.raw_score, 4),
            'feedback_boost': round(self.feedback_boost, 4),
            'applicable_weight': round(self.applicable_weight, 4),
            'feedback': self.feedback_details,
            'price_notes': list(self.price_notes),
        }
