#!/usr/bin/env python3
"""
Versioned weight vector for the Similarity Scorer.

A WeightVector is immutable. The Learner produces a new version rather
than mutating the current one, and every version is persisted so a match
can be replayed against the weights that were active when it was created.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

CRITERIA: Tuple[str, ...] = (
    'origin_region',
    'origin_city',
    'destination_region',
    'destination_city',
    'service_type',
    'service_compatibility',
    'cargo_category',
    'cargo_weight_range',
    'number_of_pieces',
    'hazmat',
    'container_type',
    'recency',
    'distance_similarity',
)

DEFAULT_WEIGHTS: Dict[str, float] = {
    'service_type': 0.18,
    'cargo_weight_range': 0.15,
    'cargo_category': 0.12,
    'distance_similarity': 0.12,
    'destination_region': 0.09,
    'origin_region': 0.07,
    'hazmat': 0.05,
    'origin_city': 0.04,
    'destination_city': 0.04,
    'service_compatibility': 0.04,
    'recency': 0.04,
    'number_of_pieces': 0.03,
    'container_type': 0.03,
}


@dataclass(frozen=True)
class WeightVector:
    weights: Dict[str, float]
    version: int = 0
    source: str = 'default'
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        unknown = set(self.weights) - set(CRITERIA)
        if unknown:
            raise ValueError(f"Unknown criteria in weight vector: {sorted(unknown)}")
        negative = [k for k, v in self.weights.items() if v < 0]
        if negative:
            raise ValueError(f"Weights must be non-negative: {negative}")

    @classmethod
    def default(cls) -> "WeightVector":
        return cls(weights=dict(DEFAULT_WEIGHTS), version=0, source='default')

    def get(self, criterion: str) -> float:
        return float(self.weights.get(criterion, 0.0))

    @property
    def total(self) -> float:
        return float(sum(self.weights.values()))

    @property
    def max_share(self) -> float:
        """Largest single weight as a fraction of the vector total."""
        total = self.total
        if total <= 0:
            return 0.0
        return max(self.weights.values()) / total

    def evolve(
        self,
        weights: Dict[str, float],
        source: str = 'learned',
        version: Optional[int] = None
    ) -> "WeightVector":
        """Return the next version with the given weights merged in."""
        merged = dict(self.weights)
        merged.update(weights)
        return WeightVector(
            weights=merged,
            version=self.version + 1 if version is None else version,
            source=source,
        )

    def as_dict(self) -> Dict[str, float]:
        return {k: round(float(v), 6) for k, v in self.weights.items()}
