#!/usr/bin/env python3
"""
Scoring Module - weighted multi-criteria quote similarity.

Public API:
- SimilarityScorer: Scores and ranks candidate quotes
- ScoredQuoteMatch: Dataclass for scored match results
- WeightVector: Versioned, immutable criterion weights

Modules:
- models.py: Data structures (ScoredQuoteMatch)
- weights.py: WeightVector, criterion names and defaults
- criteria.py: Per-criterion similarity functions
- feedback_boost.py: Bounded feedback adjustment
- persistence.py: Database operations (save_matches_to_db)
- service.py: SimilarityScorer orchestrator
"""

from core.scorer.models import ScoredQuoteMatch
from core.scorer.weights import WeightVector, CRITERIA, DEFAULT_WEIGHTS
from core.scorer.service import SimilarityScorer

__all__ = ['SimilarityScorer', 'ScoredQuoteMatch', 'WeightVector', 'CRITERIA', 'DEFAULT_WEIGHTS']
