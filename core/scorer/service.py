#!/usr/bin/env python3
"""
Similarity Scorer - weighted multi-criteria matching of quotes.

For each candidate:
- Score every criterion where both sides have data (criteria.py)
- Weighted average over the applicable criteria only
- Bounded feedback boost (feedback_boost.py)
- Per-match price suggestion (core.pricing.match_price)

Then filter by the effective minimum score, rank by score with recency as
tie-break, and truncate. Pure: identical inputs give identical output.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from core.config_loader import ScorerConfig, ResultPolicy, PricingConfig
from core.dto import QuoteRecord
from core.feedback.models import FeedbackData
from core.normalizer import NormalizedQuote, normalize_quote
from core.pricing.match_price import suggest_match_price
from core.scorer.criteria import score_criteria
from core.scorer.feedback_boost import calculate_feedback_boost
from core.scorer.models import ScoredQuoteMatch
from core.scorer.weights import WeightVector

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def weighted_score(criteria: Dict[str, float], weights: WeightVector) -> Tuple[float, float]:
    """Return (score, applicable_weight); score is 0 when nothing applies."""
    numerator = 0.0
    denominator = 0.0
    for name, value in criteria.items():
        w = weights.get(name)
        if w <= 0:
            continue
        numerator += w * value
        denominator += w
    if denominator <= 0:
        return 0.0, 0.0
    return max(0.0, min(1.0, numerator / denominator)), denominator


def _recency_key(quote: QuoteRecord) -> float:
    ts = quote.reference_time
    if ts is None:
        return _EPOCH.timestamp()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()


def rank_key(match: ScoredQuoteMatch):
    """Score desc, then newer candidate first, then lower id for a total order."""
    return (-match.similarity_score, -_recency_key(match.candidate), match.candidate.quote_id)


class SimilarityScorer:
    """
    Scores candidate historical quotes against a query quote.

    Weights are passed per call so a batch can pin one WeightVector
    version for every quote it scores.
    """

    def __init__(
        self,
        config: ScorerConfig,
        result_policy: Optional[ResultPolicy] = None,
        pricing_config: Optional[PricingConfig] = None
    ):
        self.config = config
        self.result_policy = result_policy or ResultPolicy()
        self.pricing_config = pricing_config or PricingConfig()

    def effective_min_score(self, query: NormalizedQuote, min_score: Optional[float]) -> float:
        base = self.result_policy.min_score if min_score is None else min_score
        service_floor = self.result_policy.service_min_scores.get(query.service.value, 0.0)
        return max(base, service_floor)

    def normalize(self, quote: QuoteRecord) -> NormalizedQuote:
        return normalize_quote(quote, correct_by_distance=self.config.correct_service_by_distance)

    def score_candidate(
        self,
        query: NormalizedQuote,
        candidate: NormalizedQuote,
        weights: WeightVector,
        feedback: Optional[FeedbackData] = None,
        as_of: Optional[datetime] = None
    ) -> ScoredQuoteMatch:
        """Score one candidate; no filtering is applied here."""
        criteria = score_criteria(query, candidate, self.config, as_of)
        raw, applicable = weighted_score(criteria, weights)

        boost, boost_details = calculate_feedback_boost(feedback, weights, self.config)
        final = max(0.0, min(1.0, raw + boost))

        match = ScoredQuoteMatch(
            source_quote_id=query.quote_id,
            candidate=candidate.quote,
            similarity_score=final,
            raw_score=raw,
            feedback_boost=boost,
            applicable_weight=applicable,
            criteria=criteria,
            feedback_details=boost_details,
            weight_version=weights.version,
        )

        suggestion = suggest_match_price(query, candidate, final, as_of, self.pricing_config)
        if suggestion is not None:
            match.suggested_price = suggestion.price
            match.price_confidence = suggestion.confidence
            match.price_range_low = suggestion.range_low
            match.price_range_high = suggestion.range_high
            match.price_notes = suggestion.notes

        return match

    def find_matches(
        self,
        query: QuoteRecord,
        candidates: Iterable[QuoteRecord],
        weights: WeightVector,
        min_score: Optional[float] = None,
        max_matches: Optional[int] = None,
        feedback_data: Optional[Dict[int, FeedbackData]] = None,
        as_of: Optional[datetime] = None
    ) -> List[ScoredQuoteMatch]:
        """Find, rank and truncate matches for a query quote.

        Args:
            query: Query quote
            candidates: Historical candidate pool
            weights: Weight vector to score with
            min_score: Minimum final score (defaults to the result policy)
            max_matches: Maximum results (defaults to the result policy)
            feedback_data: Optional quote_id -> FeedbackData for boosts
            as_of: Reference time for recency (defaults to the query's own date)

        Returns:
            List of ScoredQuoteMatch sorted by similarity_score (highest first)
        """
        normalized_query = self.normalize(query)
        threshold = self.effective_min_score(normalized_query, min_score)
        limit = self.result_policy.max_matches if max_matches is None else max_matches
        reference = as_of or query.reference_time
        feedback_data = feedback_data or {}

        scored: List[ScoredQuoteMatch] = []
        seen = set()
        for candidate in candidates:
            if candidate.quote_id == query.quote_id or candidate.quote_id in seen:
                continue
            seen.add(candidate.quote_id)

            match = self.score_candidate(
                normalized_query,
                self.normalize(candidate),
                weights,
                feedback=feedback_data.get(candidate.quote_id),
                as_of=reference,
            )
            if match.similarity_score >= threshold:
                scored.append(match)

        scored.sort(key=rank_key)
        result = scored[:limit]

        logger.debug(
            f"Quote {query.quote_id}: {len(seen)} candidates, {len(scored)} above "
            f"{threshold:.2f}, returning {len(result)}"
        )
        return result
