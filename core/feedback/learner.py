#!/usr/bin/env python3
"""
Feedback Learner - recalibrates the weight vector from human ratings.

For every criterion with enough rated samples the learner compares the
criterion's mean score on thumbs-up matches against thumbs-down matches
and measures the score/rating correlation. Criteria that score high on
thumbs-down matches lose weight, criteria that score high on thumbs-up
matches gain weight. Each run moves a weight by at most `step` relative
to its current value.
"""

import logging
from typing import Callable, List, Optional, Sequence

import numpy as np
from sqlalchemy.exc import OperationalError, ProgrammingError

from core.config_loader import LearningConfig
from core.feedback.models import LearningReport, PricingOutcome, RatedMatch, WeightAdjustment
from core.feedback.weight_store import WeightStore
from core.normalizer import normalize_quote
from core.scorer.weights import CRITERIA, WeightVector

logger = logging.getLogger(__name__)


def compute_adjustments(
    rated: Sequence[RatedMatch],
    weights: WeightVector,
    config: LearningConfig
) -> List[WeightAdjustment]:
    """Pure weight adjustment step. Returns only criteria whose weight changes."""
    adjustments: List[WeightAdjustment] = []

    for criterion in CRITERIA:
        old = weights.get(criterion)
        if old <= 0:
            continue

        samples = [(m.criteria[criterion], m.rating) for m in rated
                   if criterion in m.criteria and m.rating != 0]
        if len(samples) < config.min_samples:
            continue

        positive = [s for s, r in samples if r > 0]
        negative = [s for s, r in samples if r < 0]
        if not positive or not negative:
            continue

        pos_mean = float(np.mean(positive))
        neg_mean = float(np.mean(negative))
        diff = pos_mean - neg_mean
        if abs(diff) <= config.min_signal:
            continue

        scores = np.array([s for s, _ in samples], dtype=float)
        ratings = np.array([1.0 if r > 0 else -1.0 for _, r in samples])
        if scores.std() == 0 or ratings.std() == 0:
            continue
        correlation = float(np.corrcoef(scores, ratings)[0, 1])
        if not np.isfinite(correlation):
            continue

        magnitude = config.step * min(1.0, abs(correlation))
        if diff > 0:
            new = max(old, min(config.max_weight, old * (1.0 + magnitude)))
        else:
            new = min(old, max(config.min_weight, old * (1.0 - magnitude)))

        if new == old:
            continue

        adjustments.append(WeightAdjustment(
            criterion=criterion,
            old_weight=old,
            new_weight=round(new, 6),
            correlation=round(correlation, 4),
            positive_mean=round(pos_mean, 4),
            negative_mean=round(neg_mean, 4),
            samples=len(samples),
        ))

    return adjustments


class FeedbackLearner:
    """Applies feedback-driven weight adjustments through a WeightStore."""

    def __init__(self, weight_store: WeightStore, config: Optional[LearningConfig] = None):
        self.weight_store = weight_store
        self.config = config or LearningConfig()

    def learn_from_feedback(self) -> LearningReport:
        if not self.config.enabled:
            return LearningReport(ran=False, reason="learning disabled")

        report = LearningReport(ran=True)

        def _mutate(current: WeightVector, repo) -> Optional[WeightVector]:
            rated = repo.feedback.get_rated_match_breakdowns()
            report.samples = len(rated)
            report.previous_version = current.version

            adjustments = compute_adjustments(rated, current, self.config)
            report.adjustments = adjustments
            report.adjusted_count = len(adjustments)
            if not adjustments:
                return None
            return current.evolve({a.criterion: a.new_weight for a in adjustments}, source='learned')

        logger.info("=" * 60)
        logger.info("LEARNING FROM FEEDBACK")
        logger.info("=" * 60)

        updated = self.weight_store.update(_mutate)

        if updated is None:
            report.reason = (
                "no rated matches" if report.samples == 0
                else "no criterion met the sample and signal thresholds"
            )
            logger.info(f"Learning made no changes ({report.reason}; {report.samples} rated matches)")
            return report

        report.new_version = updated.version
        report.reason = "weights updated"
        for adj in report.adjustments:
            logger.info(
                f"  {adj.criterion}: {adj.old_weight:.4f} -> {adj.new_weight:.4f} "
                f"(corr={adj.correlation:+.2f}, +{adj.positive_mean:.2f}/-{adj.negative_mean:.2f}, n={adj.samples})"
            )
        logger.info(
            f"Adjusted {report.adjusted_count} weights (total change {report.total_change:.4f}), "
            f"now v{updated.version}"
        )
        return report


def record_pricing_outcome(
    uow_factory: Callable,
    quote_id: int,
    outcome: PricingOutcome
) -> Optional[int]:
    """Persist ground truth for a quote.

    Returns the pricing_history row id, or None when the outcome could not
    be stored (missing table, unknown quote). Never raises for storage
    problems.
    """
    try:
        with uow_factory() as repo:
            quote = repo.quotes.get_quote_for_matching(quote_id)
            if quote is None:
                logger.warning(f"Cannot record pricing outcome: quote {quote_id} not found")
                return None

            normalized = normalize_quote(quote)
            row_id = repo.pricing.upsert_pricing_outcome(
                quote_id=quote_id,
                outcome=outcome,
                origin_region=normalized.origin_region.value,
                destination_region=normalized.destination_region.value,
                service_type=normalized.service.value,
                cargo_category=normalized.cargo.value,
                weight_range=normalized.weight_range,
            )
        logger.info(f"Recorded pricing outcome for quote {quote_id}")
        return row_id
    except (OperationalError, ProgrammingError) as e:
        logger.warning(f"pricing_history unavailable, outcome for quote {quote_id} not recorded: {e}")
        return None
