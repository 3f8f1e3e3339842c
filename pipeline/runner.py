"""Batch matching orchestrator.

Runs the match-and-price flow for a batch of quote ids: load the quote
and its candidate pool, score, estimate a price, optionally consult the
pricing oracle, and persist the match set. Used by main.py and by any
caller that needs quote matching as a service.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from core.config_loader import MatchingConfig
from core.exceptions import InvalidInputError, PersistenceError, QuoteNotFoundError
from core.feedback.learner import FeedbackLearner
from core.feedback.models import LearningReport
from core.feedback.schedule import LearningSchedule, NeverLearn
from core.feedback.weight_store import WeightStore
from core.llm.oracle_adapter import OracleOutcome, PricingOracleAdapter, STATUS_DISABLED
from core.pricing.estimator import compute_lane_stats, lane_key, suggest_price_with_feedback
from core.scorer.persistence import AI_ALGORITHM_VERSION, ALGORITHM_VERSION, save_matches_to_db
from core.scorer.service import SimilarityScorer
from core.scorer.weights import WeightVector
from database.uow import quote_uow

logger = logging.getLogger(__name__)


@dataclass
class MatchDetail:
    """Per-quote summary of one matching run."""
    quote_id: int
    match_count: int = 0
    best_score: Optional[float] = None
    suggested_price: Optional[float] = None
    price_range: Optional[Tuple[float, float]] = None
    price_confidence: Optional[float] = None
    ai_pricing: Optional[Dict[str, Any]] = None
    oracle_status: str = STATUS_DISABLED
    weight_version: int = 0
    match_ids: List[int] = field(default_factory=list)


@dataclass
class BatchResult:
    """Result of a matching batch."""
    processed: int = 0
    matches_created: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    match_details: List[MatchDetail] = field(default_factory=list)
    cancelled: bool = False
    learning_report: Optional[LearningReport] = None
    execution_time: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors and not self.cancelled


def validate_batch_args(
    quote_ids: Sequence[Any],
    min_score: Optional[float] = None,
    max_matches: Optional[int] = None
) -> List[int]:
    """Check batch arguments and return the ids de-duplicated in input order.

    Raises:
        InvalidInputError: on any malformed argument
    """
    if isinstance(quote_ids, (str, bytes)) or not hasattr(quote_ids, '__iter__'):
        raise InvalidInputError(f"quote_ids must be a sequence of ids, got {quote_ids!r}")

    ids: List[int] = []
    for qid in quote_ids:
        if isinstance(qid, bool) or not isinstance(qid, int) or qid <= 0:
            raise InvalidInputError(f"Quote ids must be positive integers, got {qid!r}", {"quote_id": qid})
        if qid not in ids:
            ids.append(qid)

    if min_score is not None:
        if isinstance(min_score, bool) or not isinstance(min_score, (int, float)) or not 0.0 <= min_score <= 1.0:
            raise InvalidInputError(f"min_score must be within [0, 1], got {min_score!r}")

    if max_matches is not None:
        if isinstance(max_matches, bool) or not isinstance(max_matches, int) or max_matches < 1:
            raise InvalidInputError(f"max_matches must be a positive integer, got {max_matches!r}")

    return ids


class BatchOrchestrator:
    """
    Drives matching batches.

    Holds no database session; every quote opens its own unit of work
    through uow_factory. The weight vector is snapshotted once per batch
    so every quote in the batch is scored with the same version.
    """

    def __init__(
        self,
        scorer: SimilarityScorer,
        weight_store: WeightStore,
        oracle_adapter: Optional[PricingOracleAdapter] = None,
        learner: Optional[FeedbackLearner] = None,
        schedule: Optional[LearningSchedule] = None,
        matching_config: Optional[MatchingConfig] = None,
        uow_factory: Callable = quote_uow,
        max_workers: int = 1,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.scorer = scorer
        self.weight_store = weight_store
        self.oracle_adapter = oracle_adapter or PricingOracleAdapter()
        self.learner = learner
        self.schedule = schedule or NeverLearn()
        self.matching_config = matching_config or MatchingConfig()
        self.uow_factory = uow_factory
        self.max_workers = max(1, int(max_workers))
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def process_enhanced_matches(
        self,
        quote_ids: Sequence[int],
        use_ai: bool = True,
        min_score: Optional[float] = None,
        max_matches: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
        status_callback: Optional[Callable[[str], None]] = None
    ) -> BatchResult:
        """Match and price a batch of quotes.

        Args:
            quote_ids: Positive integer quote ids
            use_ai: Consult the pricing oracle when one is configured
            min_score: Override of the result policy's minimum score
            max_matches: Override of the result policy's match limit
            stop_event: Checked between quotes; when set the batch stops
            status_callback: Receives coarse progress strings

        Returns:
            BatchResult with one MatchDetail per processed quote
        """
        ids = validate_batch_args(quote_ids, min_score, max_matches)
        result = self._run_batch(ids, use_ai, min_score, max_matches, stop_event, status_callback)

        if self.schedule.should_run():
            result.learning_report = self._run_learner()

        return result

    def rematch(
        self,
        quote_id: int,
        use_ai: bool = True,
        min_score: Optional[float] = None,
        max_matches: Optional[int] = None
    ) -> BatchResult:
        """Recompute matches for a single quote. Does not advance the learning schedule."""
        ids = validate_batch_args([quote_id], min_score, max_matches)
        return self._run_batch(ids, use_ai, min_score, max_matches, None, None)

    def _run_batch(
        self,
        ids: List[int],
        use_ai: bool,
        min_score: Optional[float],
        max_matches: Optional[int],
        stop_event: Optional[threading.Event],
        status_callback: Optional[Callable[[str], None]]
    ) -> BatchResult:
        if stop_event is None:
            stop_event = threading.Event()

        batch_start = time.time()
        result = BatchResult()

        logger.info("=" * 60)
        logger.info(f"STARTING MATCHING BATCH ({len(ids)} quotes)")
        logger.info("=" * 60)

        if not self.matching_config.enabled:
            logger.info("=== MATCHING BATCH: Skipped (disabled in config) ===")
            result.execution_time = time.time() - batch_start
            return result

        weights = self.weight_store.current()
        batch_time = self.clock()
        logger.info(f"Scoring with weight vector v{weights.version} ({weights.source})")

        def _task(quote_id: int) -> Optional[MatchDetail]:
            if stop_event.is_set():
                return None
            if status_callback:
                status_callback(f"matching:{quote_id}")
            return self._process_quote(quote_id, weights, use_ai, min_score, max_matches, batch_time, result)

        if self.max_workers > 1 and len(ids) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(_task, ids))
        else:
            outcomes = []
            for quote_id in ids:
                if stop_event.is_set():
                    break
                outcomes.append(_task(quote_id))

        for quote_id, detail in zip(ids, outcomes):
            if detail is None:
                continue
            result.processed += 1
            result.matches_created += detail.match_count
            result.match_details.append(detail)

        if stop_event.is_set():
            result.cancelled = True
            logger.warning(f"Batch interrupted after {result.processed} of {len(ids)} quotes")

        result.execution_time = time.time() - batch_start
        logger.info("=" * 60)
        logger.info(
            f"MATCHING BATCH COMPLETED in {result.execution_time:.2f}s: "
            f"{result.processed} processed, {result.matches_created} matches, {len(result.errors)} errors"
        )
        logger.info("=" * 60)
        return result

    def _process_quote(
        self,
        quote_id: int,
        weights: WeightVector,
        use_ai: bool,
        min_score: Optional[float],
        max_matches: Optional[int],
        batch_time: datetime,
        result: BatchResult
    ) -> Optional[MatchDetail]:
        """Run one quote; any failure becomes an entry in result.errors and the batch continues."""
        step_start = time.time()
        try:
            # Oracle calls are slow, so reads and writes use separate units of work
            with self.uow_factory() as repo:
                query = repo.quotes.get_quote_for_matching(quote_id)
                if query is None:
                    raise QuoteNotFoundError(quote_id)
                pool = repo.quotes.get_historical_quotes_for_matching(
                    exclude_ids=[quote_id],
                    limit=self.matching_config.historical_pool_limit,
                    only_with_price=True,
                )
                feedback_data = repo.feedback.get_feedback_for_historical_quotes(
                    [q.quote_id for q in pool]
                )

            as_of = query.reference_time or batch_time
            matches = self.scorer.find_matches(
                query,
                pool,
                weights,
                min_score=min_score,
                max_matches=max_matches,
                feedback_data=feedback_data,
                as_of=as_of,
            )

            normalized_query = self.scorer.normalize(query)
            lane_stats = compute_lane_stats(
                (self.scorer.normalize(q) for q in pool),
                lane_key(normalized_query),
            )
            baseline = suggest_price_with_feedback(matches, lane_stats, self.matching_config.pricing)

            outcome = self._consult_oracle(use_ai, normalized_query, matches, baseline, feedback_data)
            ai_json = outcome.details.to_json() if outcome.available else None

            with self.uow_factory() as repo:
                match_ids = save_matches_to_db(
                    quote_id,
                    matches,
                    repo,
                    algorithm_version=AI_ALGORITHM_VERSION if outcome.available else ALGORITHM_VERSION,
                    ai_details=ai_json,
                )
                if outcome.available:
                    repo.pricing.save_ai_pricing_recommendation(
                        quote_id=quote_id,
                        details=outcome.details,
                        baseline_price=outcome.baseline_price,
                        final_price=outcome.final_price,
                        oracle_weight=outcome.oracle_weight,
                        model_name=outcome.model_name,
                    )

        except QuoteNotFoundError as e:
            logger.warning(f"Quote {quote_id}: {e.message}")
            result.errors.append({"quote_id": quote_id, "error": e.message})
            return None
        except PersistenceError as e:
            logger.error(f"Quote {quote_id}: {e.message}")
            result.errors.append({"quote_id": quote_id, "error": e.message})
            return None
        except SQLAlchemyError as e:
            logger.exception(f"Quote {quote_id}: storage failure, skipping")
            result.errors.append({"quote_id": quote_id, "error": f"{type(e).__name__}: {e}"})
            return None
        except Exception as e:
            # The unit of work has already rolled back; the rest of the batch continues
            logger.exception(f"Quote {quote_id}: unexpected failure, skipping")
            result.errors.append({"quote_id": quote_id, "error": f"{type(e).__name__}: {e}"})
            return None

        detail = MatchDetail(
            quote_id=quote_id,
            match_count=len(matches),
            best_score=round(matches[0].similarity_score, 4) if matches else None,
            suggested_price=outcome.final_price,
            price_range=(
                (outcome.range_low, outcome.range_high)
                if outcome.range_low is not None and outcome.range_high is not None else None
            ),
            price_confidence=outcome.final_confidence,
            ai_pricing=ai_json,
            oracle_status=outcome.status,
            weight_version=weights.version,
            match_ids=match_ids,
        )

        elapsed = time.time() - step_start
        if matches:
            price = f"${detail.suggested_price:,.2f}" if detail.suggested_price is not None else "n/a"
            logger.info(
                f"Quote {quote_id}: {detail.match_count} matches (best {detail.best_score:.3f}), "
                f"price {price} [{outcome.status}] in {elapsed:.2f}s"
            )
        else:
            logger.info(f"Quote {quote_id}: no matches above threshold ({elapsed:.2f}s)")
        return detail

    def _consult_oracle(self, use_ai, normalized_query, matches, baseline, feedback_data) -> OracleOutcome:
        if not use_ai or not self.oracle_adapter.enabled:
            return self.oracle_adapter.baseline_only(baseline)
        if not matches and not baseline.has_price:
            return self.oracle_adapter.baseline_only(baseline)
        return self.oracle_adapter.recommend(normalized_query, matches, baseline, feedback_data)

    def _run_learner(self) -> Optional[LearningReport]:
        if self.learner is None:
            return None
        try:
            return self.learner.learn_from_feedback()
        except Exception:
            logger.exception("Feedback learning failed; batch results are unaffected")
            return None
