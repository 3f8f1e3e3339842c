"""
Tests for the batch matching orchestrator.

Tests verify:
- Argument validation happens before any database access
- Unknown quotes and unexpected per-quote failures become errors and the batch continues
- Matches are persisted once per (query, candidate) pair across rematches
- The pricing oracle is optional and a failure falls back to the baseline
- Cancellation, the learning schedule and the matching kill switch
"""
import threading
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.app_context import AppContext
from core.config_loader import AppConfig, LlmConfig, MatchingConfig
from core.exceptions import InvalidInputError, OracleUnavailableError, PersistenceError
from core.feedback.learner import FeedbackLearner
from core.feedback.schedule import AlwaysLearn, EveryNthBatch
from core.feedback.weight_store import WeightStore
from core.llm.oracle_adapter import STATUS_DISABLED, STATUS_OK, STATUS_UNAVAILABLE, PricingOracleAdapter
from core.scorer.persistence import AI_ALGORITHM_VERSION, ALGORITHM_VERSION, save_matches_to_db
from core.scorer.service import SimilarityScorer
from database.models import AIPricingRecommendation, Base, QuoteMatch
from database.uow import uow_factory
from main import build_parser
from pipeline.runner import BatchOrchestrator, validate_batch_args
from tests import REFERENCE_TIME, quote_row

VALID_PAYLOAD = {
    "recommended_price": 3300,
    "floor_price": 3000,
    "ceiling_price": 3500,
    "confidence": "MEDIUM",
    "reasoning": "Same lane, recent won job.",
}


def _build(uow, oracle=None, schedule=None, learner=None, max_workers=1, matching_config=None):
    config = matching_config or MatchingConfig()
    store = WeightStore(uow)
    return BatchOrchestrator(
        scorer=SimilarityScorer(config.scorer, config.result_policy, config.pricing),
        weight_store=store,
        oracle_adapter=PricingOracleAdapter(oracle),
        learner=learner or FeedbackLearner(store),
        schedule=schedule,
        matching_config=config,
        uow_factory=uow,
        max_workers=max_workers,
        clock=lambda: REFERENCE_TIME,
    )


def _seed(uow):
    """Query quote plus a same-lane won job and an unrelated ocean move."""
    with uow() as repo:
        query = repo.quotes.add_quote(quote_row())
        ground = repo.quotes.add_quote(quote_row(
            final_agreed_price=3200, job_won=True, quote_date=REFERENCE_TIME - timedelta(days=30),
        ))
        ocean = repo.quotes.add_quote(quote_row(
            origin_city='Shanghai', origin_state_province=None, origin_country='China',
            destination_city='Los Angeles', destination_state_province='CA', destination_country='USA',
            service_type='Ocean FCL', cargo_description='Steel coils', cargo_weight=20000,
            weight_unit='kg', number_of_pieces=None, final_agreed_price=9800, job_won=True,
            quote_date=REFERENCE_TIME - timedelta(days=10),
        ))
    return query.quote_id, ground.quote_id, ocean.quote_id


class TestValidateBatchArgs:

    def test_deduplicates_in_order(self):
        assert validate_batch_args([3, 1, 3, 2, 1]) == [3, 1, 2]

    @pytest.mark.parametrize("quote_ids", [[1, 0], [-4], [True], ["7"], [1.5], "12", 5])
    def test_rejects_bad_ids(self, quote_ids):
        with pytest.raises(InvalidInputError):
            validate_batch_args(quote_ids)

    @pytest.mark.parametrize("kwargs", [
        {'min_score': 1.2}, {'min_score': -0.1}, {'min_score': True},
        {'max_matches': 0}, {'max_matches': 2.0}, {'max_matches': False},
    ])
    def test_rejects_bad_overrides(self, kwargs):
        with pytest.raises(InvalidInputError):
            validate_batch_args([1], **kwargs)

    def test_validation_precedes_io(self):
        uow = MagicMock()
        orchestrator = BatchOrchestrator(
            scorer=MagicMock(), weight_store=MagicMock(), uow_factory=uow,
        )

        with pytest.raises(InvalidInputError):
            orchestrator.process_enhanced_matches([1, -1])

        uow.assert_not_called()
        orchestrator.weight_store.current.assert_not_called()


@pytest.mark.db
class TestBatchOrchestrator:

    def test_match_and_price(self, uow, db_session):
        query_id, ground_id, ocean_id = _seed(uow)

        result = _build(uow).process_enhanced_matches([query_id], use_ai=False)

        assert result.success
        assert result.processed == 1
        detail = result.match_details[0]
        assert detail.match_count == 1
        assert detail.best_score > 0.8
        assert detail.suggested_price == 3200
        assert detail.price_range == (2880, 3520)
        assert detail.oracle_status == STATUS_DISABLED
        assert detail.weight_version == 0

        rows = db_session.query(QuoteMatch).filter_by(source_quote_id=query_id).all()
        assert [r.matched_quote_id for r in rows] == [ground_id]
        assert rows[0].match_algorithm_version == ALGORITHM_VERSION
        assert rows[0].ai_pricing_details is None
        assert 'service_type' in rows[0].match_criteria['criteria']

    def test_rematch_is_idempotent(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        orchestrator = _build(uow)

        first = orchestrator.process_enhanced_matches([query_id], use_ai=False)
        second = orchestrator.rematch(query_id, use_ai=False)

        assert first.match_details[0].match_ids == second.match_details[0].match_ids
        assert db_session.query(QuoteMatch).filter_by(source_quote_id=query_id).count() == 1

    def test_unknown_quote_is_reported(self, uow):
        query_id, _, _ = _seed(uow)

        result = _build(uow).process_enhanced_matches([999, query_id], use_ai=False)

        assert result.processed == 1
        assert result.errors == [{"quote_id": 999, "error": "Quote 999 not found"}]
        assert not result.success

    def test_no_matches_still_reported(self, uow):
        with uow() as repo:
            lonely = repo.quotes.add_quote(quote_row()).quote_id

        result = _build(uow).process_enhanced_matches([lonely], use_ai=False)

        assert result.success
        detail = result.match_details[0]
        assert detail.match_count == 0
        assert detail.best_score is None
        assert detail.suggested_price is None
        assert detail.match_ids == []

    def test_oracle_timeout_falls_back(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        oracle = MagicMock()
        oracle.model_name = "gpt-4o-mini"
        oracle.request_pricing.side_effect = OracleUnavailableError("timed out")

        result = _build(uow, oracle=oracle).process_enhanced_matches([query_id])

        detail = result.match_details[0]
        assert result.success
        assert detail.oracle_status == STATUS_UNAVAILABLE
        assert detail.suggested_price == 3200
        assert detail.ai_pricing is None
        row = db_session.query(QuoteMatch).filter_by(source_quote_id=query_id).one()
        assert row.match_algorithm_version == ALGORITHM_VERSION
        assert db_session.query(AIPricingRecommendation).count() == 0

    def test_oracle_answer_is_blended_and_stored(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        oracle = MagicMock()
        oracle.model_name = "gpt-4o-mini"
        oracle.request_pricing.return_value = VALID_PAYLOAD

        result = _build(uow, oracle=oracle).process_enhanced_matches([query_id])

        detail = result.match_details[0]
        assert detail.oracle_status == STATUS_OK
        assert 3200 < detail.suggested_price < 3300
        assert detail.ai_pricing['recommended_price'] == 3300

        row = db_session.query(QuoteMatch).filter_by(source_quote_id=query_id).one()
        assert row.match_algorithm_version == AI_ALGORITHM_VERSION
        assert row.ai_pricing_details['confidence'] == 'MEDIUM'
        audit = db_session.query(AIPricingRecommendation).one()
        assert audit.quote_id == query_id
        assert audit.model_name == "gpt-4o-mini"

    def test_use_ai_false_skips_oracle(self, uow):
        query_id, _, _ = _seed(uow)
        oracle = MagicMock()

        _build(uow, oracle=oracle).process_enhanced_matches([query_id], use_ai=False)

        oracle.request_pricing.assert_not_called()

    def test_stop_event_cancels(self, uow):
        query_id, _, _ = _seed(uow)
        stop = threading.Event()
        stop.set()

        result = _build(uow).process_enhanced_matches([query_id], use_ai=False, stop_event=stop)

        assert result.cancelled
        assert result.processed == 0
        assert not result.success

    def test_learning_schedule(self, uow):
        query_id, _, _ = _seed(uow)
        schedule = EveryNthBatch(2)
        orchestrator = _build(uow, schedule=schedule)

        first = orchestrator.process_enhanced_matches([query_id], use_ai=False)
        orchestrator.rematch(query_id, use_ai=False)
        second = orchestrator.process_enhanced_matches([query_id], use_ai=False)

        assert first.learning_report is None
        assert schedule.batches_seen == 2
        assert second.learning_report is not None
        assert second.learning_report.ran
        assert second.learning_report.reason == "no rated matches"

    def test_learner_failure_does_not_fail_batch(self, uow):
        query_id, _, _ = _seed(uow)
        learner = MagicMock()
        learner.learn_from_feedback.side_effect = RuntimeError("boom")

        result = _build(uow, schedule=AlwaysLearn(), learner=learner).process_enhanced_matches(
            [query_id], use_ai=False
        )

        assert result.success
        assert result.learning_report is None

    def test_unexpected_oracle_error_is_isolated(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        with uow() as repo:
            second_id = repo.quotes.add_quote(quote_row()).quote_id
        oracle = MagicMock()
        oracle.model_name = "gpt-4o-mini"
        oracle.request_pricing.side_effect = [RuntimeError("socket closed"), VALID_PAYLOAD]

        result = _build(uow, oracle=oracle).process_enhanced_matches([query_id, second_id])

        assert result.success
        assert result.processed == 2
        first, second = result.match_details
        assert first.oracle_status == STATUS_UNAVAILABLE
        assert first.suggested_price == 3200
        assert second.oracle_status == STATUS_OK
        assert db_session.query(QuoteMatch).count() == 2

    def test_unexpected_scoring_error_skips_only_that_quote(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        with uow() as repo:
            second_id = repo.quotes.add_quote(quote_row()).quote_id
        orchestrator = _build(uow)
        real_find_matches = orchestrator.scorer.find_matches

        def flaky(query, *args, **kwargs):
            if query.quote_id == query_id:
                raise ValueError("corrupt criteria")
            return real_find_matches(query, *args, **kwargs)

        with patch.object(orchestrator.scorer, "find_matches", side_effect=flaky):
            result = orchestrator.process_enhanced_matches([query_id, second_id], use_ai=False)

        assert not result.success
        assert result.errors == [{"quote_id": query_id, "error": "ValueError: corrupt criteria"}]
        assert [d.quote_id for d in result.match_details] == [second_id]
        assert result.match_details[0].match_count == 1
        assert db_session.query(QuoteMatch).filter_by(source_quote_id=query_id).count() == 0

    def test_persistence_error_is_reported(self, uow, db_session):
        query_id, _, _ = _seed(uow)
        with uow() as repo:
            second_id = repo.quotes.add_quote(quote_row()).quote_id

        def failing_save(source_quote_id, *args, **kwargs):
            if source_quote_id == query_id:
                raise PersistenceError(f"Failed to save matches for quote {query_id}", {"quote_id": query_id})
            return save_matches_to_db(source_quote_id, *args, **kwargs)

        with patch("pipeline.runner.save_matches_to_db", side_effect=failing_save):
            result = _build(uow).process_enhanced_matches([query_id, second_id], use_ai=False)

        assert result.errors == [{"quote_id": query_id, "error": f"Failed to save matches for quote {query_id}"}]
        assert result.processed == 1
        assert db_session.query(QuoteMatch).filter_by(source_quote_id=second_id).count() == 1

    def test_thread_pool(self, tmp_path):
        # File database so each worker thread gets its own connection
        engine = create_engine(f"sqlite:///{tmp_path / 'batch.db'}", connect_args={"check_same_thread": False})
        Base.metadata.create_all(engine)
        uow = uow_factory(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))
        query_id, ground_id, ocean_id = _seed(uow)

        result = _build(uow, max_workers=2).process_enhanced_matches(
            [query_id, ground_id, ocean_id], use_ai=False
        )
        engine.dispose()

        assert result.success
        assert [d.quote_id for d in result.match_details] == [query_id, ground_id, ocean_id]
        assert result.match_details[0].match_count == 1

    def test_matching_disabled(self, uow, db_session):
        query_id, _, _ = _seed(uow)

        result = _build(uow, matching_config=MatchingConfig(enabled=False)).process_enhanced_matches(
            [query_id], use_ai=False
        )

        assert result.processed == 0
        assert result.match_details == []
        assert db_session.query(QuoteMatch).count() == 0


class TestWiring:

    def test_app_context_without_oracle(self, uow):
        config = AppConfig(llm=LlmConfig(enabled=False))
        ctx = AppContext.build(config, uow_factory=uow)

        assert not ctx.oracle_adapter.enabled
        assert ctx.orchestrator.uow_factory is uow
        assert ctx.orchestrator.weight_store is ctx.weight_store

    def test_app_context_with_endpoint(self, uow):
        config = AppConfig(llm=LlmConfig(base_url="http://localhost:11434/v1"))
        ctx = AppContext.build(config, uow_factory=uow)

        assert ctx.oracle_adapter.enabled
        assert ctx.oracle_adapter.oracle.model_name == "gpt-4o-mini"

    def test_cli_parser(self):
        args = build_parser().parse_args(['match', '4', '5', '--no-ai', '--min-score', '0.6'])
        assert args.quote_ids == [4, 5]
        assert args.no_ai
        assert args.min_score == 0.6

        outcome = build_parser().parse_args(['record-outcome', '4', '--accepted', '3100', '--won', 'yes'])
        assert outcome.won is True
        assert outcome.accepted == 3100
