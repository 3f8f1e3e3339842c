"""
Repository tests against in-memory SQLite.

Tests verify:
- Candidate pool ordering, exclusion and price filtering
- Match upsert, supersede and delete
- Feedback validation, per-user upsert and statistics
- Weight version history and pricing outcome upsert
"""
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import InvalidInputError
from core.feedback.models import PricingOutcome
from core.llm.schema_models import AIPricingDetails
from core.scorer.weights import WeightVector
from database.init_db import seed_default_weights
from database.models import AIPricingRecommendation, QuoteMatch
from tests import REFERENCE_TIME, quote_row

pytestmark = pytest.mark.db


def _add_quotes(uow, *rows):
    with uow() as repo:
        return [repo.quotes.add_quote(row).quote_id for row in rows]


def _match(source_id, matched_id, score=0.8, **extra):
    data = {
        'source_quote_id': source_id,
        'matched_quote_id': matched_id,
        'similarity_score': score,
        'match_criteria': {'criteria': {'service_type': 1.0, 'recency': 0.5}},
        'suggested_price': 3200.0,
        'weight_version': 0,
    }
    data.update(extra)
    return data


class TestShippingQuoteRepository:

    def test_get_quote_for_matching(self, uow):
        (quote_id,) = _add_quotes(uow, quote_row(final_agreed_price=3200, job_won=True))

        with uow() as repo:
            quote = repo.quotes.get_quote_for_matching(quote_id)
            missing = repo.quotes.get_quote_for_matching(quote_id + 100)

        assert quote.quote_id == quote_id
        assert quote.realized_price == 3200
        assert quote.job_won is True
        assert quote.quote_date.tzinfo is not None
        assert missing is None

    def test_historical_pool(self, uow):
        ids = _add_quotes(
            uow,
            quote_row(final_agreed_price=3000, quote_date=REFERENCE_TIME - timedelta(days=30)),
            quote_row(initial_quote_amount=2800, quote_date=REFERENCE_TIME - timedelta(days=5)),
            quote_row(quote_date=REFERENCE_TIME),  # unpriced
            quote_row(final_agreed_price=3500, quote_date=REFERENCE_TIME - timedelta(days=90)),
        )

        with uow() as repo:
            pool = repo.quotes.get_historical_quotes_for_matching(exclude_ids=[ids[0]])
            everything = repo.quotes.get_historical_quotes_for_matching(only_with_price=False)
            limited = repo.quotes.get_historical_quotes_for_matching(limit=1)

        assert [q.quote_id for q in pool] == [ids[1], ids[3]]
        assert len(everything) == 4
        assert [q.quote_id for q in limited] == [ids[1]]

    def test_add_quote_rejects_unknown_fields(self, uow):
        with pytest.raises(InvalidInputError):
            with uow() as repo:
                repo.quotes.add_quote(quote_row(colour='red'))


class TestMatchRepository:

    def test_upsert_refreshes_existing_pair(self, uow):
        source, matched = _add_quotes(uow, quote_row(), quote_row(final_agreed_price=3000))

        with uow() as repo:
            first = repo.matches.create_quote_match(_match(source, matched, 0.7)).match_id
        with uow() as repo:
            second = repo.matches.create_quote_match(_match(source, matched, 0.9)).match_id
            rows = repo.matches.get_matches_for_quote(source)

        assert first == second
        assert len(rows) == 1
        assert float(rows[0].similarity_score) == pytest.approx(0.9)
        assert rows[0].status == 'active'

    def test_supersede_and_reactivate(self, uow):
        source, a, b = _add_quotes(uow, quote_row(), quote_row(), quote_row())

        with uow() as repo:
            repo.matches.create_quote_matches_bulk([_match(source, a, 0.9), _match(source, b, 0.6)])
        with uow() as repo:
            superseded = repo.matches.supersede_stale_matches(source, keep_ids=[a])
            active = [m.matched_quote_id for m in repo.matches.get_matches_for_quote(source)]
            stale = [m.matched_quote_id for m in repo.matches.get_matches_for_quote(source, status='superseded')]

        assert superseded == 1
        assert active == [a]
        assert stale == [b]

        with uow() as repo:
            repo.matches.create_quote_match(_match(source, b, 0.65))
            assert len(repo.matches.get_matches_for_quote(source)) == 2

    def test_get_matches_filters_and_orders(self, uow):
        source, a, b, c = _add_quotes(uow, quote_row(), quote_row(), quote_row(), quote_row())

        with uow() as repo:
            repo.matches.create_quote_matches_bulk([
                _match(source, a, 0.5), _match(source, b, 0.95), _match(source, c, 0.75),
            ])
        with uow() as repo:
            ordered = [m.matched_quote_id for m in repo.matches.get_matches_for_quote(source)]
            filtered = repo.matches.get_matches_for_quote(source, min_score=0.7, limit=1)

        assert ordered == [b, c, a]
        assert [m.matched_quote_id for m in filtered] == [b]

    def test_delete_match_cascades_feedback(self, uow):
        source, matched = _add_quotes(uow, quote_row(), quote_row())
        with uow() as repo:
            match_id = repo.matches.create_quote_match(_match(source, matched)).match_id
            repo.feedback.submit_match_feedback({'match_id': match_id, 'rating': 1})

        with uow() as repo:
            assert repo.matches.delete_match(match_id) is True
            assert repo.matches.delete_match(match_id) is False

        with uow() as repo:
            assert repo.feedback.get_feedback_by_reason() == {}

    def test_score_check_constraint(self, uow):
        source, matched = _add_quotes(uow, quote_row(), quote_row())
        with pytest.raises(IntegrityError):
            with uow() as repo:
                repo.matches.create_quote_match(_match(source, matched, 1.5))


class TestFeedbackRepository:

    @pytest.fixture
    def match_ids(self, uow):
        source, a, b = _add_quotes(
            uow,
            quote_row(service_type='Ground'),
            quote_row(final_agreed_price=3000),
            quote_row(final_agreed_price=3400),
        )
        with uow() as repo:
            ids = repo.matches.create_quote_matches_bulk([
                _match(source, a, 0.9, suggested_price=3000.0),
                _match(source, b, 0.7, suggested_price=3400.0),
            ])
        return source, a, b, ids

    @pytest.mark.parametrize("data", [
        {'rating': 0},
        {'rating': 2},
        {'rating': True},
        {'rating': 1, 'feedback_reason': 'because'},
        {'rating': 1, 'actual_price_used': 0},
    ])
    def test_validation(self, uow, match_ids, data):
        payload = dict(data, match_id=match_ids[3][0])
        with pytest.raises(InvalidInputError):
            with uow() as repo:
                repo.feedback.submit_match_feedback(payload)

    def test_unknown_match(self, uow):
        with pytest.raises(InvalidInputError):
            with uow() as repo:
                repo.feedback.submit_match_feedback({'match_id': 12345, 'rating': 1})

    def test_same_user_updates_rating(self, uow, match_ids):
        match_id = match_ids[3][0]
        with uow() as repo:
            first = repo.feedback.submit_match_feedback(
                {'match_id': match_id, 'rating': 1, 'user_id': 'ops'}
            ).feedback_id
        with uow() as repo:
            second = repo.feedback.submit_match_feedback(
                {'match_id': match_id, 'rating': -1, 'user_id': 'ops', 'feedback_reason': 'wrong_cargo'}
            ).feedback_id
            repo.feedback.submit_match_feedback({'match_id': match_id, 'rating': 1, 'user_id': 'sales'})

        assert first == second
        with uow() as repo:
            reasons = repo.feedback.get_feedback_by_reason()
        assert reasons == {
            'wrong_cargo': {'count': 1, 'positive': 0, 'negative': 1},
            'unspecified': {'count': 1, 'positive': 1, 'negative': 0},
        }

    def test_feedback_for_historical_quotes(self, uow, match_ids):
        source, a, b, ids = match_ids
        with uow() as repo:
            repo.feedback.submit_match_feedback({'match_id': ids[0], 'rating': 1, 'actual_price_used': 3100})
            repo.feedback.submit_match_feedback({'match_id': ids[0], 'rating': -1, 'user_id': 'other'})
            repo.feedback.submit_match_feedback({'match_id': ids[1], 'rating': -1})

        with uow() as repo:
            data = repo.feedback.get_feedback_for_historical_quotes([a, b, source])
            empty = repo.feedback.get_feedback_for_historical_quotes([])

        assert set(data) == {a, b}
        assert data[a].total_feedback_count == 2
        assert data[a].actual_prices_used == [3100.0]
        assert data[b].negative_feedback_count == 1
        assert empty == {}

    def test_statistics(self, uow, match_ids):
        _, _, _, ids = match_ids
        with uow() as repo:
            repo.feedback.submit_match_feedback({'match_id': ids[0], 'rating': 1, 'actual_price_used': 3300})
            repo.feedback.submit_match_feedback({'match_id': ids[1], 'rating': -1, 'user_id': 'ops'})

        with uow() as repo:
            stats = repo.feedback.get_feedback_statistics()
            by_user = repo.feedback.get_feedback_statistics({'user_id': 'ops'})
            by_service = repo.feedback.get_feedback_statistics({'service_type': 'ground'})
            no_service = repo.feedback.get_feedback_statistics({'service_type': 'ocean'})

        assert stats['total_feedback'] == 2
        assert stats['thumbs_up'] == 1
        assert stats['thumbs_down'] == 1
        assert stats['approval_rate'] == 0.5
        assert stats['avg_rating'] == 0.0
        assert stats['avg_similarity'] == pytest.approx(0.8)
        assert stats['price_feedback_count'] == 1
        assert stats['avg_price_error_pct'] == pytest.approx(abs(3000 - 3300) / 3300 * 100, abs=0.01)
        assert by_user['total_feedback'] == 1
        assert by_user['avg_price_error_pct'] is None
        assert by_service['total_feedback'] == 2
        assert no_service['total_feedback'] == 0

    def test_rated_match_breakdowns(self, uow, match_ids):
        _, _, _, ids = match_ids
        with uow() as repo:
            repo.feedback.submit_match_feedback({'match_id': ids[1], 'rating': -1})
            repo.feedback.submit_match_feedback({'match_id': ids[0], 'rating': 1})

        with uow() as repo:
            rated = repo.feedback.get_rated_match_breakdowns()

        assert [(r.match_id, r.rating) for r in rated] == [(ids[1], -1), (ids[0], 1)]
        assert rated[0].criteria == {'service_type': 1.0, 'recency': 0.5}


class TestWeightRepository:

    def test_seed_and_versions(self, uow, db_session):
        assert seed_default_weights(db_session) is True
        assert seed_default_weights(db_session) is False

        with uow() as repo:
            active = repo.weights.get_active_weight_vector()
            assert active.version == 0
            assert active.source == 'default'
            repo.weights.save_weight_vector(active.evolve({'recency': 0.02}))

        with uow() as repo:
            assert repo.weights.get_active_weight_vector().version == 1
            assert repo.weights.get_weight_vector(0).get('recency') == 0.04
            assert repo.weights.get_weight_vector(1).get('recency') == 0.02
            assert repo.weights.get_weight_vector(7) is None

    def test_duplicate_version_rejected(self, uow):
        with uow() as repo:
            repo.weights.save_weight_vector(WeightVector.default().evolve({}))
        with pytest.raises(IntegrityError):
            with uow() as repo:
                repo.weights.save_weight_vector(WeightVector.default().evolve({}))


class TestPricingRepository:

    def test_ai_recommendation(self, uow, db_session):
        (quote_id,) = _add_quotes(uow, quote_row())
        details = AIPricingDetails(recommended_price=3300, floor_price=3000, ceiling_price=3500,
                                   confidence='MEDIUM')

        with uow() as repo:
            row_id = repo.pricing.save_ai_pricing_recommendation(
                quote_id, details, baseline_price=3200, final_price=3215, oracle_weight=0.15,
                model_name='gpt-4o-mini',
            )

        row = db_session.get(AIPricingRecommendation, row_id)
        assert row.confidence == 'MEDIUM'
        assert float(row.final_price) == 3215
        assert row.details['recommended_price'] == 3300

    def test_outcome_upsert(self, uow):
        (quote_id,) = _add_quotes(uow, quote_row())
        with uow() as repo:
            first = repo.pricing.upsert_pricing_outcome(quote_id, PricingOutcome(actual_price_quoted=3300))
        with uow() as repo:
            second = repo.pricing.upsert_pricing_outcome(
                quote_id, PricingOutcome(actual_price_quoted=3300, actual_price_accepted=3100, job_won=True),
                service_type='GROUND',
            )
            row = repo.pricing.get_pricing_outcome(quote_id)
            assert row.job_won is True
            assert row.service_type == 'GROUND'

        assert first == second


def test_match_model_defaults(uow, db_session):
    source, matched = _add_quotes(uow, quote_row(), quote_row())
    with uow() as repo:
        match_id = repo.matches.create_quote_match(
            {'source_quote_id': source, 'matched_quote_id': matched, 'similarity_score': 0.5}
        ).match_id

    row = db_session.get(QuoteMatch, match_id)
    assert row.match_algorithm_version == 'v2-enhanced'
    assert row.status == 'active'
