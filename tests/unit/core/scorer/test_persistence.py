"""
Unit tests for match persistence helpers.

Tests verify:
- match_to_row converts numpy values to native types
- save_matches_to_db upserts then supersedes the rows no longer returned
- Storage failures surface as PersistenceError carrying the quote id
"""
from unittest.mock import MagicMock

import numpy as np
import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import PersistenceError
from core.scorer.models import ScoredQuoteMatch
from core.scorer.persistence import (
    AI_ALGORITHM_VERSION,
    ALGORITHM_VERSION,
    _to_native_types,
    match_to_row,
    save_matches_to_db,
)
from tests import make_quote


def _match(candidate_id, score=0.9, price=3200.0):
    return ScoredQuoteMatch(
        source_quote_id=1,
        candidate=make_quote(candidate_id),
        similarity_score=np.float64(score),
        raw_score=score,
        criteria={'service_type': np.float64(1.0), 'recency': 0.84},
        suggested_price=price,
        price_confidence=0.95,
        price_range_low=price * 0.9,
        price_range_high=price * 1.1,
        weight_version=3,
    )


class TestMatchToRow:

    def test_native_types(self):
        row = match_to_row(_match(2))

        assert type(row['similarity_score']) is float
        assert type(row['match_criteria']['criteria']['service_type']) is float
        assert row['match_algorithm_version'] == ALGORITHM_VERSION
        assert row['weight_version'] == 3
        assert row['ai_pricing_details'] is None

    def test_ai_details_attached(self):
        details = {'recommended_price': np.float64(3300.0), 'confidence': 'HIGH'}
        row = match_to_row(_match(2), AI_ALGORITHM_VERSION, details)

        assert row['match_algorithm_version'] == AI_ALGORITHM_VERSION
        assert row['ai_pricing_details'] == {'recommended_price': 3300.0, 'confidence': 'HIGH'}

    def test_missing_price_stays_none(self):
        row = match_to_row(_match(2, price=None))
        assert row['suggested_price'] is None

    def test_nested_numpy_conversion(self):
        converted = _to_native_types({'a': [np.int64(1), (np.float32(0.5),)], 'b': np.array([1, 2])})
        assert converted == {'a': [1, [0.5]], 'b': [1, 2]}


class TestSaveMatchesToDb:

    def test_upserts_and_supersedes(self):
        repo = MagicMock()
        repo.matches.create_quote_matches_bulk.return_value = [11, 12]
        repo.matches.supersede_stale_matches.return_value = 1

        ids = save_matches_to_db(1, [_match(2), _match(4)], repo)

        assert ids == [11, 12]
        rows = repo.matches.create_quote_matches_bulk.call_args[0][0]
        assert [r['matched_quote_id'] for r in rows] == [2, 4]
        repo.matches.supersede_stale_matches.assert_called_once_with(1, keep_ids=[2, 4])

    def test_empty_set_supersedes_everything(self):
        repo = MagicMock()
        repo.matches.create_quote_matches_bulk.return_value = []
        repo.matches.supersede_stale_matches.return_value = 0

        assert save_matches_to_db(1, [], repo) == []
        repo.matches.supersede_stale_matches.assert_called_once_with(1, keep_ids=[])

    def test_storage_failure_raises_persistence_error(self):
        repo = MagicMock()
        repo.matches.create_quote_matches_bulk.side_effect = OperationalError(
            "INSERT INTO quote_matches", {}, Exception("database is locked")
        )

        with pytest.raises(PersistenceError) as excinfo:
            save_matches_to_db(1, [_match(2)], repo)

        assert excinfo.value.details == {"quote_id": 1}
        assert "database is locked" in excinfo.value.message
        repo.matches.supersede_stale_matches.assert_not_called()
