#!/usr/bin/env python3
"""
Persistence Operations - Database operations for scored matches.

Upserts QuoteMatch rows for one source quote and supersedes the active
rows a rescoring no longer returns.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import PersistenceError
from core.scorer.models import ScoredQuoteMatch

logger = logging.getLogger(__name__)

ALGORITHM_VERSION = 'v2-enhanced'
AI_ALGORITHM_VERSION = 'v2-ai-enhanced'


def _to_float(value, default: Optional[float] = None) -> Optional[float]:
    """Convert value to native Python float for database compatibility."""
    if value is None:
        return default
    return float(value)


def _to_native_types(obj):
    """Recursively convert numpy types to native Python types for JSON serialization."""
    if obj is None:
        return None
    if hasattr(obj, 'tolist'):  # numpy array or matrix (check before scalars)
        return obj.tolist()
    if hasattr(obj, 'item'):  # numpy scalar (float64, int64, etc.)
        return obj.item()
    if isinstance(obj, dict):
        return {k: _to_native_types(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_native_types(item) for item in obj]
    return obj


def match_to_row(
    scored_match: ScoredQuoteMatch,
    algorithm_version: str = ALGORITHM_VERSION,
    ai_details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        'source_quote_id': scored_match.source_quote_id,
        'matched_quote_id': scored_match.matched_quote_id,
        'similarity_score': round(_to_float(scored_match.similarity_score, 0.0), 4),
        'match_criteria': _to_native_types(scored_match.criteria_breakdown()),
        'suggested_price': _to_float(scored_match.suggested_price),
        'price_confidence': _to_float(scored_match.price_confidence),
        'price_range_low': _to_float(scored_match.price_range_low),
        'price_range_high': _to_float(scored_match.price_range_high),
        'ai_pricing_details': _to_native_types(ai_details),
        'match_algorithm_version': algorithm_version,
        'weight_version': scored_match.weight_version,
    }


def save_matches_to_db(
    source_quote_id: int,
    scored_matches: Sequence[ScoredQuoteMatch],
    repo,
    algorithm_version: str = ALGORITHM_VERSION,
    ai_details: Optional[Dict[str, Any]] = None
) -> List[int]:
    """
    Save the current match set for a source quote.

    Args:
        source_quote_id: Query quote the matches belong to
        scored_matches: Ranked matches to upsert
        repo: QuoteRepository facade bound to the caller's unit of work
        algorithm_version: 'v2-enhanced', or 'v2-ai-enhanced' when the oracle contributed
        ai_details: Validated oracle details stored on every row of this set

    Returns:
        match ids in the order of scored_matches

    Raises:
        PersistenceError: when the upsert or supersede fails; the caller's
            unit of work rolls the whole set back
    """
    rows = [match_to_row(m, algorithm_version, ai_details) for m in scored_matches]
    try:
        match_ids = repo.matches.create_quote_matches_bulk(rows)
        superseded = repo.matches.supersede_stale_matches(
            source_quote_id,
            keep_ids=[m.matched_quote_id for m in scored_matches]
        )
    except SQLAlchemyError as e:
        raise PersistenceError(
            f"Failed to save matches for quote {source_quote_id}: {type(e).__name__}: {e}",
            {"quote_id": source_quote_id},
        ) from e

    logger.info(
        f"Saved {len(match_ids)} matches for quote {source_quote_id}"
        + (f" ({superseded} superseded)" if superseded else "")
    )
    return match_ids
