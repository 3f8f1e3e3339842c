import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from core.exceptions import InvalidInputError
from core.feedback.aggregation import aggregate_feedback
from core.feedback.models import FEEDBACK_REASONS, FeedbackData, RatedMatch
from database.models import QuoteMatch, QuoteMatchFeedback, ShippingQuote
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class FeedbackRepository(BaseRepository):
    def submit_match_feedback(self, data: Dict[str, Any]) -> QuoteMatchFeedback:
        """
        Record a reviewer's rating on a match.

        A second submission by the same user for the same match updates
        the existing row.

        Raises:
            InvalidInputError: unknown match, rating other than +1/-1,
                unknown reason or non-positive actual price
        """
        match_id = data.get('match_id')
        rating = data.get('rating')
        reason = data.get('feedback_reason')
        price = data.get('actual_price_used')
        user_id = data.get('user_id') or 'anonymous'

        if isinstance(rating, bool) or rating not in (-1, 1):
            raise InvalidInputError(f"rating must be +1 or -1, got {rating!r}")
        if reason is not None and reason not in FEEDBACK_REASONS:
            raise InvalidInputError(f"Unknown feedback reason: {reason!r}")
        if price is not None and float(price) <= 0:
            raise InvalidInputError(f"actual_price_used must be positive, got {price!r}")
        if match_id is None or self._get(QuoteMatch, match_id) is None:
            raise InvalidInputError(f"Match {match_id!r} does not exist")

        stmt = select(QuoteMatchFeedback).where(
            QuoteMatchFeedback.match_id == match_id,
            QuoteMatchFeedback.user_id == user_id
        )
        feedback = self.db.execute(stmt).scalar_one_or_none()
        if feedback is None:
            feedback = QuoteMatchFeedback(match_id=match_id, user_id=user_id)
            self.db.add(feedback)

        feedback.rating = rating
        feedback.feedback_reason = reason
        feedback.feedback_notes = data.get('feedback_notes')
        feedback.actual_price_used = price

        self.db.flush()
        logger.info(f"Feedback {rating:+d} on match {match_id} from {user_id}")
        return feedback

    def get_feedback_for_historical_quotes(self, quote_ids: Iterable[int]) -> Dict[int, FeedbackData]:
        """Aggregate feedback on matches whose matched side is one of quote_ids."""
        ids = [int(i) for i in quote_ids]
        if not ids:
            return {}

        stmt = select(
            QuoteMatch.matched_quote_id,
            QuoteMatchFeedback.rating,
            QuoteMatchFeedback.feedback_reason,
            QuoteMatchFeedback.actual_price_used,
        ).join(QuoteMatch, QuoteMatchFeedback.match_id == QuoteMatch.match_id).where(
            QuoteMatch.matched_quote_id.in_(ids)
        )
        rows = self.db.execute(stmt).mappings().all()
        return aggregate_feedback(rows)

    def get_feedback_statistics(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Summary of the feedback ledger.

        Supported filters: since (datetime), user_id, service_type (the
        source quote's service type, case-insensitive).
        """
        filters = filters or {}
        stmt = select(
            QuoteMatchFeedback.rating,
            QuoteMatchFeedback.actual_price_used,
            QuoteMatch.similarity_score,
            QuoteMatch.suggested_price,
        ).join(QuoteMatch, QuoteMatchFeedback.match_id == QuoteMatch.match_id)

        if filters.get('since') is not None:
            stmt = stmt.where(QuoteMatchFeedback.created_at >= filters['since'])
        if filters.get('user_id'):
            stmt = stmt.where(QuoteMatchFeedback.user_id == filters['user_id'])
        if filters.get('service_type'):
            stmt = stmt.join(
                ShippingQuote, QuoteMatch.source_quote_id == ShippingQuote.quote_id
            ).where(ShippingQuote.service_type.ilike(filters['service_type']))

        rows = self.db.execute(stmt).all()

        total = len(rows)
        thumbs_up = sum(1 for r in rows if r.rating > 0)
        thumbs_down = sum(1 for r in rows if r.rating < 0)

        price_errors = [
            abs(float(r.suggested_price) - float(r.actual_price_used)) / float(r.actual_price_used) * 100
            for r in rows
            if r.actual_price_used and r.suggested_price and float(r.actual_price_used) > 0
        ]

        return {
            'total_feedback': total,
            'thumbs_up': thumbs_up,
            'thumbs_down': thumbs_down,
            'avg_rating': round(sum(r.rating for r in rows) / total, 4) if total else 0.0,
            'avg_similarity': round(sum(float(r.similarity_score) for r in rows) / total, 4) if total else 0.0,
            'approval_rate': round(thumbs_up / total, 4) if total else 0.0,
            'avg_price_error_pct': round(sum(price_errors) / len(price_errors), 2) if price_errors else None,
            'price_feedback_count': sum(1 for r in rows if r.actual_price_used is not None),
        }

    def get_feedback_by_reason(self) -> Dict[str, Dict[str, int]]:
        stmt = select(QuoteMatchFeedback.feedback_reason, QuoteMatchFeedback.rating)
        breakdown: Dict[str, Dict[str, int]] = {}
        for reason, rating in self.db.execute(stmt).all():
            bucket = breakdown.setdefault(reason or 'unspecified', {'count': 0, 'positive': 0, 'negative': 0})
            bucket['count'] += 1
            if rating > 0:
                bucket['positive'] += 1
            elif rating < 0:
                bucket['negative'] += 1
        return breakdown

    def get_rated_match_breakdowns(self) -> List[RatedMatch]:
        """One RatedMatch per feedback row, with the criterion scores stored on its match."""
        stmt = select(
            QuoteMatch.match_id,
            QuoteMatch.match_criteria,
            QuoteMatchFeedback.rating,
        ).join(QuoteMatch, QuoteMatchFeedback.match_id == QuoteMatch.match_id).order_by(
            QuoteMatchFeedback.feedback_id
        )

        rated: List[RatedMatch] = []
        for match_id, criteria, rating in self.db.execute(stmt).all():
            scores = (criteria or {}).get('criteria') or {}
            if not scores:
                continue
            rated.append(RatedMatch(
                match_id=match_id,
                rating=int(rating),
                criteria={k: float(v) for k, v in scores.items() if v is not None},
            ))
        return rated
