import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from database.models import QuoteMatch
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_MATCH_FIELDS = (
    'similarity_score',
    'match_criteria',
    'suggested_price',
    'price_confidence',
    'price_range_low',
    'price_range_high',
    'ai_pricing_details',
    'match_algorithm_version',
    'weight_version',
)


class MatchRepository(BaseRepository):
    def get_existing_match(self, source_quote_id: int, matched_quote_id: int) -> Optional[QuoteMatch]:
        stmt = select(QuoteMatch).where(
            QuoteMatch.source_quote_id == source_quote_id,
            QuoteMatch.matched_quote_id == matched_quote_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_quote_match(self, data: Dict[str, Any]) -> QuoteMatch:
        """Insert or refresh the match row for a (source, matched) pair."""
        source_id = int(data['source_quote_id'])
        matched_id = int(data['matched_quote_id'])

        match = self.get_existing_match(source_id, matched_id)
        if match is None:
            match = QuoteMatch(source_quote_id=source_id, matched_quote_id=matched_id)
            self.db.add(match)

        for name in _MATCH_FIELDS:
            if name in data:
                setattr(match, name, data[name])
        match.status = 'active'

        self.db.flush()
        return match

    def create_quote_matches_bulk(self, rows: Iterable[Dict[str, Any]]) -> List[int]:
        return [self.create_quote_match(row).match_id for row in rows]

    def get_matches_for_quote(
        self,
        quote_id: int,
        limit: Optional[int] = 10,
        min_score: Optional[float] = None,
        status: str = 'active'
    ) -> List[QuoteMatch]:
        stmt = select(QuoteMatch).where(
            QuoteMatch.source_quote_id == quote_id,
            QuoteMatch.status == status
        )

        if min_score is not None:
            stmt = stmt.where(QuoteMatch.similarity_score >= min_score)

        stmt = stmt.order_by(QuoteMatch.similarity_score.desc(), QuoteMatch.matched_quote_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def delete_match(self, match_id: int) -> bool:
        match = self._get(QuoteMatch, match_id)
        if match is None:
            return False
        self.db.delete(match)
        self.db.flush()
        return True

    def supersede_stale_matches(self, source_quote_id: int, keep_ids: Iterable[int]) -> int:
        """
        Mark active matches of a source quote as superseded unless their
        matched quote is in keep_ids. Returns number of matches superseded.
        """
        keep = {int(i) for i in keep_ids}
        stmt = select(QuoteMatch).where(
            QuoteMatch.source_quote_id == source_quote_id,
            QuoteMatch.status == 'active'
        )
        matches = self.db.execute(stmt).scalars().all()

        count = 0
        for match in matches:
            if match.matched_quote_id in keep:
                continue
            match.status = 'superseded'
            count += 1

        if count > 0:
            logger.info(f"Superseded {count} stale matches for quote {source_quote_id}")

        return count
