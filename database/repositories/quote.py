import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func, or_

from core.dto import QuoteRecord
from core.exceptions import InvalidInputError
from database.models import ShippingQuote
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_WRITABLE_COLUMNS = frozenset(
    c.name for c in ShippingQuote.__table__.columns
    if c.name not in ('quote_id', 'created_at', 'updated_at')
)


class ShippingQuoteRepository(BaseRepository):
    def get_quote_for_matching(self, quote_id: int) -> Optional[QuoteRecord]:
        quote = self._get(ShippingQuote, quote_id)
        return QuoteRecord.from_orm(quote) if quote is not None else None

    def get_historical_quotes_for_matching(
        self,
        exclude_ids: Optional[Iterable[int]] = None,
        limit: int = 500,
        only_with_price: bool = True
    ) -> List[QuoteRecord]:
        """
        Candidate pool for matching, newest first.

        Args:
            exclude_ids: Quote ids to leave out (normally the query quote)
            limit: Maximum number of quotes to return
            only_with_price: Require a positive initial or final price

        Returns:
            List of QuoteRecord snapshots
        """
        stmt = select(ShippingQuote)

        exclude = [int(i) for i in (exclude_ids or [])]
        if exclude:
            stmt = stmt.where(ShippingQuote.quote_id.notin_(exclude))

        if only_with_price:
            stmt = stmt.where(or_(
                ShippingQuote.final_agreed_price > 0,
                ShippingQuote.initial_quote_amount > 0,
            ))

        stmt = stmt.order_by(
            func.coalesce(ShippingQuote.quote_date, ShippingQuote.created_at).desc(),
            ShippingQuote.quote_id.desc()
        ).limit(limit)

        quotes = self.db.execute(stmt).scalars().all()
        return [QuoteRecord.from_orm(q) for q in quotes]

    def add_quote(self, data: Dict[str, Any]) -> QuoteRecord:
        unknown = set(data) - _WRITABLE_COLUMNS
        if unknown:
            raise InvalidInputError(f"Unknown quote fields: {sorted(unknown)}")

        quote = ShippingQuote(**data)
        self.db.add(quote)
        self.db.flush()
        self.db.refresh(quote)
        logger.debug(f"Added quote {quote.quote_id}")
        return QuoteRecord.from_orm(quote)
