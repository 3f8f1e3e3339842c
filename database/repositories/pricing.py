import logging
from typing import Optional

from sqlalchemy import select

from core.feedback.models import PricingOutcome
from core.llm.schema_models import AIPricingDetails
from database.models import AIPricingRecommendation, PricingHistory
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class PricingRepository(BaseRepository):
    def save_ai_pricing_recommendation(
        self,
        quote_id: int,
        details: AIPricingDetails,
        baseline_price: Optional[float],
        final_price: Optional[float],
        oracle_weight: float = 0.0,
        model_name: Optional[str] = None
    ) -> int:
        row = AIPricingRecommendation(
            quote_id=quote_id,
            recommended_price=details.recommended_price,
            floor_price=details.floor_price,
            target_price=details.target_price,
            ceiling_price=details.ceiling_price,
            confidence=details.confidence,
            baseline_price=baseline_price,
            final_price=final_price,
            oracle_weight=oracle_weight,
            details=details.model_dump(mode='json'),
            model_name=model_name,
        )
        self.db.add(row)
        self.db.flush()
        return row.id

    def upsert_pricing_outcome(
        self,
        quote_id: int,
        outcome: PricingOutcome,
        origin_region: Optional[str] = None,
        destination_region: Optional[str] = None,
        service_type: Optional[str] = None,
        cargo_category: Optional[str] = None,
        weight_range: Optional[str] = None
    ) -> int:
        stmt = select(PricingHistory).where(PricingHistory.quote_id == quote_id)
        row = self.db.execute(stmt).scalar_one_or_none()
        if row is None:
            row = PricingHistory(quote_id=quote_id)
            self.db.add(row)

        row.actual_price_quoted = outcome.actual_price_quoted
        row.actual_price_accepted = outcome.actual_price_accepted
        row.job_won = outcome.job_won
        row.origin_region = origin_region
        row.destination_region = destination_region
        row.service_type = service_type
        row.cargo_category = cargo_category
        row.weight_range = weight_range

        self.db.flush()
        return row.id

    def get_pricing_outcome(self, quote_id: int) -> Optional[PricingHistory]:
        stmt = select(PricingHistory).where(PricingHistory.quote_id == quote_id)
        return self.db.execute(stmt).scalar_one_or_none()
