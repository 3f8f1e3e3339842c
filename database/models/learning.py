from sqlalchemy import (
    Column, Integer, Text, TIMESTAMP, ForeignKey, Boolean, Numeric, UniqueConstraint, Index, func
)

from .base import Base, JSONType


class MatchingWeightVersion(Base):
    """
    One persisted version of the scorer weight vector.

    Exactly one row is active. Matches record the version they were
    scored with, so any match can be replayed against its weights.
    """
    __tablename__ = 'matching_weight_versions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(Integer, nullable=False)
    weights = Column(JSONType, nullable=False)
    source = Column(Text, nullable=False, default='default')  # default|learned|manual
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('version', name='uq_weight_version'),
        Index('idx_weight_version_active', 'is_active'),
    )


class PricingHistory(Base):
    """Ground-truth pricing outcome for a quote, with lane characteristics at record time."""
    __tablename__ = 'pricing_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey('shipping_quotes.quote_id', ondelete='CASCADE'), nullable=False)

    actual_price_quoted = Column(Numeric(12, 2))
    actual_price_accepted = Column(Numeric(12, 2))
    job_won = Column(Boolean)

    origin_region = Column(Text)
    destination_region = Column(Text)
    service_type = Column(Text)
    cargo_category = Column(Text)
    weight_range = Column(Text)

    recorded_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('quote_id', name='uq_pricing_history_quote'),
        Index('idx_pricing_history_lane', 'origin_region', 'destination_region', 'service_type'),
    )


class AIPricingRecommendation(Base):
    """Audit trail of every validated pricing-oracle answer."""
    __tablename__ = 'ai_pricing_recommendations'

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey('shipping_quotes.quote_id', ondelete='CASCADE'), nullable=False)

    recommended_price = Column(Numeric(12, 2))
    floor_price = Column(Numeric(12, 2))
    target_price = Column(Numeric(12, 2))
    ceiling_price = Column(Numeric(12, 2))
    confidence = Column(Text)

    baseline_price = Column(Numeric(12, 2))
    final_price = Column(Numeric(12, 2))
    oracle_weight = Column(Numeric(4, 3))

    details = Column(JSONType)
    model_name = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_ai_pricing_quote', 'quote_id'),
    )
