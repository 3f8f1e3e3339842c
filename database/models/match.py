from sqlalchemy import (
    Column, Integer, SmallInteger, Text, TIMESTAMP, ForeignKey, Numeric,
    UniqueConstraint, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship

from .base import Base, JSONType


class QuoteMatch(Base):
    """
    Stores a scored match between a query quote and a historical quote.

    Tracks:
    - Final similarity score and per-criterion breakdown
    - Suggested price, confidence and range
    - Optional AI pricing details
    - Algorithm and weight vector version used to score it
    """
    __tablename__ = 'quote_matches'

    match_id = Column(Integer, primary_key=True, autoincrement=True)
    source_quote_id = Column(Integer, ForeignKey('shipping_quotes.quote_id', ondelete='CASCADE'), nullable=False)
    matched_quote_id = Column(Integer, ForeignKey('shipping_quotes.quote_id', ondelete='CASCADE'), nullable=False)

    similarity_score = Column(Numeric(5, 4), nullable=False)
    match_criteria = Column(JSONType, default=dict)

    suggested_price = Column(Numeric(12, 2))
    price_confidence = Column(Numeric(5, 4))
    price_range_low = Column(Numeric(12, 2))
    price_range_high = Column(Numeric(12, 2))
    ai_pricing_details = Column(JSONType, nullable=True)

    match_algorithm_version = Column(Text, default='v2-enhanced')
    weight_version = Column(Integer, nullable=False, default=0)

    status = Column(Text, nullable=False, default='active')  # active|superseded
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    feedback = relationship("QuoteMatchFeedback", back_populates="match", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('source_quote_id', 'matched_quote_id', name='uq_quote_match_pair'),
        CheckConstraint('similarity_score >= 0 AND similarity_score <= 1', name='ck_quote_match_score'),
        CheckConstraint('price_confidence IS NULL OR (price_confidence >= 0 AND price_confidence <= 1)',
                        name='ck_quote_match_confidence'),
        Index('idx_quote_match_source', 'source_quote_id'),
        Index('idx_quote_match_matched', 'matched_quote_id'),
        Index('idx_quote_match_score', 'similarity_score'),
        Index('idx_quote_match_status', 'status'),
    )


class QuoteMatchFeedback(Base):
    """
    Reviewer rating (+1/-1) on a QuoteMatch.

    One row per (match, reviewer). Used only as learning input.
    """
    __tablename__ = 'quote_match_feedback'

    feedback_id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey('quote_matches.match_id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Text, nullable=False, default='anonymous')

    rating = Column(SmallInteger, nullable=False)
    feedback_reason = Column(Text)
    feedback_notes = Column(Text)
    actual_price_used = Column(Numeric(12, 2))

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    match = relationship("QuoteMatch", back_populates="feedback")

    __table_args__ = (
        UniqueConstraint('match_id', 'user_id', name='uq_feedback_match_user'),
        CheckConstraint('rating IN (-1, 1)', name='ck_feedback_rating'),
        Index('idx_feedback_match', 'match_id'),
        Index('idx_feedback_created', 'created_at'),
    )
