"""
Repository facade.

QuoteRepository groups the per-table repositories behind one object
bound to a single Session, so a unit of work reads and writes quotes,
matches, feedback, weights and pricing in one transaction.
"""
from sqlalchemy.orm import Session

from database.repositories import (
    ShippingQuoteRepository,
    MatchRepository,
    FeedbackRepository,
    WeightRepository,
    PricingRepository,
)


class QuoteRepository:
    def __init__(self, db: Session):
        self.db = db
        self.quotes = ShippingQuoteRepository(db)
        self.matches = MatchRepository(db)
        self.feedback = FeedbackRepository(db)
        self.weights = WeightRepository(db)
        self.pricing = PricingRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
