from database.repositories.base import BaseRepository
from database.repositories.quote import ShippingQuoteRepository
from database.repositories.match import MatchRepository
from database.repositories.feedback import FeedbackRepository
from database.repositories.weights import WeightRepository
from database.repositories.pricing import PricingRepository

__all__ = [
    'BaseRepository',
    'ShippingQuoteRepository',
    'MatchRepository',
    'FeedbackRepository',
    'WeightRepository',
    'PricingRepository',
]
