from .base import Base, JSONType
from .quote import ShippingQuote
from .match import QuoteMatch, QuoteMatchFeedback
from .learning import MatchingWeightVersion, PricingHistory, AIPricingRecommendation

__all__ = [
    'Base',
    'JSONType',
    'ShippingQuote',
    'QuoteMatch',
    'QuoteMatchFeedback',
    'MatchingWeightVersion',
    'PricingHistory',
    'AIPricingRecommendation',
]
