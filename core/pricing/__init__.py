"""Pricing Module - per-match suggestions and aggregated estimates."""
from core.pricing.models import MatchPriceSuggestion, PriceEstimate, LaneStats, SmartPriceSuggestion

__all__ = ['MatchPriceSuggestion', 'PriceEstimate', 'LaneStats', 'SmartPriceSuggestion']
