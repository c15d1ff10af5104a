"""Service modules"""
from .aggregator import MarketAggregator, filter_markets
from .recommendation import RecommendationEngine

__all__ = ["MarketAggregator", "RecommendationEngine", "filter_markets"]
