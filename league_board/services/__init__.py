# league_board/services/__init__.py
"""
Services package exports.
"""
from .invalidation import InvalidationService
from .ratings_service import RatingsService
from .stats_service import StatsService

__all__ = ["InvalidationService", "RatingsService", "StatsService"]
