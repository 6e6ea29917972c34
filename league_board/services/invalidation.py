# league_board/services/invalidation.py
"""
Write-path cache invalidation.

The CRUD layer calls one hook per mutation. Derived stats depend on games,
box scores and seasons alike, so every stat-affecting change drops the whole
stats namespace rather than guessing which aggregates contain the record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..cache import TieredCache
from ..cache_keys import GAMES_PREFIX, SEASONS_PREFIX, STATS_PREFIX, TEAMS_PREFIX, CacheKeys

logger = logging.getLogger(__name__)

ENTITIES = ("stats", "game", "season", "team", "ballots", "all")


@dataclass
class InvalidationService:
    """Drops cached entries that a mutation has made stale."""

    cache: TieredCache

    def stats_changed(self, player_id: Optional[str] = None, game_id: Optional[str] = None) -> None:
        """A box-score row was created, updated or deleted."""
        self.cache.invalidate_pattern(STATS_PREFIX)
        logger.info("stats changed (player=%s game=%s); stats cache dropped", player_id, game_id)

    def game_changed(self, game_id: str) -> None:
        """A game was created, rescored or deleted."""
        self.cache.invalidate_pattern(GAMES_PREFIX)
        self.cache.invalidate(CacheKeys.game(game_id))
        self.cache.invalidate(CacheKeys.game_teams(game_id))
        self.cache.invalidate(CacheKeys.ratings(game_id))
        self.cache.invalidate_pattern(STATS_PREFIX)
        logger.info("game %s changed; games, teams, ratings and stats caches dropped", game_id)

    def season_changed(self, season_id: str) -> None:
        # season:<sid> is a plain substring match, so season:1 also drops season:10
        self.cache.invalidate_pattern(SEASONS_PREFIX)
        self.cache.invalidate_pattern(CacheKeys.season(season_id))
        logger.info("season %s changed; season caches dropped", season_id)

    def team_changed(self, game_id: str) -> None:
        """Team rosters of a game changed."""
        self.cache.invalidate_pattern(TEAMS_PREFIX)
        self.cache.invalidate(CacheKeys.game_stats(game_id))
        logger.info("teams of game %s changed", game_id)

    def ballots_changed(self, game_id: str) -> None:
        self.cache.invalidate(CacheKeys.ratings(game_id))
        logger.info("ballots of game %s changed", game_id)

    def clear_all(self) -> None:
        self.cache.clear_all()
        logger.info("cache cleared")

    def apply(
        self,
        entity: str,
        player_id: Optional[str] = None,
        game_id: Optional[str] = None,
        season_id: Optional[str] = None,
    ) -> None:
        """
        Dispatch a mutation notice by entity name.

        Raises:
            ValueError for unknown entities or a missing required id.
        """
        if entity == "stats":
            self.stats_changed(player_id=player_id, game_id=game_id)
        elif entity == "game":
            self.game_changed(_required("game_id", game_id))
        elif entity == "season":
            self.season_changed(_required("season_id", season_id))
        elif entity == "team":
            self.team_changed(_required("game_id", game_id))
        elif entity == "ballots":
            self.ballots_changed(_required("game_id", game_id))
        elif entity == "all":
            self.clear_all()
        else:
            raise ValueError(f"unknown entity {entity!r}; expected one of {', '.join(ENTITIES)}")


def _required(name: str, value: Optional[str]) -> str:
    if not value:
        raise ValueError(f"{name} is required")
    return str(value)
