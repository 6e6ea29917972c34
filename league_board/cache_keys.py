# league_board/cache_keys.py
"""
Cache key builders.

Grammar: entity:scope[:qualifier], colon-delimited. Writers and invalidators
must both go through these builders so pattern invalidation keeps matching.
Bulk keys sort their ids so the same set always maps to the same key.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Union

STATS_PREFIX = "stats:"
GAMES_PREFIX = "games:"
SEASONS_PREFIX = "seasons:"
TEAMS_PREFIX = "teams:"


def _season_suffix(season_id: Optional[str]) -> str:
    return f":season:{season_id}" if season_id else ""


class CacheKeys:
    """Canonical key builders, one per cached entity."""

    # Stats (derived aggregates)
    @staticmethod
    def player_stats(player_id: str) -> str:
        return f"stats:player:{player_id}"

    @staticmethod
    def player_season_stats(player_id: str, season_id: str) -> str:
        return f"stats:player:{player_id}:season:{season_id}"

    @staticmethod
    def game_stats(game_id: str) -> str:
        return f"stats:game:{game_id}"

    @staticmethod
    def game_log(player_id: str, season_id: Optional[str] = None) -> str:
        return f"stats:gameLog:{player_id}{_season_suffix(season_id)}"

    @staticmethod
    def bulk_player_stats(player_ids: Iterable[str]) -> str:
        return f"stats:bulk:{','.join(sorted(set(player_ids)))}"

    @staticmethod
    def top_players(days_back: int, as_of: Union[date, datetime, None] = None) -> str:
        key = f"stats:topPlayers:{days_back}"
        if as_of is not None:
            day = as_of.date() if isinstance(as_of, datetime) else as_of
            key = f"{key}:{day.isoformat()}"
        return key

    @staticmethod
    def monthly_leaders(year: int, month: int) -> str:
        return f"stats:topPlayers:month:{year:04d}-{month:02d}"

    @staticmethod
    def standings(season_id: Optional[str] = None) -> str:
        if not season_id or season_id == "all":
            return "stats:standings:all"
        return f"stats:standings:season:{season_id}"

    # Raw-record namespaces
    @staticmethod
    def all_games() -> str:
        return "games:all"

    @staticmethod
    def game(game_id: str) -> str:
        return f"game:{game_id}"

    @staticmethod
    def all_seasons() -> str:
        return "seasons:all"

    @staticmethod
    def season(season_id: str) -> str:
        return f"season:{season_id}"

    @staticmethod
    def game_teams(game_id: str) -> str:
        return f"teams:game:{game_id}"

    # Ranked voting
    @staticmethod
    def ratings(game_id: str) -> str:
        return f"ratings:game:{game_id}"
