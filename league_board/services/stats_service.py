# league_board/services/stats_service.py
"""
Leaderboard and player-stat façade.

Responsibilities:
  - fetch raw games/box scores from the backend (independent fetches in parallel)
  - run the aggregation engine over the selected games
  - cache every finished result under its canonical key and category
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from dateutil import tz

from ..aggregation import (
    DEFAULT_STANDINGS_COLUMN,
    STANDINGS_COLUMNS,
    aggregate_player,
    aggregate_players,
    filter_games_by_season,
    filter_games_by_window,
    find_top_players,
    game_lines,
    pair_with_games,
    sort_standings,
    team_totals,
)
from ..cache import CacheCategory, TieredCache
from ..cache_keys import CacheKeys
from ..date_windows import DateWindow, last_calendar_month, last_n_days
from ..fanout import fan_out
from ..models import (
    AggregatedPlayerStats,
    GameOutcome,
    GameSummary,
    PlayerGameLine,
    RawPlayerGameStat,
    Season,
    TeamSide,
    TopPlayers,
)
from ..source import LeagueSource
from .cache_aside import read_through

logger = logging.getLogger(__name__)

GamesById = Dict[str, GameOutcome]


def _encode_optional(agg: Optional[AggregatedPlayerStats]) -> Optional[Dict[str, Any]]:
    return agg.to_dict() if agg is not None else None


def _decode_optional(payload: Optional[Mapping[str, Any]]) -> Optional[AggregatedPlayerStats]:
    return AggregatedPlayerStats.from_dict(payload) if payload else None


@dataclass
class StatsService:
    """Cache-fronted access to player aggregates, leaderboards and standings."""

    source: LeagueSource
    cache: TieredCache
    tz_name: str = "UTC"
    min_shooting_attempts: int = 5
    default_top_players_days: int = 30
    fetch_workers: int = 8

    @property
    def app_tz(self):
        """Return the configured timezone object used for all "now"-relative windows."""
        return tz.gettz(self.tz_name)

    def _now_local(self) -> datetime:
        return datetime.now(tz=self.app_tz)

    # -------------------------
    # Raw inputs
    # -------------------------

    def _fetch_with_games(
        self,
        tasks: Mapping[str, Callable[[], Any]],
        refresh: bool = False,
    ) -> Tuple[GamesById, Dict[str, Any]]:
        """
        Run tasks in parallel with the games fetch (skipped when games are cached).

        The games list is cached only after every task has succeeded.
        """
        cached = None if refresh else self.cache.get(CacheKeys.all_games())
        jobs: Dict[str, Callable[[], Any]] = dict(tasks)
        if cached is None:
            jobs["_games"] = self.source.list_games

        results = fan_out(jobs, max_workers=self.fetch_workers)

        if cached is None:
            games: List[GameOutcome] = results.pop("_games")
            self.cache.set(CacheKeys.all_games(), [g.to_dict() for g in games], category=CacheCategory.GAMES)
        else:
            games = [GameOutcome.from_dict(g) for g in cached]
        return {g.game_id: g for g in games}, results

    def _games_by_id(self, refresh: bool = False) -> GamesById:
        games, _ = self._fetch_with_games({}, refresh=refresh)
        return games

    def _stats_for_games(self, games: Sequence[GameOutcome]) -> List[RawPlayerGameStat]:
        if not games:
            return []
        return self.source.stats_for_games([g.game_id for g in games])

    @staticmethod
    def _player_aggregate(
        player_id: str,
        rows: Sequence[RawPlayerGameStat],
        games_by_id: GamesById,
    ) -> Optional[AggregatedPlayerStats]:
        own = [r for r in rows if r.player_id == player_id]
        return aggregate_player(player_id, pair_with_games(own, games_by_id))

    @staticmethod
    def _season_games(games_by_id: GamesById, season_id: Optional[str]) -> GamesById:
        return {g.game_id: g for g in filter_games_by_season(games_by_id.values(), season_id)}

    # -------------------------
    # Player stats
    # -------------------------

    def get_player_career_stats(self, player_id: str, refresh: bool = False) -> Optional[AggregatedPlayerStats]:
        """All-time aggregate for one player; None when the player has no games."""

        def compute() -> Optional[AggregatedPlayerStats]:
            games, res = self._fetch_with_games(
                {"rows": lambda: self.source.stats_for_player(player_id)}, refresh=refresh
            )
            return self._player_aggregate(player_id, res["rows"], games)

        return read_through(
            self.cache, CacheKeys.player_stats(player_id), CacheCategory.STATS,
            compute, _encode_optional, _decode_optional, refresh=refresh,
        )

    def get_player_season_stats(
        self,
        player_id: str,
        season_id: str,
        refresh: bool = False,
    ) -> Optional[AggregatedPlayerStats]:
        """Aggregate for one player over the games of one season."""

        def compute() -> Optional[AggregatedPlayerStats]:
            games, res = self._fetch_with_games(
                {"rows": lambda: self.source.stats_for_player(player_id)}, refresh=refresh
            )
            return self._player_aggregate(player_id, res["rows"], self._season_games(games, season_id))

        return read_through(
            self.cache, CacheKeys.player_season_stats(player_id, season_id), CacheCategory.STATS,
            compute, _encode_optional, _decode_optional, refresh=refresh,
        )

    def get_bulk_player_stats(
        self,
        player_ids: Sequence[str],
        refresh: bool = False,
    ) -> Dict[str, Optional[AggregatedPlayerStats]]:
        """
        Career aggregates for several players with one backend round-trip.

        Each value equals get_player_career_stats(pid) for the same inputs.
        """
        ids = sorted(set(player_ids))
        if not ids:
            return {}

        def compute() -> Dict[str, Optional[AggregatedPlayerStats]]:
            games, res = self._fetch_with_games(
                {"rows": lambda: self.source.stats_for_players(ids)}, refresh=refresh
            )
            rows_by_player: Mapping[str, Sequence[RawPlayerGameStat]] = res["rows"]
            return {pid: self._player_aggregate(pid, rows_by_player.get(pid, ()), games) for pid in ids}

        return read_through(
            self.cache, CacheKeys.bulk_player_stats(ids), CacheCategory.STATS, compute,
            lambda result: {pid: _encode_optional(agg) for pid, agg in result.items()},
            lambda payload: {pid: _decode_optional(agg) for pid, agg in payload.items()},
            refresh=refresh,
        )

    def get_player_game_log(
        self,
        player_id: str,
        season_id: Optional[str] = None,
        refresh: bool = False,
    ) -> List[PlayerGameLine]:
        """One line per game played, most recent first, each with its own efficiency."""

        def compute() -> List[PlayerGameLine]:
            games, res = self._fetch_with_games(
                {"rows": lambda: self.source.stats_for_player(player_id)}, refresh=refresh
            )
            own = [r for r in res["rows"] if r.player_id == player_id]
            return game_lines(own, self._season_games(games, season_id))

        return read_through(
            self.cache, CacheKeys.game_log(player_id, season_id), CacheCategory.STATS, compute,
            lambda lines: [line.to_dict() for line in lines],
            lambda payload: [PlayerGameLine.from_dict(x) for x in payload],
            refresh=refresh,
        )

    # -------------------------
    # Games
    # -------------------------

    def get_game_summary(self, game_id: str, refresh: bool = False) -> Optional[GameSummary]:
        """Box score of one game: both team totals plus every player line. None for unknown games."""

        def compute() -> Optional[GameSummary]:
            res = fan_out(
                {
                    "game": lambda: self.source.get_game(game_id),
                    "rows": lambda: self.source.stats_for_game(game_id),
                },
                max_workers=self.fetch_workers,
            )
            game: Optional[GameOutcome] = res["game"]
            if game is None:
                return None
            rows = sorted(
                (r for r in res["rows"] if r.game_id == game_id),
                key=lambda r: (r.team_side.value, r.player_id),
            )
            return GameSummary(
                game=game,
                team_a=team_totals(rows, TeamSide.TEAM_A),
                team_b=team_totals(rows, TeamSide.TEAM_B),
                lines=tuple(game_lines(rows, {game_id: game})),
            )

        return read_through(
            self.cache, CacheKeys.game_stats(game_id), CacheCategory.STATS, compute,
            lambda summary: summary.to_dict() if summary is not None else None,
            lambda payload: GameSummary.from_dict(payload) if payload else None,
            refresh=refresh,
        )

    # -------------------------
    # Leaderboards
    # -------------------------

    def _leaders_in(self, window: DateWindow, refresh: bool) -> TopPlayers:
        games = filter_games_by_window(self._games_by_id(refresh).values(), window)
        rows = self._stats_for_games(games)
        aggregates = aggregate_players(rows, {g.game_id: g for g in games})
        return find_top_players(aggregates, window, min_attempts=self.min_shooting_attempts)

    def get_top_players(
        self,
        window_days: Optional[int] = None,
        as_of: Union[date, datetime, None] = None,
        now: Optional[datetime] = None,
        refresh: bool = False,
    ) -> TopPlayers:
        """
        Category leaders over the last window_days days.

        The window ends now, or at the end of the as_of day when given.
        """
        days = self.default_top_players_days if window_days is None else window_days
        window = last_n_days(days, now or self._now_local(), as_of)
        return read_through(
            self.cache, CacheKeys.top_players(days, as_of), CacheCategory.TOP_PLAYERS,
            lambda: self._leaders_in(window, refresh),
            lambda top: top.to_dict(), TopPlayers.from_dict,
            refresh=refresh,
        )

    def get_last_month_leaders(self, now: Optional[datetime] = None, refresh: bool = False) -> TopPlayers:
        """Category leaders over the previous calendar month."""
        window = last_calendar_month(now or self._now_local())
        return read_through(
            self.cache, CacheKeys.monthly_leaders(window.start.year, window.start.month),
            CacheCategory.TOP_PLAYERS,
            lambda: self._leaders_in(window, refresh),
            lambda top: top.to_dict(), TopPlayers.from_dict,
            refresh=refresh,
        )

    def get_season_standings_table(
        self,
        season_id: Optional[str] = "all",
        sort_by: str = DEFAULT_STANDINGS_COLUMN,
        descending: bool = True,
        refresh: bool = False,
    ) -> List[AggregatedPlayerStats]:
        """
        Every player's aggregate over a season ("all" for every game), sorted by one column.

        The unsorted table (ordered by player id) is cached; sorting is stable,
        so exact ties keep player-id order.
        """
        if sort_by not in STANDINGS_COLUMNS:
            raise ValueError(f"unknown standings column {sort_by!r}")

        def compute() -> List[AggregatedPlayerStats]:
            games = filter_games_by_season(self._games_by_id(refresh).values(), season_id)
            rows = self._stats_for_games(games)
            return aggregate_players(rows, {g.game_id: g for g in games})

        table = read_through(
            self.cache, CacheKeys.standings(season_id), CacheCategory.STATS, compute,
            lambda rows: [r.to_dict() for r in rows],
            lambda payload: [AggregatedPlayerStats.from_dict(r) for r in payload],
            refresh=refresh,
        )
        return sort_standings(table, sort_by, descending)

    # -------------------------
    # Seasons
    # -------------------------

    def list_seasons(self, refresh: bool = False) -> List[Season]:
        """All seasons, newest first."""

        def compute() -> List[Season]:
            seasons = self.source.list_seasons()
            return sorted(
                seasons,
                key=lambda s: (s.begin_date is not None, s.begin_date or datetime.min.replace(tzinfo=tz.UTC)),
                reverse=True,
            )

        return read_through(
            self.cache, CacheKeys.all_seasons(), CacheCategory.SEASONS, compute,
            lambda seasons: [s.to_dict() for s in seasons],
            lambda payload: [Season.from_dict(s) for s in payload],
            refresh=refresh,
        )

    def get_active_season(self, refresh: bool = False) -> Optional[Season]:
        for season in self.list_seasons(refresh=refresh):
            if season.is_active:
                return season
        return None
