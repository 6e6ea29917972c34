# league_board/aggregation.py
"""
Stat aggregation engine.

Pure functions over raw box-score rows and game outcomes:
  - per-game derived numbers (percentages, efficiency, W/L/T)
  - multi-game rollups (averages, record, current streak, last five)
  - per-side team totals for a single game
  - leaderboard selection and standings sorting

No I/O and no caching here; StatsService layers both on top.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import fields
from datetime import datetime, timezone
from operator import attrgetter
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .date_windows import DateWindow
from .formulas import efficiency_score, percentage, round_half_up
from .models import (
    AggregatedPlayerStats,
    GameOutcome,
    GameResult,
    PlayerGameLine,
    RawPlayerGameStat,
    TeamSide,
    TeamTotals,
    TopPlayers,
)

logger = logging.getLogger(__name__)

StatGame = Tuple[RawPlayerGameStat, GameOutcome]

LAST_N_GAMES = 5
TOP_EFFICIENCY_COUNT = 3

STANDINGS_COLUMNS: Tuple[str, ...] = tuple(
    f.name for f in fields(AggregatedPlayerStats) if f.name != "player_id"
)
DEFAULT_STANDINGS_COLUMN = "avg_efficiency"

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def efficiency(stat: RawPlayerGameStat) -> float:
    """Unrounded single-game efficiency for one stat row."""
    return efficiency_score(
        two_point_made=stat.two_point_made,
        two_point_attempts=stat.two_point_attempts,
        three_point_made=stat.three_point_made,
        three_point_attempts=stat.three_point_attempts,
        assists=stat.assists,
        defensive_rebounds=stat.defensive_rebounds,
        offensive_rebounds=stat.offensive_rebounds,
    )


def classify(stat: RawPlayerGameStat, game: GameOutcome) -> GameResult:
    return game.result_for(stat.team_side)


def _recency_key(pair: StatGame):
    game = pair[1]
    return (game.date or _UNDATED, game.game_id)


def pair_with_games(
    stats: Iterable[RawPlayerGameStat],
    games_by_id: Mapping[str, GameOutcome],
) -> List[StatGame]:
    """
    Join stat rows to their games, most recent game first.

    Rows pointing at a game that is not in games_by_id (deleted game, or a
    game outside the current filter) are dropped. Undated games sort last.
    """
    pairs: List[StatGame] = []
    orphans = 0
    for stat in stats:
        game = games_by_id.get(stat.game_id)
        if game is None:
            orphans += 1
            continue
        pairs.append((stat, game))

    if orphans:
        logger.debug("skipped %d stat rows outside the selected games", orphans)

    pairs.sort(key=_recency_key, reverse=True)
    return pairs


def current_win_streak(results: Sequence[GameResult]) -> int:
    """Consecutive wins counting back from the most recent game (results most-recent-first)."""
    streak = 0
    for result in results:
        if result is not GameResult.WIN:
            break
        streak += 1
    return streak


def last_n_record(results: Sequence[GameResult], n: int = LAST_N_GAMES) -> Tuple[int, int]:
    """(wins, losses) over the n most recent games; ties count as neither."""
    recent = results[:n]
    wins = sum(1 for r in recent if r is GameResult.WIN)
    losses = sum(1 for r in recent if r is GameResult.LOSS)
    return wins, losses


def aggregate_player(player_id: str, pairs: Sequence[StatGame]) -> Optional[AggregatedPlayerStats]:
    """
    Roll up one player's games (most-recent-first) into an AggregatedPlayerStats.

    Returns None when there are no games; averages are never divided by zero.
    Efficiency is averaged from unrounded per-game values and rounded once.
    """
    games_played = len(pairs)
    if games_played == 0:
        return None

    results = [classify(stat, game) for stat, game in pairs]
    wins = sum(1 for r in results if r is GameResult.WIN)
    losses = sum(1 for r in results if r is GameResult.LOSS)
    last5_wins, last5_losses = last_n_record(results)

    stats = [stat for stat, _ in pairs]
    points = sum(s.total_points for s in stats)
    off_reb = sum(s.offensive_rebounds for s in stats)
    def_reb = sum(s.defensive_rebounds for s in stats)
    assists = sum(s.assists for s in stats)
    two_pa = sum(s.two_point_attempts for s in stats)
    two_pm = sum(s.two_point_made for s in stats)
    three_pa = sum(s.three_point_attempts for s in stats)
    three_pm = sum(s.three_point_made for s in stats)
    eff_total = sum(efficiency(s) for s in stats)

    n = float(games_played)
    return AggregatedPlayerStats(
        player_id=player_id,
        games_played=games_played,
        wins=wins,
        losses=losses,
        win_percentage=percentage(wins, games_played),
        current_win_streak=current_win_streak(results),
        last5_wins=last5_wins,
        last5_losses=last5_losses,
        total_points=points,
        total_rebounds=off_reb + def_reb,
        total_offensive_rebounds=off_reb,
        total_defensive_rebounds=def_reb,
        total_assists=assists,
        two_point_attempts=two_pa,
        two_point_made=two_pm,
        three_point_attempts=three_pa,
        three_point_made=three_pm,
        avg_points=points / n,
        avg_rebounds=(off_reb + def_reb) / n,
        avg_offensive_rebounds=off_reb / n,
        avg_defensive_rebounds=def_reb / n,
        avg_assists=assists / n,
        avg_efficiency=round_half_up(eff_total / n, 1),
        avg_two_point_attempts=two_pa / n,
        avg_two_point_made=two_pm / n,
        two_point_percentage=percentage(two_pm, two_pa),
        avg_three_point_attempts=three_pa / n,
        avg_three_point_made=three_pm / n,
        three_point_percentage=percentage(three_pm, three_pa),
        shooting_percentage=percentage(two_pm + three_pm, two_pa + three_pa),
    )


def aggregate_players(
    stats: Iterable[RawPlayerGameStat],
    games_by_id: Mapping[str, GameOutcome],
) -> List[AggregatedPlayerStats]:
    """Aggregate every player present in stats over games_by_id, ordered by player id."""
    by_player: Dict[str, List[RawPlayerGameStat]] = defaultdict(list)
    for stat in stats:
        by_player[stat.player_id].append(stat)

    out: List[AggregatedPlayerStats] = []
    for player_id in sorted(by_player):
        agg = aggregate_player(player_id, pair_with_games(by_player[player_id], games_by_id))
        if agg is not None:
            out.append(agg)
    return out


def team_totals(stats: Iterable[RawPlayerGameStat], side: TeamSide) -> TeamTotals:
    """Sum one side's rows of a single game into a team box score."""
    rows = [s for s in stats if s.team_side is TeamSide(side)]
    two_pa = sum(s.two_point_attempts for s in rows)
    two_pm = sum(s.two_point_made for s in rows)
    three_pa = sum(s.three_point_attempts for s in rows)
    three_pm = sum(s.three_point_made for s in rows)
    off_reb = sum(s.offensive_rebounds for s in rows)
    def_reb = sum(s.defensive_rebounds for s in rows)
    return TeamTotals(
        team_side=TeamSide(side),
        players=len(rows),
        two_point_attempts=two_pa,
        two_point_made=two_pm,
        two_point_percentage=percentage(two_pm, two_pa),
        three_point_attempts=three_pa,
        three_point_made=three_pm,
        three_point_percentage=percentage(three_pm, three_pa),
        offensive_rebounds=off_reb,
        defensive_rebounds=def_reb,
        total_rebounds=off_reb + def_reb,
        assists=sum(s.assists for s in rows),
        total_points=two_pm * 2 + three_pm * 3,
    )


def game_lines(
    stats: Iterable[RawPlayerGameStat],
    games_by_id: Mapping[str, GameOutcome],
) -> List[PlayerGameLine]:
    """Per-game lines, most recent first, each with its own rounded efficiency."""
    return [
        PlayerGameLine(
            stat=stat,
            game_date=game.date,
            game_number=game.game_number,
            result=classify(stat, game),
            efficiency=round_half_up(efficiency(stat), 1),
        )
        for stat, game in pair_with_games(stats, games_by_id)
    ]


def filter_games_by_season(games: Iterable[GameOutcome], season_id: Optional[str]) -> List[GameOutcome]:
    """Games belonging to season_id; None or "all" keeps every game."""
    if not season_id or season_id == "all":
        return list(games)
    return [g for g in games if g.season_id == season_id]


def filter_games_by_window(games: Iterable[GameOutcome], window: DateWindow) -> List[GameOutcome]:
    """Games whose date falls inside window (bounds inclusive); undated games are excluded."""
    return [g for g in games if window.contains(g.date)]


def _leader(
    players: Iterable[AggregatedPlayerStats],
    key: Callable[[AggregatedPlayerStats], float],
) -> Optional[AggregatedPlayerStats]:
    """Highest key wins; the first player encountered keeps an exact tie."""
    best: Optional[AggregatedPlayerStats] = None
    for p in players:
        if best is None or key(p) > key(best):
            best = p
    return best


def find_top_players(
    aggregates: Sequence[AggregatedPlayerStats],
    window: DateWindow,
    min_attempts: int = 5,
) -> TopPlayers:
    """
    Pick category leaders from per-player aggregates over a window.

    Players below min_attempts (field-goal attempts for best shooter, 2PA for
    2P%, 3PA for 3P%) are left out of the percentage leaders only.
    """
    players = list(aggregates)
    shooters = [p for p in players if p.two_point_attempts + p.three_point_attempts >= min_attempts]
    two_point_shooters = [p for p in players if p.two_point_attempts >= min_attempts]
    three_point_shooters = [p for p in players if p.three_point_attempts >= min_attempts]

    return TopPlayers(
        window_start=window.start,
        window_end=window.end,
        top_scorer=_leader(players, attrgetter("total_points")),
        best_shooter=_leader(shooters, attrgetter("shooting_percentage")),
        most_rebounds=_leader(players, attrgetter("total_rebounds")),
        most_assists=_leader(players, attrgetter("total_assists")),
        top_efficiency=tuple(
            sorted(players, key=attrgetter("avg_efficiency"), reverse=True)[:TOP_EFFICIENCY_COUNT]
        ),
        dominant_two_point=_leader(two_point_shooters, attrgetter("two_point_percentage")),
        dominant_three_point=_leader(three_point_shooters, attrgetter("three_point_percentage")),
        all_players=tuple(players),
    )


def sort_standings(
    rows: Sequence[AggregatedPlayerStats],
    column: str = DEFAULT_STANDINGS_COLUMN,
    descending: bool = True,
) -> List[AggregatedPlayerStats]:
    """
    Sort a standings table by one column.

    The sort is stable in both directions: rows with equal values keep their
    incoming order.
    """
    if column not in STANDINGS_COLUMNS:
        raise ValueError(f"unknown standings column {column!r}")
    return sorted(rows, key=attrgetter(column), reverse=descending)
