from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from league_board.models import GameOutcome, RankBallot, RawPlayerGameStat, Season

BASE_DATE = datetime(2025, 3, 1, 19, 0, tzinfo=timezone.utc)


def make_game(
    game_id: str,
    team_a_score: int,
    team_b_score: int,
    days_after: int = 0,
    season_id: Optional[str] = "s1",
    when: Optional[datetime] = None,
) -> GameOutcome:
    return GameOutcome(
        game_id=game_id,
        team_a_score=team_a_score,
        team_b_score=team_b_score,
        date=when if when is not None else BASE_DATE + timedelta(days=days_after),
        season_id=season_id,
        game_number=game_id.upper(),
    )


def make_stat(
    player_id: str,
    game_id: str,
    side: str = "TEAM_A",
    two_pa: int = 0,
    two_pm: int = 0,
    three_pa: int = 0,
    three_pm: int = 0,
    off_reb: int = 0,
    def_reb: int = 0,
    assists: int = 0,
) -> RawPlayerGameStat:
    return RawPlayerGameStat(
        stat_id=f"{game_id}-{player_id}",
        game_id=game_id,
        player_id=player_id,
        team_side=side,
        two_point_attempts=two_pa,
        two_point_made=two_pm,
        three_point_attempts=three_pa,
        three_point_made=three_pm,
        offensive_rebounds=off_reb,
        defensive_rebounds=def_reb,
        assists=assists,
    )


def make_ballot(voter_id: str, rated_player_id: str, rank: int, game_id: str = "g1") -> RankBallot:
    return RankBallot(game_id=game_id, voter_id=voter_id, rated_player_id=rated_player_id, rank=rank)


def make_season(season_id: str, name: str, begin_days_after: int, is_active: bool = False) -> Season:
    return Season(
        season_id=season_id,
        name=name,
        begin_date=BASE_DATE + timedelta(days=begin_days_after),
        is_active=is_active,
    )
