from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional, Sequence

import pytest

from factories import make_game, make_season, make_stat
from league_board.cache import TieredCache
from league_board.errors import UpstreamError
from league_board.models import GameOutcome, RankBallot, RawPlayerGameStat, Season


class FakeLeagueSource:
    """In-memory backend; set fail=True to make every call raise UpstreamError."""

    def __init__(
        self,
        games: Sequence[GameOutcome] = (),
        stats: Sequence[RawPlayerGameStat] = (),
        seasons: Sequence[Season] = (),
        ballots: Sequence[RankBallot] = (),
    ) -> None:
        self.games: Dict[str, GameOutcome] = {g.game_id: g for g in games}
        self.stats: List[RawPlayerGameStat] = list(stats)
        self.seasons: List[Season] = list(seasons)
        self.ballots: Dict[tuple, RankBallot] = {
            (b.game_id, b.voter_id, b.rated_player_id): b for b in ballots
        }
        self.fail = False
        self.calls: Counter = Counter()

    def _call(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail:
            raise UpstreamError(f"{name} unavailable")

    def list_games(self) -> List[GameOutcome]:
        self._call("list_games")
        return list(self.games.values())

    def get_game(self, game_id: str) -> Optional[GameOutcome]:
        self._call("get_game")
        return self.games.get(game_id)

    def list_seasons(self) -> List[Season]:
        self._call("list_seasons")
        return list(self.seasons)

    def stats_for_player(self, player_id: str) -> List[RawPlayerGameStat]:
        self._call("stats_for_player")
        return [s for s in self.stats if s.player_id == player_id]

    def stats_for_players(self, player_ids: Sequence[str]) -> Dict[str, List[RawPlayerGameStat]]:
        self._call("stats_for_players")
        return {pid: [s for s in self.stats if s.player_id == pid] for pid in player_ids}

    def stats_for_game(self, game_id: str) -> List[RawPlayerGameStat]:
        self._call("stats_for_game")
        return [s for s in self.stats if s.game_id == game_id]

    def stats_for_games(self, game_ids: Sequence[str]) -> List[RawPlayerGameStat]:
        self._call("stats_for_games")
        wanted = set(game_ids)
        return [s for s in self.stats if s.game_id in wanted]

    def ballots_for_game(self, game_id: str) -> List[RankBallot]:
        self._call("ballots_for_game")
        return [b for b in self.ballots.values() if b.game_id == game_id]

    def save_ballot(self, ballot: RankBallot) -> RankBallot:
        self._call("save_ballot")
        self.ballots[(ballot.game_id, ballot.voter_id, ballot.rated_player_id)] = ballot
        return ballot


class ManualClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> TieredCache:
    return TieredCache(clock=clock)


@pytest.fixture
def league() -> FakeLeagueSource:
    """
    Three games in season s1 (newest last) and one in s2.

      g1: A 21-15 (p1, p2 on A; p3, p4 on B)
      g2: A 10-21
      g3: A 21-21 (tie)
      g4: A 21-5, season s2
    """
    games = [
        make_game("g1", 21, 15, days_after=0),
        make_game("g2", 10, 21, days_after=2),
        make_game("g3", 21, 21, days_after=4),
        make_game("g4", 21, 5, days_after=40, season_id="s2"),
    ]
    stats = []
    for gid in ("g1", "g2", "g3", "g4"):
        stats += [
            make_stat("p1", gid, "TEAM_A", two_pa=8, two_pm=4, three_pa=5, three_pm=2, off_reb=2, def_reb=4, assists=3),
            make_stat("p2", gid, "TEAM_A", two_pa=4, two_pm=1, three_pa=1, three_pm=0, def_reb=6, assists=1),
            make_stat("p3", gid, "TEAM_B", two_pa=6, two_pm=5, three_pa=3, three_pm=3, off_reb=1, assists=5),
            make_stat("p4", gid, "TEAM_B", two_pa=2, two_pm=0, def_reb=2),
        ]
    seasons = [
        make_season("s1", "Winter 2025", begin_days_after=-10),
        make_season("s2", "Spring 2025", begin_days_after=30, is_active=True),
    ]
    return FakeLeagueSource(games=games, stats=stats, seasons=seasons)
