# league_board/source.py
"""
Read/write contract of the persistence backend that owns the raw records.

LeagueClient implements it over HTTP; tests use an in-memory fake.
Implementations raise UpstreamError on backend failures.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from .models import GameOutcome, RankBallot, RawPlayerGameStat, Season


class LeagueSource(Protocol):
    def list_games(self) -> List[GameOutcome]: ...

    def get_game(self, game_id: str) -> Optional[GameOutcome]: ...

    def list_seasons(self) -> List[Season]: ...

    def stats_for_player(self, player_id: str) -> List[RawPlayerGameStat]: ...

    def stats_for_players(self, player_ids: Sequence[str]) -> Dict[str, List[RawPlayerGameStat]]: ...

    def stats_for_game(self, game_id: str) -> List[RawPlayerGameStat]: ...

    def stats_for_games(self, game_ids: Sequence[str]) -> List[RawPlayerGameStat]: ...

    def ballots_for_game(self, game_id: str) -> List[RankBallot]: ...

    def save_ballot(self, ballot: RankBallot) -> RankBallot: ...
