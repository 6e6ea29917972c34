# league_board/services/ratings_service.py
"""
Per-game MVP voting.

Responsibilities:
  - validate ballots against the game's box score before they are stored
  - write ballots through to the backend (which upserts per voter/candidate)
  - cache the aggregated summary and drop it whenever a ballot changes
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from ..cache import CacheCategory, TieredCache
from ..cache_keys import CacheKeys
from ..errors import InvalidRecordError
from ..models import GameRatingSummary, RankBallot
from ..source import LeagueSource
from ..voting import BallotBox, validate_ballot
from .cache_aside import read_through

logger = logging.getLogger(__name__)


@dataclass
class RatingsService:
    """Service responsible for ballot submission and MVP summaries."""

    source: LeagueSource
    cache: TieredCache

    def _roster(self, game_id: str) -> List[str]:
        roster = sorted({s.player_id for s in self.source.stats_for_game(game_id)})
        if not roster:
            raise InvalidRecordError(f"game {game_id!r} has no box score to vote on")
        return roster

    def _ballot_box(self, game_id: str) -> BallotBox:
        box = BallotBox(game_id)
        box.submit_many(b for b in self.source.ballots_for_game(game_id) if b.game_id == game_id)
        return box

    def get_game_ratings(self, game_id: str, refresh: bool = False) -> GameRatingSummary:
        """Average rank per player and the MVP for one game."""
        return read_through(
            self.cache, CacheKeys.ratings(game_id), CacheCategory.RATINGS,
            lambda: self._ballot_box(game_id).summarize(),
            lambda summary: summary.to_dict(), GameRatingSummary.from_dict,
            refresh=refresh,
        )

    def submit_ballot(self, ballot: RankBallot) -> RankBallot:
        """
        Validate and store one ballot, replacing the voter's earlier rank for the same player.

        Raises:
            InvalidRecordError when the rated player did not play or the rank is out of range.
        """
        validate_ballot(ballot, self._roster(ballot.game_id))
        try:
            saved = self.source.save_ballot(ballot)
        finally:
            self.cache.invalidate(CacheKeys.ratings(ballot.game_id))
        logger.info("ballot stored: game=%s voter=%s rated=%s rank=%d",
                    ballot.game_id, ballot.voter_id, ballot.rated_player_id, ballot.rank)
        return saved

    def submit_ranking(self, game_id: str, voter_id: str, ranking: Sequence[str]) -> List[RankBallot]:
        """
        Store a voter's full ranking for a game, best player first.

        The ranking must name every other player of the game exactly once;
        ranks 1..N are assigned in order.
        """
        roster = self._roster(game_id)
        expected = set(roster) - {voter_id}
        if len(set(ranking)) != len(ranking):
            raise InvalidRecordError("ranking names a player more than once")
        if set(ranking) != expected:
            missing = sorted(expected - set(ranking))
            extra = sorted(set(ranking) - expected)
            raise InvalidRecordError(f"ranking must cover every other player (missing={missing}, unexpected={extra})")

        ballots = [
            RankBallot(game_id=game_id, voter_id=voter_id, rated_player_id=pid, rank=i)
            for i, pid in enumerate(ranking, start=1)
        ]
        # ballots are stored one by one; a failure partway still leaves earlier ones saved
        try:
            saved = [self.source.save_ballot(b) for b in ballots]
        finally:
            self.cache.invalidate(CacheKeys.ratings(game_id))
        logger.info("ranking stored: game=%s voter=%s players=%d", game_id, voter_id, len(saved))
        return saved

    def get_voter_ballots(self, game_id: str, voter_id: str) -> List[RankBallot]:
        """The ranks a voter has cast in a game, best first."""
        return self._ballot_box(game_id).ballots_by_voter(voter_id)

    def get_player_ballots(self, game_id: str, player_id: str) -> List[RankBallot]:
        """The ranks a player has received in a game."""
        return self._ballot_box(game_id).ballots_for_player(player_id)
