# league_board/voting.py
"""
Ranked-voting aggregation for per-game MVP.

Each voter ranks the other players of a game 1..N (1 = best). A player's
score is the mean of the ranks they received; lowest mean wins MVP.

Ballots are keyed by (voter, rated player): submitting again for the same
pair replaces the earlier rank, so a revised ranking is never double counted.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from .errors import InvalidRecordError
from .models import GameRatingSummary, PlayerRating, RankBallot


def _rating_order(rating: PlayerRating):
    # lower average first, then more votes, then player id
    return (rating.average_rank, -rating.total_votes, rating.player_id)


class BallotBox:
    """Latest ballot per (voter, rated player) for a single game."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        self._ranks: Dict[Tuple[str, str], RankBallot] = {}

    def __len__(self) -> int:
        return len(self._ranks)

    def submit(self, ballot: RankBallot) -> None:
        """Insert or replace the ballot for (voter, rated player)."""
        if ballot.game_id != self.game_id:
            raise InvalidRecordError(
                f"ballot for game {ballot.game_id!r} submitted to game {self.game_id!r}"
            )
        self._ranks[(ballot.voter_id, ballot.rated_player_id)] = ballot

    def submit_many(self, ballots: Iterable[RankBallot]) -> None:
        for ballot in ballots:
            self.submit(ballot)

    def ballots(self) -> List[RankBallot]:
        return list(self._ranks.values())

    def ballots_by_voter(self, voter_id: str) -> List[RankBallot]:
        """Every rank voter_id cast in this game, best rank first."""
        return sorted(
            (b for b in self._ranks.values() if b.voter_id == voter_id),
            key=lambda b: (b.rank, b.rated_player_id),
        )

    def ballots_for_player(self, player_id: str) -> List[RankBallot]:
        """Every rank player_id received in this game, by voter id."""
        return sorted(
            (b for b in self._ranks.values() if b.rated_player_id == player_id),
            key=lambda b: b.voter_id,
        )

    def summarize(self) -> GameRatingSummary:
        """
        Aggregate the current ballots.

        MVP is the lowest average rank; ties go to the player with more votes,
        then to the lexicographically smallest player id. No ballots means no MVP.
        """
        totals: Dict[str, List[int]] = defaultdict(list)
        voters = set()
        for ballot in self._ranks.values():
            totals[ballot.rated_player_id].append(ballot.rank)
            voters.add(ballot.voter_id)

        ratings = sorted(
            (
                PlayerRating(player_id=pid, average_rank=sum(ranks) / len(ranks), total_votes=len(ranks))
                for pid, ranks in totals.items()
            ),
            key=_rating_order,
        )

        mvp = None
        if ratings:
            mvp = PlayerRating(
                player_id=ratings[0].player_id,
                average_rank=ratings[0].average_rank,
                total_votes=ratings[0].total_votes,
                is_mvp=True,
            )
            ratings[0] = mvp

        return GameRatingSummary(
            game_id=self.game_id,
            ratings=tuple(ratings),
            mvp=mvp,
            total_voters=len(voters),
            total_players=len(totals),
        )


def validate_ballot(ballot: RankBallot, roster: Sequence[str]) -> None:
    """
    Check one ballot against the players who played in the game.

    The rated player must be on the roster, and the rank cannot exceed the
    number of players the voter can rate (the roster minus the voter).
    Whether a voter's full ballot set is a gap-free 1..N permutation is not
    checked here.
    """
    players = set(roster)
    if ballot.rated_player_id not in players:
        raise InvalidRecordError(
            f"player {ballot.rated_player_id!r} did not play in game {ballot.game_id!r}"
        )
    rateable = len(players - {ballot.voter_id})
    if ballot.rank > rateable:
        raise InvalidRecordError(f"rank {ballot.rank} exceeds the {rateable} rateable players")
