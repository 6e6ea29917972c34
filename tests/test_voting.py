import pytest
from factories import make_ballot

from league_board.errors import InvalidRecordError
from league_board.models import RankBallot
from league_board.voting import BallotBox, validate_ballot


def test_resubmitting_replaces_earlier_rank() -> None:
    box = BallotBox("g1")
    box.submit(make_ballot("v1", "p1", 1))
    box.submit(make_ballot("v1", "p1", 3))

    summary = box.summarize()

    assert len(box) == 1
    assert summary.ratings[0].player_id == "p1"
    assert summary.ratings[0].average_rank == 3.0
    assert summary.ratings[0].total_votes == 1


def test_lowest_average_rank_is_mvp() -> None:
    box = BallotBox("g1")
    box.submit_many(
        [
            make_ballot("v1", "p1", 1),
            make_ballot("v2", "p1", 2),
            make_ballot("v1", "p2", 2),
            make_ballot("v2", "p2", 2),
        ]
    )

    summary = box.summarize()

    assert summary.mvp.player_id == "p1"
    assert summary.mvp.average_rank == 1.5
    assert summary.mvp.is_mvp
    assert [r.player_id for r in summary.ratings] == ["p1", "p2"]
    assert summary.ratings[0].is_mvp and not summary.ratings[1].is_mvp
    assert (summary.total_voters, summary.total_players) == (2, 2)


def test_mvp_tie_break_prefers_more_votes_then_player_id() -> None:
    box = BallotBox("g1")
    box.submit_many(
        [
            make_ballot("v1", "p9", 1),
            make_ballot("v2", "p9", 1),
            make_ballot("v3", "p2", 1),
            make_ballot("v4", "p1", 1),
        ]
    )
    ratings = box.summarize().ratings
    assert [r.player_id for r in ratings] == ["p9", "p1", "p2"]


def test_no_ballots_means_no_mvp() -> None:
    summary = BallotBox("g1").summarize()
    assert summary.mvp is None
    assert list(summary.ratings) == []
    assert summary.total_voters == 0


def test_ballot_for_another_game_is_rejected() -> None:
    with pytest.raises(InvalidRecordError):
        BallotBox("g1").submit(make_ballot("v1", "p1", 1, game_id="g2"))


def test_ballot_listings() -> None:
    box = BallotBox("g1")
    box.submit_many(
        [
            make_ballot("v1", "p2", 2),
            make_ballot("v1", "p3", 1),
            make_ballot("v2", "p3", 2),
        ]
    )
    assert [(b.rated_player_id, b.rank) for b in box.ballots_by_voter("v1")] == [("p3", 1), ("p2", 2)]
    assert [b.voter_id for b in box.ballots_for_player("p3")] == ["v1", "v2"]
    assert len(box.ballots()) == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"rank": 0},
        {"rank": -1},
        {"rank": 1.5},
        {"rank": True},
        {"rated_player_id": "v1"},
    ],
)
def test_malformed_ballots_are_rejected(kwargs) -> None:
    fields = {"game_id": "g1", "voter_id": "v1", "rated_player_id": "p1", "rank": 1}
    fields.update(kwargs)
    with pytest.raises(InvalidRecordError):
        RankBallot(**fields)


def test_validate_ballot_against_roster() -> None:
    roster = ["p1", "p2", "p3", "p4"]
    validate_ballot(make_ballot("p1", "p2", 3), roster)

    with pytest.raises(InvalidRecordError):
        validate_ballot(make_ballot("p1", "p9", 1), roster)
    with pytest.raises(InvalidRecordError):
        validate_ballot(make_ballot("p1", "p2", 4), roster)
    # a spectator can rank every player
    validate_ballot(make_ballot("fan", "p2", 4), roster)
