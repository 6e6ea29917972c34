from datetime import datetime, timezone

import pytest
from factories import make_game, make_stat

from league_board.aggregation import (
    STANDINGS_COLUMNS,
    aggregate_player,
    aggregate_players,
    current_win_streak,
    efficiency,
    filter_games_by_season,
    filter_games_by_window,
    find_top_players,
    game_lines,
    last_n_record,
    pair_with_games,
    sort_standings,
    team_totals,
)
from league_board.date_windows import DateWindow
from league_board.models import GameResult, TeamSide

W, L, T = GameResult.WIN, GameResult.LOSS, GameResult.TIE

WINDOW = DateWindow(
    datetime(2025, 1, 1, tzinfo=timezone.utc),
    datetime(2025, 12, 31, tzinfo=timezone.utc),
)


def _games(*games):
    return {g.game_id: g for g in games}


def test_single_game_efficiency() -> None:
    stat = make_stat("p1", "g1", two_pa=8, two_pm=4, three_pa=5, three_pm=2, off_reb=2, def_reb=4, assists=3)
    assert efficiency(stat) == pytest.approx(17.3)


@pytest.mark.parametrize(
    "results, streak",
    [([W, W, L, W], 2), ([L, W, W], 0), ([W, W, W], 3), ([], 0), ([W, T, W], 1)],
)
def test_current_win_streak(results, streak) -> None:
    assert current_win_streak(results) == streak


def test_last_five_ignores_older_games_and_ties() -> None:
    assert last_n_record([W, L, T, W, W, L, L]) == (3, 1)
    assert last_n_record([]) == (0, 0)


def test_pairs_are_most_recent_first_and_drop_orphans() -> None:
    games = _games(make_game("g1", 21, 10, days_after=0), make_game("g2", 21, 10, days_after=5))
    stats = [make_stat("p1", "g1"), make_stat("p1", "deleted"), make_stat("p1", "g2")]

    pairs = pair_with_games(stats, games)

    assert [g.game_id for _, g in pairs] == ["g2", "g1"]


def test_aggregate_player_rollup() -> None:
    games = _games(
        make_game("g1", 21, 15, days_after=0),
        make_game("g2", 10, 21, days_after=1),
        make_game("g3", 21, 12, days_after=2),
        make_game("g4", 21, 19, days_after=3),
    )
    stats = [
        make_stat("p1", "g1", two_pa=8, two_pm=4, three_pa=5, three_pm=2, off_reb=2, def_reb=4, assists=3),
        make_stat("p1", "g2", two_pa=4, two_pm=2, assists=2),
        make_stat("p1", "g3", three_pa=2, three_pm=1, def_reb=1),
        make_stat("p1", "g4", two_pa=2, two_pm=2),
    ]

    agg = aggregate_player("p1", pair_with_games(stats, games))

    assert agg.games_played == 4
    assert (agg.wins, agg.losses) == (3, 1)
    assert agg.win_percentage == 75.0
    assert agg.current_win_streak == 2  # g4, g3 won, g2 lost
    assert (agg.last5_wins, agg.last5_losses) == (3, 1)
    assert agg.total_points == 14 + 4 + 3 + 4
    assert agg.avg_points == pytest.approx(25 / 4)
    assert agg.total_rebounds == 7
    assert agg.two_point_attempts == 14 and agg.two_point_made == 8
    assert agg.two_point_percentage == pytest.approx(8 / 14 * 100)
    assert agg.three_point_percentage == pytest.approx(3 / 7 * 100)
    assert agg.shooting_percentage == pytest.approx(11 / 21 * 100)
    # 17.3 + 5.4 + 2.6 + 4.0 = 29.3 -> 7.325 -> 7.3
    assert agg.avg_efficiency == 7.3


def test_aggregate_player_without_games_is_none() -> None:
    assert aggregate_player("p1", []) is None


def test_zero_attempts_give_zero_percentages() -> None:
    games = _games(make_game("g1", 21, 15))
    agg = aggregate_player("p1", pair_with_games([make_stat("p1", "g1", assists=4)], games))
    assert agg.two_point_percentage == 0.0
    assert agg.three_point_percentage == 0.0
    assert agg.shooting_percentage == 0.0


def test_tied_game_counts_as_played_but_not_win_or_loss() -> None:
    games = _games(make_game("g1", 21, 15, days_after=0), make_game("g2", 15, 15, days_after=1))
    stats = [make_stat("p1", "g1"), make_stat("p1", "g2")]

    agg = aggregate_player("p1", pair_with_games(stats, games))

    assert agg.games_played == 2
    assert (agg.wins, agg.losses) == (1, 0)
    assert agg.current_win_streak == 0
    assert (agg.last5_wins, agg.last5_losses) == (1, 0)


def test_team_b_wins_when_it_outscores_team_a() -> None:
    games = _games(make_game("g1", 10, 21))
    agg = aggregate_player("p3", pair_with_games([make_stat("p3", "g1", side="TEAM_B")], games))
    assert (agg.wins, agg.losses) == (1, 0)


def test_aggregate_players_orders_by_player_id() -> None:
    games = _games(make_game("g1", 21, 15))
    stats = [make_stat("p2", "g1"), make_stat("p1", "g1"), make_stat("p9", "gone")]
    assert [a.player_id for a in aggregate_players(stats, games)] == ["p1", "p2"]


def test_team_totals_sum_one_side() -> None:
    stats = [
        make_stat("p1", "g1", "TEAM_A", two_pa=4, two_pm=2, three_pa=2, three_pm=1, off_reb=1, assists=2),
        make_stat("p2", "g1", "TEAM_A", two_pa=2, two_pm=2, def_reb=3),
        make_stat("p3", "g1", "TEAM_B", two_pa=9, two_pm=9),
    ]
    totals = team_totals(stats, TeamSide.TEAM_A)
    assert totals.players == 2
    assert totals.total_points == 4 * 2 + 1 * 3
    assert totals.two_point_percentage == pytest.approx(4 / 6 * 100)
    assert totals.total_rebounds == 4
    assert totals.assists == 2


def test_game_lines_round_each_game() -> None:
    games = _games(make_game("g1", 21, 15, days_after=0), make_game("g2", 21, 21, days_after=1))
    stats = [
        make_stat("p1", "g1", two_pa=8, two_pm=4, three_pa=5, three_pm=2, off_reb=2, def_reb=4, assists=3),
        make_stat("p1", "g2", two_pa=1, two_pm=0),
    ]
    lines = game_lines(stats, games)
    assert [(line.stat.game_id, line.result, line.efficiency) for line in lines] == [
        ("g2", T, -0.8),
        ("g1", W, 17.3),
    ]


def test_season_and_window_filters() -> None:
    games = [
        make_game("g1", 1, 0, season_id="s1", when=datetime(2025, 3, 1, tzinfo=timezone.utc)),
        make_game("g2", 1, 0, season_id="s2", when=datetime(2024, 6, 1, tzinfo=timezone.utc)),
        make_game("g3", 1, 0, season_id="s1"),
    ]
    assert [g.game_id for g in filter_games_by_season(games, "s1")] == ["g1", "g3"]
    assert len(filter_games_by_season(games, "all")) == 3
    assert len(filter_games_by_season(games, None)) == 3
    assert [g.game_id for g in filter_games_by_window(games, WINDOW)] == ["g1", "g3"]


def test_min_attempts_excludes_perfect_low_volume_shooter() -> None:
    games = _games(make_game("g1", 21, 15))
    stats = [
        make_stat("p1", "g1", three_pa=3, three_pm=3),
        make_stat("p2", "g1", three_pa=10, three_pm=4, two_pa=6, two_pm=3),
    ]
    top = find_top_players(aggregate_players(stats, games), WINDOW, min_attempts=5)

    assert top.dominant_three_point.player_id == "p2"
    assert top.best_shooter.player_id == "p2"
    assert top.dominant_two_point.player_id == "p2"
    # count leaders have no threshold
    assert top.top_scorer.player_id == "p2"
    assert [p.player_id for p in top.all_players] == ["p1", "p2"]


def test_percentage_leaders_empty_when_nobody_qualifies() -> None:
    games = _games(make_game("g1", 21, 15))
    top = find_top_players(aggregate_players([make_stat("p1", "g1", two_pa=2, two_pm=2)], games), WINDOW)
    assert top.best_shooter is None
    assert top.dominant_two_point is None
    assert top.dominant_three_point is None
    assert top.top_scorer.player_id == "p1"


def test_top_efficiency_keeps_three_best() -> None:
    games = _games(make_game("g1", 21, 15))
    stats = [make_stat(f"p{i}", "g1", two_pa=i, two_pm=i) for i in range(1, 6)]
    top = find_top_players(aggregate_players(stats, games), WINDOW)
    assert [p.player_id for p in top.top_efficiency] == ["p5", "p4", "p3"]


def test_sort_standings_is_stable_and_validated() -> None:
    games = _games(make_game("g1", 21, 15))
    stats = [
        make_stat("p1", "g1", assists=2),
        make_stat("p2", "g1", assists=5),
        make_stat("p3", "g1", assists=2),
    ]
    rows = aggregate_players(stats, games)

    assert [r.player_id for r in sort_standings(rows, "total_assists")] == ["p2", "p1", "p3"]
    assert [r.player_id for r in sort_standings(rows, "total_assists", descending=False)] == ["p1", "p3", "p2"]
    assert "player_id" not in STANDINGS_COLUMNS
    with pytest.raises(ValueError):
        sort_standings(rows, "shoe_size")
