from datetime import date, datetime, timezone

from league_board.cache_keys import STATS_PREFIX, CacheKeys


def test_bulk_key_is_order_independent() -> None:
    assert CacheKeys.bulk_player_stats(["p3", "p1", "p2"]) == "stats:bulk:p1,p2,p3"
    assert CacheKeys.bulk_player_stats(["p2", "p1", "p2"]) == CacheKeys.bulk_player_stats(["p1", "p2"])


def test_stat_keys_share_the_stats_prefix() -> None:
    keys = [
        CacheKeys.player_stats("p1"),
        CacheKeys.player_season_stats("p1", "s1"),
        CacheKeys.game_stats("g1"),
        CacheKeys.game_log("p1"),
        CacheKeys.game_log("p1", "s1"),
        CacheKeys.bulk_player_stats(["p1"]),
        CacheKeys.top_players(30),
        CacheKeys.monthly_leaders(2025, 2),
        CacheKeys.standings("all"),
        CacheKeys.standings("s1"),
    ]
    assert all(k.startswith(STATS_PREFIX) for k in keys)
    assert len(set(keys)) == len(keys)


def test_key_grammar() -> None:
    assert CacheKeys.player_stats("p1") == "stats:player:p1"
    assert CacheKeys.player_season_stats("p1", "s1") == "stats:player:p1:season:s1"
    assert CacheKeys.top_players(30) == "stats:topPlayers:30"
    assert CacheKeys.top_players(7, date(2025, 3, 9)) == "stats:topPlayers:7:2025-03-09"
    assert CacheKeys.top_players(7, datetime(2025, 3, 9, 23, tzinfo=timezone.utc)) == "stats:topPlayers:7:2025-03-09"
    assert CacheKeys.monthly_leaders(2025, 2) == "stats:topPlayers:month:2025-02"
    assert CacheKeys.standings(None) == CacheKeys.standings("all") == "stats:standings:all"
    assert CacheKeys.all_games() == "games:all"
    assert CacheKeys.all_seasons() == "seasons:all"
    assert CacheKeys.game_teams("g1") == "teams:game:g1"
    assert CacheKeys.ratings("g1") == "ratings:game:g1"
