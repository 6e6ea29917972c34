import pytest

from league_board.cache import TieredCache
from league_board.config import AppConfig


def test_default_ttls() -> None:
    ttls = AppConfig().cache_ttls()
    assert ttls["stats"] == 180
    assert ttls["games"] == 300
    assert ttls["seasons"] == 1800
    assert ttls["topPlayers"] == 120


def test_ttl_overrides_from_json_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_TTLS_JSON", '{"stats": 60, "bogus": 5, "games": -1, "seasons": "x"}')
    cfg = AppConfig()
    assert cfg.cache_ttls()["stats"] == 60
    assert cfg.cache_ttls()["games"] == cfg.games_ttl_seconds
    assert "bogus" not in cfg.cache_ttls()
    assert TieredCache(ttls=cfg.cache_ttls()).ttl_for("stats") == 60


def test_invalid_json_env_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_TTLS_JSON", "{not json")
    assert AppConfig().ttl_overrides == {}


def test_non_positive_category_ttl_falls_back_to_default() -> None:
    cfg = AppConfig(stats_ttl_seconds=0, games_ttl_seconds=-30, seasons_ttl_seconds=90)
    ttls = cfg.cache_ttls()
    assert ttls["stats"] == 180
    assert ttls["games"] == 300
    assert ttls["seasons"] == 90

    cache = TieredCache(ttls=ttls)
    cache.set("stats:player:p1", {"points": 3}, category="stats")
    assert cache.get("stats:player:p1") == {"points": 3}
