# league_board/config.py
"""
Configuration for the league leaderboard service.

This module centralizes all tunable settings (timezone, backend API base URL,
durable cache location, per-category cache TTLs, leaderboard thresholds and
fetch fan-out width).
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from typing import Dict

DEFAULT_TTLS: Dict[str, int] = {
    "stats": 180,
    "games": 300,
    "seasons": 1800,
    "topPlayers": 120,
    "ratings": 180,
    "players": 600,
    "default": 300,
}

def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_json(name: str, default):
    """
    Read a JSON environment variable and parse it.

    Intended for:
      - CACHE_TTLS_JSON: {"stats": 60, "topPlayers": 30, ...}

    Returns default on missing/invalid JSON.
    """
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except Exception:
        return default


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable app configuration.

    Notes on cache config:
      - category TTLs are the only freshness knobs; callers pick a category,
        never a number.
      - an empty CACHE_DIR disables the durable tier (volatile only).
    """

    # Core settings
    tz: str = os.getenv("TZ", "Europe/Istanbul")
    league_api_base: str = os.getenv("LEAGUE_API_BASE", "http://localhost:5000/api")
    request_timeout_seconds: int = _env_int("LEAGUE_API_TIMEOUT_SECONDS", 10)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Cache controls
    cache_dir: str = os.getenv("CACHE_DIR", ".cache/league_board")
    stats_ttl_seconds: int = _env_int("STATS_CACHE_TTL_SECONDS", DEFAULT_TTLS["stats"])
    games_ttl_seconds: int = _env_int("GAMES_CACHE_TTL_SECONDS", DEFAULT_TTLS["games"])
    seasons_ttl_seconds: int = _env_int("SEASONS_CACHE_TTL_SECONDS", DEFAULT_TTLS["seasons"])
    top_players_ttl_seconds: int = _env_int("TOP_PLAYERS_CACHE_TTL_SECONDS", DEFAULT_TTLS["topPlayers"])
    ratings_ttl_seconds: int = _env_int("RATINGS_CACHE_TTL_SECONDS", DEFAULT_TTLS["ratings"])
    players_ttl_seconds: int = _env_int("PLAYERS_CACHE_TTL_SECONDS", DEFAULT_TTLS["players"])
    default_ttl_seconds: int = _env_int("DEFAULT_CACHE_TTL_SECONDS", DEFAULT_TTLS["default"])

    # Leaderboard defaults
    min_shooting_attempts: int = _env_int("MIN_SHOOTING_ATTEMPTS", 5)
    default_top_players_days: int = _env_int("TOP_PLAYERS_DAYS", 30)

    # Upstream fan-out width
    fetch_workers: int = _env_int("FETCH_WORKERS", 8)

    # Per-category overrides layered on top of the *_ttl_seconds fields
    ttl_overrides: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        """
        Override TTLs from the optional CACHE_TTLS_JSON env var.

        Only positive integer values for known category names are accepted;
        anything else is ignored.
        """
        raw = _env_json("CACHE_TTLS_JSON", None)
        if isinstance(raw, dict):
            known = set(self._base_ttls())
            parsed = {
                k: v for k, v in raw.items()
                if k in known and isinstance(v, int) and not isinstance(v, bool) and v > 0
            }
            if parsed:
                # dataclass frozen => use object.__setattr__
                object.__setattr__(self, "ttl_overrides", {**self.ttl_overrides, **parsed})

    def _base_ttls(self) -> Dict[str, int]:
        configured = {
            "stats": self.stats_ttl_seconds,
            "games": self.games_ttl_seconds,
            "seasons": self.seasons_ttl_seconds,
            "topPlayers": self.top_players_ttl_seconds,
            "ratings": self.ratings_ttl_seconds,
            "players": self.players_ttl_seconds,
            "default": self.default_ttl_seconds,
        }
        # non-positive TTLs would make every cache write fail
        return {k: v if v > 0 else DEFAULT_TTLS[k] for k, v in configured.items()}

    def cache_ttls(self) -> Dict[str, float]:
        """Return the category -> TTL seconds map handed to the cache."""
        ttls = self._base_ttls()
        ttls.update(self.ttl_overrides)
        return {k: float(v) for k, v in ttls.items()}
