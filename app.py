# app.py
"""
Flask entrypoint for the league leaderboard service.

Routes (JSON):
  Stats:
    - GET  /api/stats/player/<pid>
    - GET  /api/stats/player/<pid>/season/<sid>
    - GET  /api/stats/player/<pid>/games?season=
    - POST /api/stats/bulk                     {"playerIds": [...]}
    - GET  /api/stats/top-players?days=&asOf=
    - GET  /api/stats/leaders/last-month
    - GET  /api/stats/standings?season=&sort=&order=asc|desc
    - GET  /api/stats/game/<gid>

  Ratings:
    - GET  /api/ratings/game/<gid>
    - GET  /api/ratings/game/<gid>/voter/<vid>
    - GET  /api/ratings/game/<gid>/player/<pid>
    - POST /api/ratings                        one ballot, or {"gameId", "voterId", "ranking": [...]}

  Cache:
    - POST /api/cache/invalidate               {"entity": "stats|game|season|team|ballots|all", ...}

Query parameters (common):
  - refresh=1 bypasses cached results (a cached copy is still served if the backend is down)

Notes:
  - Backend outages answer 503 with {"error": ..., "recoverable": true}.
  - Invalid ballots and bad query values answer 400.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from dateutil import parser as date_parser
from flask import Flask, jsonify, request

from league_board.aggregation import DEFAULT_STANDINGS_COLUMN
from league_board.cache import TieredCache
from league_board.config import AppConfig
from league_board.durable_store import JsonFileStore
from league_board.errors import InvalidRecordError, UpstreamError
from league_board.handlers.leaderboard_handler import LeaderboardHandler
from league_board.league_client import LeagueClient
from league_board.logging_setup import setup_logging
from league_board.models import LeadersViewModel, RankBallot
from league_board.services import InvalidationService, RatingsService, StatsService
from league_board.source import LeagueSource

logger = logging.getLogger(__name__)


def create_app(
    cfg: Optional[AppConfig] = None,
    source: Optional[LeagueSource] = None,
    cache: Optional[TieredCache] = None,
) -> Flask:
    """
    App factory.

    Builds shared dependencies (backend client + cache + services) once per process.
    Tests pass their own source and cache.
    """
    cfg = cfg or AppConfig()
    setup_logging(cfg.log_level)

    if cache is None:
        durable = JsonFileStore(cfg.cache_dir) if cfg.cache_dir else None
        cache = TieredCache(durable=durable, ttls=cfg.cache_ttls())
    if source is None:
        source = LeagueClient(
            cfg.league_api_base,
            timeout=cfg.request_timeout_seconds,
            fetch_workers=cfg.fetch_workers,
        )

    stats = StatsService(
        source=source,
        cache=cache,
        tz_name=cfg.tz,
        min_shooting_attempts=cfg.min_shooting_attempts,
        default_top_players_days=cfg.default_top_players_days,
        fetch_workers=cfg.fetch_workers,
    )
    ratings = RatingsService(source=source, cache=cache)
    invalidation = InvalidationService(cache=cache)
    handler = LeaderboardHandler(stats_service=stats)

    app = Flask(__name__)

    # -------------------------
    # Error mapping
    # -------------------------

    @app.errorhandler(UpstreamError)
    def upstream_error(exc: UpstreamError):
        logger.warning("backend unavailable: %s", exc)
        return jsonify({"error": str(exc), "recoverable": True}), 503

    @app.errorhandler(ValueError)
    def bad_request(exc: ValueError):
        # InvalidRecordError is a ValueError too
        return jsonify({"error": str(exc)}), 400

    # -------------------------
    # Shared parsing helpers
    # -------------------------

    def parse_int(name: str, default: Optional[int]) -> Optional[int]:
        """Parse an integer query param with default fallback."""
        try:
            return int(request.args.get(name, default))
        except Exception:
            return default

    def parse_bool(name: str, default: bool = False) -> bool:
        """
        Parse a boolean-ish query param.

        Treats these as false: 0, false, no, off
        """
        raw = request.args.get(name)
        if raw is None:
            return default
        return raw.strip().lower() not in ("0", "false", "no", "off")

    def parse_refresh() -> bool:
        return parse_bool("refresh", False)

    def json_body() -> Dict[str, Any]:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise InvalidRecordError("request body must be a JSON object")
        return body

    def leaders_to_dict(vm: LeadersViewModel) -> Dict[str, Any]:
        return {
            "generatedAt": vm.now.isoformat(),
            "label": vm.label,
            "leaders": vm.top.to_dict() if vm.top is not None else None,
            "error": vm.error,
            "recoverable": vm.recoverable,
        }

    # -------------------------
    # Player stats
    # -------------------------

    @app.get("/api/stats/player/<player_id>")
    def api_player_stats(player_id: str):
        agg = stats.get_player_career_stats(player_id, refresh=parse_refresh())
        if agg is None:
            return jsonify({"error": f"no games recorded for player {player_id}"}), 404
        return jsonify(agg.to_dict())

    @app.get("/api/stats/player/<player_id>/season/<season_id>")
    def api_player_season_stats(player_id: str, season_id: str):
        agg = stats.get_player_season_stats(player_id, season_id, refresh=parse_refresh())
        if agg is None:
            return jsonify({"error": f"no games recorded for player {player_id} in season {season_id}"}), 404
        return jsonify(agg.to_dict())

    @app.get("/api/stats/player/<player_id>/games")
    def api_player_game_log(player_id: str):
        season_id = (request.args.get("season") or "").strip() or None
        lines = stats.get_player_game_log(player_id, season_id=season_id, refresh=parse_refresh())
        return jsonify({"playerId": player_id, "seasonId": season_id, "games": [line.to_dict() for line in lines]})

    @app.post("/api/stats/bulk")
    def api_bulk_stats():
        ids = json_body().get("playerIds")
        if not isinstance(ids, list) or not all(isinstance(pid, (str, int)) for pid in ids):
            raise InvalidRecordError("playerIds must be a list of ids")
        result = stats.get_bulk_player_stats([str(pid) for pid in ids], refresh=parse_refresh())
        return jsonify({pid: (agg.to_dict() if agg is not None else None) for pid, agg in result.items()})

    # -------------------------
    # Leaderboards
    # -------------------------

    @app.get("/api/stats/top-players")
    def api_top_players():
        days = parse_int("days", cfg.default_top_players_days)
        raw_as_of = (request.args.get("asOf") or "").strip()
        as_of = date_parser.isoparse(raw_as_of).date() if raw_as_of else None

        vm = handler.build_top_players(days, as_of=as_of, refresh=parse_refresh())
        return jsonify(leaders_to_dict(vm)), (503 if vm.error else 200)

    @app.get("/api/stats/leaders/last-month")
    def api_last_month_leaders():
        vm = handler.build_last_month(refresh=parse_refresh())
        return jsonify(leaders_to_dict(vm)), (503 if vm.error else 200)

    @app.get("/api/stats/standings")
    def api_standings():
        season_id = (request.args.get("season") or "").strip() or None
        sort_by = (request.args.get("sort") or DEFAULT_STANDINGS_COLUMN).strip()
        order = (request.args.get("order") or "desc").strip().lower()
        if order not in ("asc", "desc"):
            raise ValueError(f"order must be asc or desc, got {order!r}")

        vm = handler.build_standings(season_id, sort_by=sort_by, descending=(order == "desc"), refresh=parse_refresh())
        out = {
            "generatedAt": vm.now.isoformat(),
            "seasonId": vm.season_id,
            "seasonName": vm.season_name,
            "sort": vm.sort_by,
            "order": "desc" if vm.descending else "asc",
            "rows": [r.to_dict() for r in vm.rows],
            "error": vm.error,
            "recoverable": vm.recoverable,
        }
        return jsonify(out), (503 if vm.error else 200)

    @app.get("/api/stats/game/<game_id>")
    def api_game_summary(game_id: str):
        summary = stats.get_game_summary(game_id, refresh=parse_refresh())
        if summary is None:
            return jsonify({"error": f"unknown game {game_id}"}), 404
        return jsonify(summary.to_dict())

    # -------------------------
    # Ratings
    # -------------------------

    @app.get("/api/ratings/game/<game_id>")
    def api_game_ratings(game_id: str):
        return jsonify(ratings.get_game_ratings(game_id, refresh=parse_refresh()).to_dict())

    @app.get("/api/ratings/game/<game_id>/voter/<voter_id>")
    def api_voter_ballots(game_id: str, voter_id: str):
        return jsonify([b.to_dict() for b in ratings.get_voter_ballots(game_id, voter_id)])

    @app.get("/api/ratings/game/<game_id>/player/<player_id>")
    def api_player_ballots(game_id: str, player_id: str):
        return jsonify([b.to_dict() for b in ratings.get_player_ballots(game_id, player_id)])

    @app.post("/api/ratings")
    def api_submit_ratings():
        body = json_body()
        if "ranking" in body:
            ranking = body.get("ranking")
            if not isinstance(ranking, list):
                raise InvalidRecordError("ranking must be a list of player ids")
            if not body.get("gameId") or not body.get("voterId"):
                raise InvalidRecordError("gameId and voterId are required")
            saved = ratings.submit_ranking(
                str(body["gameId"]), str(body["voterId"]), [str(pid) for pid in ranking]
            )
            return jsonify([b.to_dict() for b in saved]), 201

        saved_one = ratings.submit_ballot(RankBallot.from_payload(body))
        return jsonify(saved_one.to_dict()), 201

    # -------------------------
    # Cache
    # -------------------------

    @app.post("/api/cache/invalidate")
    def api_invalidate():
        body = json_body()
        entity = str(body.get("entity") or "")
        invalidation.apply(
            entity,
            player_id=body.get("playerId"),
            game_id=body.get("gameId"),
            season_id=body.get("seasonId"),
        )
        return jsonify({"ok": True, "entity": entity})

    # -------------------------
    # Health
    # -------------------------

    @app.get("/health")
    def health():
        """Simple health endpoint for Docker/monitoring checks."""
        return {"ok": True}

    return app


# WSGI entrypoint for gunicorn (app:app)
app = create_app()

if __name__ == "__main__":
    # Dev server (not for production).
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")), debug=True)
