# league_board/league_client.py
"""
Thin HTTP client wrapper for the league backend (games, seasons, box scores, ballots).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import requests

from .errors import InvalidRecordError, UpstreamError
from .fanout import fan_out
from .models import GameOutcome, RankBallot, RawPlayerGameStat, Season

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _unwrap(body: Any) -> Any:
    """Backend responses are enveloped as {"success": bool, "data": ...}."""
    if isinstance(body, dict) and "data" in body:
        if body.get("success") is False:
            raise UpstreamError(str(body.get("message") or "backend reported failure"))
        return body["data"]
    return body


def _parse_rows(rows: Any, parse: Callable[[Dict[str, Any]], T], what: str) -> List[T]:
    """Parse a list payload; rows failing validation are skipped with a warning."""
    if not isinstance(rows, list):
        raise UpstreamError(f"expected a list of {what}, got {type(rows).__name__}")
    out: List[T] = []
    for row in rows:
        try:
            out.append(parse(row))
        except InvalidRecordError as exc:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning("skipping invalid %s %r: %s", what, row_id, exc)
    return out


class LeagueClient:
    """A minimal client for the league backend's JSON API."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
        fetch_workers: int = 8,
    ) -> None:
        """Store the base URL and build request headers."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fetch_workers = fetch_workers
        self._session = session or requests.Session()
        self._headers = {"User-Agent": "league-board/1.0", "Accept": "application/json"}

    def _request(self, method: str, path: str, json_body: Any = None, allow_404: bool = False) -> Any:
        """
        Execute a request against base_url + path and return the unwrapped JSON body.

        Raises:
            UpstreamError on connection failures, non-2xx responses or undecodable bodies.
        """
        url = f"{self.base_url}{path}"
        try:
            r = self._session.request(method, url, json=json_body, timeout=self.timeout, headers=self._headers)
        except requests.RequestException as exc:
            raise UpstreamError(f"{method} {path} failed: {exc}") from exc

        if allow_404 and r.status_code == 404:
            return None
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise UpstreamError(f"{method} {path} returned {r.status_code}", status_code=r.status_code) from exc

        try:
            return _unwrap(r.json())
        except ValueError as exc:
            raise UpstreamError(f"{method} {path} returned a non-JSON body") from exc

    def get_json(self, path: str, allow_404: bool = False) -> Any:
        return self._request("GET", path, allow_404=allow_404)

    def post_json(self, path: str, body: Any) -> Any:
        return self._request("POST", path, json_body=body)

    def list_games(self) -> List[GameOutcome]:
        """Fetch every game with its final score."""
        return _parse_rows(self.get_json("/games"), GameOutcome.from_payload, "game")

    def get_game(self, game_id: str) -> Optional[GameOutcome]:
        """Fetch one game; None when the backend does not know it."""
        body = self.get_json(f"/games/{game_id}", allow_404=True)
        if body is None:
            return None
        try:
            return GameOutcome.from_payload(body)
        except InvalidRecordError as exc:
            raise UpstreamError(f"game {game_id!r} payload is invalid: {exc}") from exc

    def list_seasons(self) -> List[Season]:
        return _parse_rows(self.get_json("/seasons"), Season.from_payload, "season")

    def stats_for_player(self, player_id: str) -> List[RawPlayerGameStat]:
        """Fetch every box-score row of one player across all games."""
        return _parse_rows(
            self.get_json(f"/player-stats/player/{player_id}"), RawPlayerGameStat.from_payload, "stat row"
        )

    def stats_for_players(self, player_ids: Sequence[str]) -> Dict[str, List[RawPlayerGameStat]]:
        """Bulk fetch rows for several players in one request; every requested id gets a list."""
        body = self.post_json("/player-stats/bulk", {"playerIds": list(player_ids)})
        if not isinstance(body, dict):
            raise UpstreamError(f"expected an object keyed by player id, got {type(body).__name__}")
        out: Dict[str, List[RawPlayerGameStat]] = {pid: [] for pid in player_ids}
        for pid, rows in body.items():
            out[str(pid)] = _parse_rows(rows, RawPlayerGameStat.from_payload, "stat row")
        return out

    def stats_for_game(self, game_id: str) -> List[RawPlayerGameStat]:
        """Fetch every box-score row of one game."""
        return _parse_rows(
            self.get_json(f"/player-stats/game/{game_id}"), RawPlayerGameStat.from_payload, "stat row"
        )

    def stats_for_games(self, game_ids: Sequence[str]) -> List[RawPlayerGameStat]:
        """Fetch rows for several games in parallel and concatenate them in game_ids order."""
        ids = list(dict.fromkeys(game_ids))
        results = fan_out(
            {gid: (lambda gid=gid: self.stats_for_game(gid)) for gid in ids},
            max_workers=self.fetch_workers,
        )
        return [row for gid in ids for row in results[gid]]

    def ballots_for_game(self, game_id: str) -> List[RankBallot]:
        """Fetch the raw ranked-voting ballots cast for a game."""
        return _parse_rows(
            self.get_json(f"/player-ratings/game/{game_id}/ballots"), RankBallot.from_payload, "ballot"
        )

    def save_ballot(self, ballot: RankBallot) -> RankBallot:
        """Upsert one ballot; the backend replaces any earlier rank for the same triple."""
        body = self.post_json("/player-ratings", ballot.to_payload())
        if not isinstance(body, dict):
            return ballot
        try:
            return RankBallot.from_payload(body)
        except InvalidRecordError:
            return ballot
