# league_board/models.py
"""
Domain models for the leaderboard service.

Raw records (stat rows, games, seasons, ballots) are validated once, at the
ingestion boundary, by their from_payload() constructors. Derived models
(aggregates, summaries) are never persisted canonically; to_dict()/from_dict()
exist so they can live in the JSON cache tiers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence

from .date_windows import parse_datetime
from .errors import InvalidRecordError
from .formulas import percentage


class TeamSide(str, Enum):
    TEAM_A = "TEAM_A"
    TEAM_B = "TEAM_B"


class GameResult(str, Enum):
    WIN = "W"
    LOSS = "L"
    TIE = "T"


def _count(value: Any, name: str) -> int:
    """Coerce a counting stat to a non-negative int; missing values count as 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise InvalidRecordError(f"{name} must be a number, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise InvalidRecordError(f"{name} must be a whole number, got {value!r}")
    if value < 0:
        raise InvalidRecordError(f"{name} must be >= 0, got {value}")
    return value


def _require_id(value: Any, name: str) -> str:
    if value is None or str(value).strip() == "":
        raise InvalidRecordError(f"{name} is required")
    return str(value).strip()


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


def _from_flat(cls, data: Mapping[str, Any]):
    """Build a flat dataclass from a dict, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


@dataclass(frozen=True)
class RawPlayerGameStat:
    """One box-score row: one player in one game."""
    stat_id: str
    game_id: str
    player_id: str
    team_side: TeamSide
    two_point_attempts: int = 0
    two_point_made: int = 0
    three_point_attempts: int = 0
    three_point_made: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    assists: int = 0
    season_id: Optional[str] = None

    def __post_init__(self):
        # dataclass frozen => use object.__setattr__
        try:
            object.__setattr__(self, "team_side", TeamSide(self.team_side))
        except ValueError:
            raise InvalidRecordError(f"unknown team side {self.team_side!r}") from None

        for name in (
            "two_point_attempts", "two_point_made", "three_point_attempts", "three_point_made",
            "offensive_rebounds", "defensive_rebounds", "assists",
        ):
            object.__setattr__(self, name, _count(getattr(self, name), name))

        if self.two_point_made > self.two_point_attempts:
            raise InvalidRecordError(
                f"twoPointMade ({self.two_point_made}) exceeds twoPointAttempts ({self.two_point_attempts})"
            )
        if self.three_point_made > self.three_point_attempts:
            raise InvalidRecordError(
                f"threePointMade ({self.three_point_made}) exceeds threePointAttempts ({self.three_point_attempts})"
            )

    @property
    def total_points(self) -> int:
        return self.two_point_made * 2 + self.three_point_made * 3

    @property
    def total_rebounds(self) -> int:
        return self.offensive_rebounds + self.defensive_rebounds

    @property
    def two_point_percentage(self) -> float:
        return percentage(self.two_point_made, self.two_point_attempts)

    @property
    def three_point_percentage(self) -> float:
        return percentage(self.three_point_made, self.three_point_attempts)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawPlayerGameStat":
        """
        Build from a backend playerStats document.

        Stored totals/percentages (totalPoints, twoPointPercentage, ...) are
        ignored and always recomputed from the counting stats.
        """
        if not isinstance(payload, Mapping):
            raise InvalidRecordError(f"stat row must be an object, got {type(payload).__name__}")
        return cls(
            stat_id=str(payload.get("id") or ""),
            game_id=_require_id(payload.get("gameId"), "gameId"),
            player_id=_require_id(payload.get("playerId"), "playerId"),
            team_side=payload.get("teamType"),
            two_point_attempts=payload.get("twoPointAttempts"),
            two_point_made=payload.get("twoPointMade"),
            three_point_attempts=payload.get("threePointAttempts"),
            three_point_made=payload.get("threePointMade"),
            offensive_rebounds=payload.get("offensiveRebounds"),
            defensive_rebounds=payload.get("defensiveRebounds"),
            assists=payload.get("assists"),
            season_id=payload.get("seasonId") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["team_side"] = self.team_side.value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawPlayerGameStat":
        return _from_flat(cls, data)


@dataclass(frozen=True)
class GameOutcome:
    """Final score of one game; decides win/loss for each side."""
    game_id: str
    team_a_score: int
    team_b_score: int
    date: Optional[datetime] = None
    season_id: Optional[str] = None
    game_number: str = ""

    def __post_init__(self):
        object.__setattr__(self, "team_a_score", _count(self.team_a_score, "teamAScore"))
        object.__setattr__(self, "team_b_score", _count(self.team_b_score, "teamBScore"))

    def result_for(self, side: TeamSide) -> GameResult:
        """W/L for the given side; equal scores are a tie (T)."""
        if self.team_a_score == self.team_b_score:
            return GameResult.TIE
        a_won = self.team_a_score > self.team_b_score
        if TeamSide(side) is TeamSide.TEAM_A:
            return GameResult.WIN if a_won else GameResult.LOSS
        return GameResult.LOSS if a_won else GameResult.WIN

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GameOutcome":
        if not isinstance(payload, Mapping):
            raise InvalidRecordError(f"game must be an object, got {type(payload).__name__}")
        return cls(
            game_id=_require_id(payload.get("id"), "id"),
            team_a_score=payload.get("teamAScore"),
            team_b_score=payload.get("teamBScore"),
            date=parse_datetime(payload.get("date")),
            season_id=payload.get("seasonId") or None,
            game_number=str(payload.get("gameNumber") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["date"] = _iso(self.date)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameOutcome":
        obj = dict(data)
        obj["date"] = parse_datetime(obj.get("date"))
        return _from_flat(cls, obj)


@dataclass(frozen=True)
class Season:
    season_id: str
    name: str
    begin_date: Optional[datetime] = None
    finish_date: Optional[datetime] = None
    is_active: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Season":
        if not isinstance(payload, Mapping):
            raise InvalidRecordError(f"season must be an object, got {type(payload).__name__}")
        return cls(
            season_id=_require_id(payload.get("id"), "id"),
            name=str(payload.get("name") or ""),
            begin_date=parse_datetime(payload.get("beginDate")),
            finish_date=parse_datetime(payload.get("finishDate")),
            is_active=bool(payload.get("isActive", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["begin_date"] = _iso(self.begin_date)
        out["finish_date"] = _iso(self.finish_date)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Season":
        obj = dict(data)
        obj["begin_date"] = parse_datetime(obj.get("begin_date"))
        obj["finish_date"] = parse_datetime(obj.get("finish_date"))
        return _from_flat(cls, obj)


@dataclass(frozen=True)
class RankBallot:
    """One voter's rank (1 = best) for one candidate in one game."""
    game_id: str
    voter_id: str
    rated_player_id: str
    rank: int

    def __post_init__(self):
        if isinstance(self.rank, bool) or not isinstance(self.rank, int):
            raise InvalidRecordError(f"rank must be a whole number, got {self.rank!r}")
        if self.rank < 1:
            raise InvalidRecordError(f"rank must be >= 1, got {self.rank}")
        if self.voter_id == self.rated_player_id:
            raise InvalidRecordError("a voter cannot rank themselves")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RankBallot":
        if not isinstance(payload, Mapping):
            raise InvalidRecordError(f"ballot must be an object, got {type(payload).__name__}")
        rank = payload.get("rank")
        if isinstance(rank, float) and rank.is_integer():
            rank = int(rank)
        return cls(
            game_id=_require_id(payload.get("gameId"), "gameId"),
            voter_id=_require_id(payload.get("voterId"), "voterId"),
            rated_player_id=_require_id(payload.get("ratedPlayerId"), "ratedPlayerId"),
            rank=rank,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "voterId": self.voter_id,
            "ratedPlayerId": self.rated_player_id,
            "rank": self.rank,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AggregatedPlayerStats:
    """
    Multi-game rollup for one player over a selected set of games.

    Totals are sums over the games; avg_* fields are total / games_played.
    Percentages are computed from totals, never averaged per game.
    """
    player_id: str
    games_played: int
    wins: int
    losses: int
    win_percentage: float
    current_win_streak: int
    last5_wins: int
    last5_losses: int

    total_points: int
    total_rebounds: int
    total_offensive_rebounds: int
    total_defensive_rebounds: int
    total_assists: int
    two_point_attempts: int
    two_point_made: int
    three_point_attempts: int
    three_point_made: int

    avg_points: float
    avg_rebounds: float
    avg_offensive_rebounds: float
    avg_defensive_rebounds: float
    avg_assists: float
    avg_efficiency: float
    avg_two_point_attempts: float
    avg_two_point_made: float
    two_point_percentage: float
    avg_three_point_attempts: float
    avg_three_point_made: float
    three_point_percentage: float
    shooting_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AggregatedPlayerStats":
        return _from_flat(cls, data)


@dataclass(frozen=True)
class PlayerRating:
    player_id: str
    average_rank: float
    total_votes: int
    is_mvp: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GameRatingSummary:
    """Aggregated peer ranking for one game; ratings are best (lowest average) first."""
    game_id: str
    ratings: Sequence[PlayerRating]
    mvp: Optional[PlayerRating]
    total_voters: int
    total_players: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "ratings": [r.to_dict() for r in self.ratings],
            "mvp": self.mvp.to_dict() if self.mvp is not None else None,
            "total_voters": self.total_voters,
            "total_players": self.total_players,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameRatingSummary":
        mvp = data.get("mvp")
        return cls(
            game_id=data["game_id"],
            ratings=tuple(_from_flat(PlayerRating, r) for r in data.get("ratings") or ()),
            mvp=_from_flat(PlayerRating, mvp) if mvp else None,
            total_voters=data.get("total_voters", 0),
            total_players=data.get("total_players", 0),
        )


@dataclass(frozen=True)
class TeamTotals:
    """Summed box score for one side of one game."""
    team_side: TeamSide
    players: int
    two_point_attempts: int
    two_point_made: int
    two_point_percentage: float
    three_point_attempts: int
    three_point_made: int
    three_point_percentage: float
    offensive_rebounds: int
    defensive_rebounds: int
    total_rebounds: int
    assists: int
    total_points: int

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["team_side"] = TeamSide(self.team_side).value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TeamTotals":
        obj = dict(data)
        obj["team_side"] = TeamSide(obj["team_side"])
        return _from_flat(cls, obj)


@dataclass(frozen=True)
class PlayerGameLine:
    """One game in a player's log, with that game's efficiency rounded for display."""
    stat: RawPlayerGameStat
    game_date: Optional[datetime]
    game_number: str
    result: GameResult
    efficiency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stat": self.stat.to_dict(),
            "game_date": _iso(self.game_date),
            "game_number": self.game_number,
            "result": GameResult(self.result).value,
            "efficiency": self.efficiency,
            "total_points": self.stat.total_points,
            "total_rebounds": self.stat.total_rebounds,
            "two_point_percentage": self.stat.two_point_percentage,
            "three_point_percentage": self.stat.three_point_percentage,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerGameLine":
        return cls(
            stat=RawPlayerGameStat.from_dict(data["stat"]),
            game_date=parse_datetime(data.get("game_date")),
            game_number=data.get("game_number") or "",
            result=GameResult(data["result"]),
            efficiency=data["efficiency"],
        )


@dataclass(frozen=True)
class GameSummary:
    game: GameOutcome
    team_a: TeamTotals
    team_b: TeamTotals
    lines: Sequence[PlayerGameLine]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game.to_dict(),
            "team_a": self.team_a.to_dict(),
            "team_b": self.team_b.to_dict(),
            "lines": [line.to_dict() for line in self.lines],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameSummary":
        return cls(
            game=GameOutcome.from_dict(data["game"]),
            team_a=TeamTotals.from_dict(data["team_a"]),
            team_b=TeamTotals.from_dict(data["team_b"]),
            lines=tuple(PlayerGameLine.from_dict(x) for x in data.get("lines") or ()),
        )


@dataclass(frozen=True)
class TopPlayers:
    """
    Category leaders over a time window.

    Count leaders (points/rebounds/assists) use window totals; percentage
    leaders only consider players at or above the minimum-attempts threshold.
    """
    window_start: datetime
    window_end: datetime
    top_scorer: Optional[AggregatedPlayerStats]
    best_shooter: Optional[AggregatedPlayerStats]
    most_rebounds: Optional[AggregatedPlayerStats]
    most_assists: Optional[AggregatedPlayerStats]
    top_efficiency: Sequence[AggregatedPlayerStats]
    dominant_two_point: Optional[AggregatedPlayerStats]
    dominant_three_point: Optional[AggregatedPlayerStats]
    all_players: Sequence[AggregatedPlayerStats]

    _LEADER_FIELDS = (
        "top_scorer", "best_shooter", "most_rebounds", "most_assists",
        "dominant_two_point", "dominant_three_point",
    )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "window_start": _iso(self.window_start),
            "window_end": _iso(self.window_end),
            "top_efficiency": [p.to_dict() for p in self.top_efficiency],
            "all_players": [p.to_dict() for p in self.all_players],
        }
        for name in self._LEADER_FIELDS:
            leader = getattr(self, name)
            out[name] = leader.to_dict() if leader is not None else None
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TopPlayers":
        def _agg(obj):
            return AggregatedPlayerStats.from_dict(obj) if obj else None

        return cls(
            window_start=parse_datetime(data.get("window_start")),
            window_end=parse_datetime(data.get("window_end")),
            top_efficiency=tuple(_agg(p) for p in data.get("top_efficiency") or ()),
            all_players=tuple(_agg(p) for p in data.get("all_players") or ()),
            **{name: _agg(data.get(name)) for name in cls._LEADER_FIELDS},
        )


@dataclass
class LeadersViewModel:
    """Everything a leaders board needs; error is set instead of top when the backend is down."""
    now: datetime
    label: str
    top: Optional[TopPlayers] = None
    error: Optional[str] = None
    recoverable: bool = False


@dataclass
class StandingsViewModel:
    """A sorted standings table for one season (or "all")."""
    now: datetime
    season_id: str
    season_name: Optional[str]
    sort_by: str
    descending: bool
    rows: Sequence[AggregatedPlayerStats] = ()
    error: Optional[str] = None
    recoverable: bool = False
