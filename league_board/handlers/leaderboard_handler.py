# league_board/handlers/leaderboard_handler.py
"""
Handler/controller responsible for building leaderboard view models.

Keeps Flask routes simple by concentrating assembly logic here. Backend
outages become a recoverable error state on the view model instead of an
exception, so a board can render "try again" rather than failing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..aggregation import DEFAULT_STANDINGS_COLUMN
from ..date_windows import last_calendar_month
from ..errors import UpstreamError
from ..models import LeadersViewModel, StandingsViewModel
from ..services.stats_service import StatsService

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardHandler:
    """Orchestrates the stats service into leaders and standings view models."""

    stats_service: StatsService

    def _now(self) -> datetime:
        return datetime.now(tz=self.stats_service.app_tz)

    def build_top_players(
        self,
        window_days: Optional[int] = None,
        as_of: Union[date, datetime, None] = None,
        refresh: bool = False,
    ) -> LeadersViewModel:
        """
        Build the rolling-window leaders board.

        Args:
            window_days: window length; the configured default when None.
            as_of: end the window at the end of this day instead of now.
            refresh: bypass cached results.
        """
        now = self._now()
        days = self.stats_service.default_top_players_days if window_days is None else window_days
        label = f"Last {days} days"
        if as_of is not None:
            label = f"{label} to {as_of:%Y-%m-%d}"
        try:
            top = self.stats_service.get_top_players(days, as_of=as_of, now=now, refresh=refresh)
        except UpstreamError as exc:
            logger.warning("top players unavailable: %s", exc)
            return LeadersViewModel(now=now, label=label, error=str(exc), recoverable=True)
        return LeadersViewModel(now=now, label=label, top=top)

    def build_last_month(self, refresh: bool = False) -> LeadersViewModel:
        """Build the previous-calendar-month leaders board, labelled with the month name."""
        now = self._now()
        label = f"{last_calendar_month(now).start:%B %Y}"
        try:
            top = self.stats_service.get_last_month_leaders(now=now, refresh=refresh)
        except UpstreamError as exc:
            logger.warning("last month leaders unavailable: %s", exc)
            return LeadersViewModel(now=now, label=label, error=str(exc), recoverable=True)
        return LeadersViewModel(now=now, label=label, top=top)

    def build_standings(
        self,
        season_id: Optional[str] = None,
        sort_by: str = DEFAULT_STANDINGS_COLUMN,
        descending: bool = True,
        refresh: bool = False,
    ) -> StandingsViewModel:
        """
        Build a standings table.

        With no season_id the active season is used, or every game when no
        season is active. An unknown sort column raises ValueError.
        """
        now = self._now()
        sid = season_id or "all"
        season_name = None if sid == "all" else sid
        try:
            seasons = self.stats_service.list_seasons(refresh=refresh)
            if season_id is None:
                active = next((s for s in seasons if s.is_active), None)
                if active is not None:
                    sid = active.season_id
            season_name = next((s.name for s in seasons if s.season_id == sid), season_name)
            rows = self.stats_service.get_season_standings_table(
                sid, sort_by=sort_by, descending=descending, refresh=refresh
            )
        except UpstreamError as exc:
            logger.warning("standings unavailable for season %s: %s", sid, exc)
            return StandingsViewModel(
                now=now, season_id=sid, season_name=season_name, sort_by=sort_by,
                descending=descending, error=str(exc), recoverable=True,
            )

        return StandingsViewModel(
            now=now, season_id=sid, season_name=season_name, sort_by=sort_by,
            descending=descending, rows=rows,
        )
