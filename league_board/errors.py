# league_board/errors.py
"""
Error types for league-board flows.
"""

from __future__ import annotations

from typing import Optional


class LeagueBoardError(RuntimeError):
    """Base error for league-board operations."""


class UpstreamError(LeagueBoardError):
    """The persistence backend failed (network error, non-2xx response, bad body)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidRecordError(LeagueBoardError, ValueError):
    """A raw record or ballot failed validation at the ingestion boundary."""


class DurableStoreError(LeagueBoardError):
    """The durable cache tier could not read or write an entry."""
