# league_board/formulas.py
"""
Box-score formulas shared by every leaderboard, award and player view.

EFF = 2*2PM + 3*3PM + 1.5*AST + 0.8*DREB + 1.2*OREB - (0.8*2P missed + 1.2*3P missed)
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_CEILING

TWO_POINT_MADE_WEIGHT = 2.0
THREE_POINT_MADE_WEIGHT = 3.0
ASSIST_WEIGHT = 1.5
DEFENSIVE_REBOUND_WEIGHT = 0.8
OFFENSIVE_REBOUND_WEIGHT = 1.2
TWO_POINT_MISS_WEIGHT = 0.8
THREE_POINT_MISS_WEIGHT = 1.2


def percentage(made: float, attempts: float) -> float:
    """made / attempts * 100, or 0.0 when there are no attempts."""
    if attempts <= 0:
        return 0.0
    return made / attempts * 100.0


def efficiency_score(
    two_point_made: float,
    two_point_attempts: float,
    three_point_made: float,
    three_point_attempts: float,
    assists: float,
    defensive_rebounds: float,
    offensive_rebounds: float,
) -> float:
    """Unrounded efficiency for one game's counting stats."""
    missed_two = two_point_attempts - two_point_made
    missed_three = three_point_attempts - three_point_made
    return (
        TWO_POINT_MADE_WEIGHT * two_point_made
        + THREE_POINT_MADE_WEIGHT * three_point_made
        + ASSIST_WEIGHT * assists
        + DEFENSIVE_REBOUND_WEIGHT * defensive_rebounds
        + OFFENSIVE_REBOUND_WEIGHT * offensive_rebounds
        - (TWO_POINT_MISS_WEIGHT * missed_two + THREE_POINT_MISS_WEIGHT * missed_three)
    )


def round_half_up(value: float, places: int = 1) -> float:
    """
    Round halves toward positive infinity at the given number of decimal places.

    Goes through the shortest repr of the float so 17.299999999999997 rounds
    to 17.3 and 2.25 rounds to 2.3 (the builtin round() would give 2.2).
    Negative halves move up too: -2.25 rounds to -2.2.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_CEILING))
