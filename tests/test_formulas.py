import pytest

from league_board.formulas import efficiency_score, percentage, round_half_up


def test_efficiency_reference_line() -> None:
    eff = efficiency_score(
        two_point_made=4,
        two_point_attempts=8,
        three_point_made=2,
        three_point_attempts=5,
        assists=3,
        defensive_rebounds=4,
        offensive_rebounds=2,
    )
    assert eff == pytest.approx(17.3)
    assert round_half_up(eff) == 17.3


def test_efficiency_can_go_negative() -> None:
    eff = efficiency_score(0, 5, 0, 5, 0, 0, 0)
    assert eff == pytest.approx(-10.0)


@pytest.mark.parametrize(
    "made, attempts, expected",
    [(0, 0, 0.0), (3, 0, 0.0), (0, 4, 0.0), (1, 4, 25.0), (3, 3, 100.0)],
)
def test_percentage_never_divides_by_zero(made: int, attempts: int, expected: float) -> None:
    assert percentage(made, attempts) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(2.25, 2.3), (2.35, 2.4), (-2.25, -2.2), (-0.25, -0.2), (-2.26, -2.3), (17.299999999999997, 17.3), (4.0, 4.0)],
)
def test_round_half_up(value: float, expected: float) -> None:
    assert round_half_up(value, 1) == expected
