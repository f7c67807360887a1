import pytest

from src.site_attendance.site_attendance.common.rounding import round_to_half_hour


@pytest.mark.parametrize(
    "wall, expected",
    [
        ((8, 0, 0), (8, 0)),
        ((8, 7, 0), (8, 0)),
        ((8, 14, 59), (8, 0)),
        ((8, 15, 0), (8, 30)),
        ((8, 30, 0), (8, 30)),
        ((8, 44, 59), (8, 30)),
        ((8, 45, 0), (9, 0)),
        ((16, 52, 0), (17, 0)),
    ],
)
def test_rounding_thresholds(clock, at, wall, expected):
    rounded = round_to_half_hour(at(2026, 1, 15, *wall), clock)
    assert rounded == at(2026, 1, 15, *expected)


def test_rounding_carries_into_next_day(clock, at):
    assert round_to_half_hour(at(2026, 1, 15, 23, 45), clock) == at(2026, 1, 16, 0, 0)
    assert clock.civil_day(round_to_half_hour(at(2026, 1, 15, 23, 50), clock)).day == 16


def test_rounding_is_idempotent(clock, at):
    for minute in range(0, 60):
        once = round_to_half_hour(at(2026, 7, 1, 13, minute, 31), clock)
        assert round_to_half_hour(once, clock) == once
        assert once.second == 0 and once.microsecond == 0


def test_rounding_uses_civil_wall_clock_in_summer(clock, at):
    rounded = round_to_half_hour(at(2026, 7, 1, 8, 7), clock)
    assert clock.wall_clock(rounded) == (8, 0)


