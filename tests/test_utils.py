import pytest

from backend.utils import format_time, new_id, parse_time, round_half_up


@pytest.mark.parametrize(
    "value, expected",
    [
        ("00:00", 0),
        ("01:30", 90),
        ("1:5", 65),
        (" 2:07", 127),
        ("90:00", 5400),
        ("3x:10", 190),
        ("abc", 0),
        ("a:b", 0),
        ("10", 0),
        ("1:2:3", 0),
        ("-1:30", 0),
        ("0:-5", 0),
        ("1:-30", 30),
        (75, 75),
        (12.9, 12),
        (-3, 0),
        (None, 0),
        (True, 0),
    ],
)
def test_parse_time(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00"), (5, "00:05"), (65, "01:05"), (3600, "60:00"), (-7, "00:00")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


@pytest.mark.parametrize(
    "value, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-0.5, 0), (-1.5, -1)]
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_new_id():
    assert len(new_id()) == 32
    step_id = new_id("step")
    assert step_id.startswith("step_")
    assert len(step_id) == len("step_") + 16
    assert new_id() != new_id()
