import pytest

from learnpath.gate import accessible_units, is_accessible, parse_unit_id, unit_completion
from learnpath.models import ContentUnit


def _units(*ratios):
    return [ContentUnit(i, f"Day {i}", completion_ratio=r) for i, r in enumerate(ratios, 1)]


def test_first_day_always_open():
    assert is_accessible([], 1)
    assert is_accessible(_units(0, 0), 1)


def test_out_of_range_days_are_closed():
    units = _units(100, 100, 100)
    assert not is_accessible(units, 0)
    assert not is_accessible(units, 4)
    assert not is_accessible([], 2)


@pytest.mark.parametrize("ratio,expected", [(49, False), (49.9, False), (50, True), (80, True)])
def test_threshold_boundary(ratio, expected):
    assert is_accessible(_units(ratio, 0), 2) is expected


@pytest.mark.parametrize("ratio,expected", [(49, False), (50, True)])
def test_third_day_follows_second_day_ratio(ratio, expected):
    assert is_accessible(_units(100, ratio, 0), 3) is expected


def test_completed_previous_day_opens_next():
    units = _units(10, 0)
    units[0].completed = True
    assert is_accessible(units, 2)


def test_missing_previous_day_does_not_block():
    units = [ContentUnit(2), ContentUnit(3)]
    assert is_accessible(units, 2)


def test_zero_threshold_disables_gating():
    assert is_accessible(_units(0, 0, 0), 3, threshold=0)


def test_accessible_units():
    assert accessible_units(_units(100, 60, 20, 0)) == [1, 2, 3]


def test_unit_completion():
    assert unit_completion(1, 2, 1, 2) == 50.0
    assert unit_completion(3, 2, 0, 2) == 50.0
    assert unit_completion(0, 2, completed=True) == 100.0
    assert unit_completion(0, 0, started=True) == 25.0
    assert unit_completion(0, 0) == 0.0


@pytest.mark.parametrize("raw,expected", [
    ("day-3", 3), ("7", 7), (" day-12 ", 12), ("day-0", None), ("week-1", None), ("", None),
])
def test_parse_unit_id(raw, expected):
    assert parse_unit_id(raw) == expected
