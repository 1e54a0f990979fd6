from datetime import date, datetime, time
from decimal import Decimal

import pytest

from src.timekeeping.timekeeping.core.enums import OvertimeType, RateCategory
from src.timekeeping.timekeeping.core.exceptions import ValidationError
from src.timekeeping.timekeeping.overtime import rates


@pytest.mark.parametrize(
    "overtime_type, night, beyond, expected",
    [
        (OvertimeType.REGULAR_WEEKDAY, False, False, "1.25"),
        (OvertimeType.REGULAR_WEEKDAY, True, False, "1.375"),
        (OvertimeType.REST_DAY, False, False, "1.30"),
        (OvertimeType.REST_DAY, False, True, "1.69"),
        (OvertimeType.REST_DAY, True, False, "1.43"),
        (OvertimeType.SPECIAL_HOLIDAY, True, False, "1.43"),
        (OvertimeType.SCHEDULED_REST_DAY, False, False, "1.50"),
        (OvertimeType.SCHEDULED_REST_DAY, True, True, "2.145"),
        (OvertimeType.REGULAR_HOLIDAY, False, False, "2.00"),
        (OvertimeType.REGULAR_HOLIDAY, False, True, "2.60"),
        (OvertimeType.REGULAR_HOLIDAY_OVERTIME, True, False, "2.86"),
    ],
)
def test_table_lookup(overtime_type, night, beyond, expected):
    res = rates.resolve(overtime_type, night, beyond_eight_hours=beyond)
    assert res.rate_multiplier == Decimal(expected)
    assert res.overtime_type == overtime_type


def test_known_entered_multiplier_maps_back_to_its_category():
    res = rates.resolve(None, False, entered_multiplier=Decimal("1.859"))
    assert res.overtime_type == OvertimeType.REST_DAY_OVERTIME
    assert res.category == RateCategory.REST_DAY_OVERTIME
    assert res.has_night_differential


def test_unknown_entered_multiplier_is_other():
    res = rates.resolve(None, False, entered_multiplier=Decimal("1.75"))
    assert res.overtime_type == OvertimeType.OTHER
    assert res.rate_multiplier == Decimal("1.75")


def test_type_or_multiplier_required():
    with pytest.raises(ValidationError):
        rates.resolve(None, False)


def test_day_classification_precedence():
    assert rates.classify_day(is_regular_holiday=True, is_rest_day=True) == OvertimeType.REGULAR_HOLIDAY
    assert rates.classify_day(is_special_holiday=True, is_scheduled_rest_day=True) == OvertimeType.SCHEDULED_REST_DAY
    assert rates.classify_day(is_special_holiday=True, is_rest_day=True) == OvertimeType.SPECIAL_HOLIDAY
    assert rates.classify_day(is_rest_day=True) == OvertimeType.REST_DAY
    assert rates.classify_day() == OvertimeType.REGULAR_WEEKDAY


def test_night_differential_hours():
    start = datetime(2025, 3, 10, 20, 0)
    assert rates.night_differential_hours(start, datetime(2025, 3, 10, 23, 30)) == Decimal("1.50")
    assert rates.night_differential_hours(start, datetime(2025, 3, 10, 22, 0)) == Decimal("0.00")
    assert rates.night_differential_hours(datetime(2025, 3, 11, 4, 0), datetime(2025, 3, 11, 7, 0)) == Decimal("2.00")


def test_window_wraps_past_midnight():
    start, end = rates.overtime_window(date(2025, 3, 10), time(22, 0), time(2, 0))
    assert end - start == datetime(2025, 3, 11, 2, 0) - datetime(2025, 3, 10, 22, 0)
    assert end.date() == date(2025, 3, 11)
