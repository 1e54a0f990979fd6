"""Overtime rate resolution.

The statutory multipliers are a lookup table keyed by rate category and the
night-differential flag; nothing here is computed arithmetically.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from ..core.constants import NIGHT_END, NIGHT_START
from ..core.enums import OvertimeType, RateCategory
from ..core.exceptions import ValidationError

# category -> (base, with night differential)
RATE_TABLE: Dict[RateCategory, Tuple[Decimal, Decimal]] = {
    RateCategory.REGULAR_WEEKDAY: (Decimal("1.25"), Decimal("1.375")),
    RateCategory.REST_DAY: (Decimal("1.30"), Decimal("1.43")),
    RateCategory.REST_DAY_OVERTIME: (Decimal("1.69"), Decimal("1.859")),
    RateCategory.SCHEDULED_REST_DAY: (Decimal("1.50"), Decimal("1.65")),
    RateCategory.SCHEDULED_REST_DAY_OVERTIME: (Decimal("1.95"), Decimal("2.145")),
    RateCategory.REGULAR_HOLIDAY: (Decimal("2.00"), Decimal("2.20")),
    RateCategory.REGULAR_HOLIDAY_OVERTIME: (Decimal("2.60"), Decimal("2.86")),
}

# overtime type -> (first eight hours, beyond eight hours)
_TYPE_CATEGORIES: Dict[OvertimeType, Tuple[RateCategory, RateCategory]] = {
    OvertimeType.REGULAR_WEEKDAY: (RateCategory.REGULAR_WEEKDAY, RateCategory.REGULAR_WEEKDAY),
    OvertimeType.REST_DAY: (RateCategory.REST_DAY, RateCategory.REST_DAY_OVERTIME),
    OvertimeType.SPECIAL_HOLIDAY: (RateCategory.REST_DAY, RateCategory.REST_DAY_OVERTIME),
    OvertimeType.SCHEDULED_REST_DAY: (RateCategory.SCHEDULED_REST_DAY, RateCategory.SCHEDULED_REST_DAY_OVERTIME),
    OvertimeType.REGULAR_HOLIDAY: (RateCategory.REGULAR_HOLIDAY, RateCategory.REGULAR_HOLIDAY_OVERTIME),
    OvertimeType.REST_DAY_OVERTIME: (RateCategory.REST_DAY_OVERTIME, RateCategory.REST_DAY_OVERTIME),
    OvertimeType.SPECIAL_HOLIDAY_OVERTIME: (RateCategory.REST_DAY_OVERTIME, RateCategory.REST_DAY_OVERTIME),
    OvertimeType.SCHEDULED_REST_DAY_OVERTIME: (
        RateCategory.SCHEDULED_REST_DAY_OVERTIME,
        RateCategory.SCHEDULED_REST_DAY_OVERTIME,
    ),
    OvertimeType.REGULAR_HOLIDAY_OVERTIME: (
        RateCategory.REGULAR_HOLIDAY_OVERTIME,
        RateCategory.REGULAR_HOLIDAY_OVERTIME,
    ),
}

_HOURS = Decimal("0.01")


@dataclass(frozen=True)
class RateResolution:
    overtime_type: OvertimeType
    rate_multiplier: Decimal
    has_night_differential: bool
    category: Optional[RateCategory] = None


def multiplier_for(category: RateCategory, has_night_differential: bool) -> Decimal:
    base, night = RATE_TABLE[category]
    return night if has_night_differential else base


def match_multiplier(value: Decimal) -> Optional[Tuple[RateCategory, bool]]:
    """Find the table entry an entered multiplier corresponds to."""

    value = Decimal(str(value))
    for category, (base, night) in RATE_TABLE.items():
        if value == base:
            return category, False
        if value == night:
            return category, True
    return None


def resolve(
    overtime_type: Optional[OvertimeType],
    has_night_differential: bool,
    *,
    beyond_eight_hours: bool = False,
    entered_multiplier: Optional[Decimal] = None,
) -> RateResolution:
    if overtime_type is not None and overtime_type in _TYPE_CATEGORIES:
        first, beyond = _TYPE_CATEGORIES[overtime_type]
        category = beyond if beyond_eight_hours else first
        return RateResolution(
            overtime_type=overtime_type,
            rate_multiplier=multiplier_for(category, has_night_differential),
            has_night_differential=has_night_differential,
            category=category,
        )

    if entered_multiplier is None:
        raise ValidationError("Either a known overtime type or a rate multiplier is required")

    entered = Decimal(str(entered_multiplier))
    matched = match_multiplier(entered)
    if matched is None:
        return RateResolution(
            overtime_type=OvertimeType.OTHER,
            rate_multiplier=entered,
            has_night_differential=has_night_differential,
        )

    category, night = matched
    return RateResolution(
        overtime_type=OvertimeType(category.value),
        rate_multiplier=entered,
        has_night_differential=night,
        category=category,
    )


def classify_day(
    *,
    is_regular_holiday: bool = False,
    is_special_holiday: bool = False,
    is_scheduled_rest_day: bool = False,
    is_rest_day: bool = False,
) -> OvertimeType:
    """Pick the overtime type for a day; holidays outrank rest days."""

    if is_regular_holiday:
        return OvertimeType.REGULAR_HOLIDAY
    if is_scheduled_rest_day:
        return OvertimeType.SCHEDULED_REST_DAY
    if is_special_holiday:
        return OvertimeType.SPECIAL_HOLIDAY
    if is_rest_day:
        return OvertimeType.REST_DAY
    return OvertimeType.REGULAR_WEEKDAY


def _night_windows(start: datetime, end: datetime):
    d: date = start.date() - timedelta(days=1)
    while d <= end.date():
        yield (
            datetime.combine(d, NIGHT_START),
            datetime.combine(d + timedelta(days=1), NIGHT_END),
        )
        d += timedelta(days=1)


def night_differential_hours(start: datetime, end: datetime) -> Decimal:
    """Hours of [start, end) falling inside 22:00-06:00 windows."""

    if end <= start:
        return Decimal("0.00")
    seconds = 0
    for w_start, w_end in _night_windows(start, end):
        overlap_start = max(start, w_start)
        overlap_end = min(end, w_end)
        if overlap_end > overlap_start:
            seconds += int((overlap_end - overlap_start).total_seconds())
    return (Decimal(seconds) / Decimal(3600)).quantize(_HOURS, rounding=ROUND_HALF_UP)


def has_night_differential(start: datetime, end: datetime) -> bool:
    return night_differential_hours(start, end) > 0


def overtime_window(overtime_date: date, start: time, end: time) -> Tuple[datetime, datetime]:
    """Anchor clock times on the overtime date; an earlier end means the next day."""

    start_dt = datetime.combine(overtime_date, start)
    end_dt = datetime.combine(overtime_date, end)
    if end_dt <= start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt
