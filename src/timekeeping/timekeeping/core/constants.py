"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from __future__ import annotations

from datetime import time
from decimal import Decimal

# Time classifier defaults (overridable from settings)
DEFAULT_EXPECTED_TIME_IN = time(8, 0)
DEFAULT_BREAK_MINUTES = 60
STANDARD_WORK_MINUTES = 480

# Punch assembly: an OUT on the next date before this hour closes a night shift.
NEXT_DAY_TIMEOUT_CUTOFF = time(12, 0)

# Problem detection
EXCESSIVE_WORK_HOURS = Decimal("16")

# Night differential window
NIGHT_START = time(22, 0)
NIGHT_END = time(6, 0)

# Overtime
MIN_RATE_MULTIPLIER = Decimal("1.0")
MAX_RATE_MULTIPLIER = Decimal("10.0")
MIN_OVERTIME_HOURS = Decimal("0.25")
MAX_OVERTIME_HOURS = Decimal("24")
REGULAR_HOURS_PER_DAY = Decimal("8")

# Leave
MIN_LEAVE_DAYS = Decimal("0.5")
MAX_LEAVE_DAYS = Decimal("100")
MAX_ALLOCATION_DAYS = Decimal("100")
HALF_DAY = Decimal("0.5")
LEAVE_BANK_YEARS_BACK = 5
LEAVE_BANK_YEARS_FORWARD = 2

DEFAULT_LIST_LIMIT = 200
