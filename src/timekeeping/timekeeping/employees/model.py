from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Identity and pay basis of an employee.

    Note: Read-only here; employee maintenance lives outside this service.
    """

    employee_id: int
    full_name: str
    department: Optional[str]
    pay_type: str = "monthly"
    base_rate: Decimal = Decimal("0")
    schedule_id: Optional[int] = None
    is_active: bool = True
