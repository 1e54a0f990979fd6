from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable


@dataclass(frozen=True)
class ActorContext:
    """Who is acting and when.

    Role data comes from the identity layer as an opaque capability set;
    services never read the session or the wall clock themselves.
    """

    user_id: int
    now: datetime
    is_super_admin: bool = False
    is_hrd_manager: bool = False
    is_department_manager: bool = False
    managed_departments: frozenset[str] = field(default_factory=frozenset)

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def is_privileged(self) -> bool:
        return self.is_super_admin or self.is_hrd_manager

    def manages(self, department: str | None) -> bool:
        if not department or not self.is_department_manager:
            return False
        return department in self.managed_departments

    @classmethod
    def from_roles(
        cls,
        *,
        user_id: int,
        now: datetime,
        roles: Iterable[str] = (),
        managed_departments: Iterable[str] = (),
    ) -> "ActorContext":
        role_set = {str(r).strip().lower() for r in roles}
        managed = frozenset(d for d in managed_departments if d)
        return cls(
            user_id=int(user_id),
            now=now,
            is_super_admin="super_admin" in role_set,
            is_hrd_manager="hrd_manager" in role_set,
            is_department_manager=("department_manager" in role_set) or bool(managed),
            managed_departments=managed,
        )
