from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from ..core.exceptions import DomainError


@dataclass(frozen=True)
class BulkFailure:
    item: Any
    error: str
    message: str


@dataclass
class BulkResult:
    """Outcome of a bulk operation; partial success is expected."""

    succeeded: List[Any] = field(default_factory=list)
    failed: List[BulkFailure] = field(default_factory=list)

    def add_success(self, item: Any) -> None:
        self.succeeded.append(item)

    def add_failure(self, item: Any, exc: Exception) -> None:
        if isinstance(exc, DomainError):
            self.failed.append(BulkFailure(item=item, error=type(exc).__name__, message=str(exc)))
        else:
            self.failed.append(BulkFailure(item=item, error="unexpected", message=str(exc) or type(exc).__name__))

    @property
    def ok(self) -> bool:
        return not self.failed
