"""SQL shared by the request tables that carry approval slots.

Each slot is stored as ``<slot>_approver_id``, ``<slot>_approved_at`` and
``<slot>_remarks`` on the request row.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import ApprovalSlot, RequestStatus
from .model import Approval


def slot_columns(slots: Iterable[ApprovalSlot]) -> str:
    cols = []
    for slot in slots:
        p = slot.value
        cols.extend([f"{p}_approver_id", f"{p}_approved_at", f"{p}_remarks"])
    return ", ".join(cols)


def approval_from_row(row: dict, slot: ApprovalSlot) -> Optional[Approval]:
    p = slot.value
    approver = row.get(f"{p}_approver_id")
    if approver is None:
        return None
    return Approval(
        approver_id=int(approver),
        decided_at=row.get(f"{p}_approved_at"),
        remarks=row.get(f"{p}_remarks"),
    )


def cas_transition(
    cur,
    *,
    table: str,
    request_id: int,
    expected_status: RequestStatus,
    new_status: RequestStatus,
    slot: ApprovalSlot,
    approval: Approval,
    allowed_slots: Iterable[ApprovalSlot],
    extra_where: str = "",
    extra_params: tuple = (),
) -> bool:
    if slot not in tuple(allowed_slots):
        raise ValueError(f"{table} has no {slot.value} approval slot")
    p = slot.value
    cur.execute(
        f"""
        UPDATE {table}
        SET status=%s, {p}_approver_id=%s, {p}_approved_at=%s, {p}_remarks=%s
        WHERE request_id=%s AND status=%s{extra_where}
        """,
        (
            new_status.value,
            int(approval.approver_id),
            approval.decided_at,
            approval.remarks,
            int(request_id),
            expected_status.value,
        )
        + tuple(extra_params),
    )
    return cur.rowcount > 0
