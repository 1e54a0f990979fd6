from __future__ import annotations

import logging
from typing import List, Protocol

from .model import TransitionEvent

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def record(self, event: TransitionEvent) -> None:
        raise NotImplementedError


class LoggingAuditSink(AuditSink):
    """Default sink: one INFO line per accepted transition."""

    def record(self, event: TransitionEvent) -> None:
        logger.info(
            "%s #%s: %s -> %s by %s (%s)%s",
            event.kind.value,
            event.request_id,
            event.old_status.value,
            event.new_status.value,
            event.actor_id,
            event.slot.value,
            f" remarks={event.remarks!r}" if event.remarks else "",
            extra={"request_kind": event.kind.value, "request_id": event.request_id},
        )


class CollectingAuditSink(AuditSink):
    """Keeps events in memory; used by tests and local tooling."""

    def __init__(self):
        self.events: List[TransitionEvent] = []

    def record(self, event: TransitionEvent) -> None:
        self.events.append(event)
