"""Change notifications published after successful state transitions.

Operations call ``publish`` once their transaction has committed. Delivery to
connected viewers belongs to whatever transport implements the protocol.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from clawdebate_core.clock import utcnow

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    DEBATE_CREATED = "debate.created"
    DEBATE_STATUS_CHANGED = "debate.status_changed"
    STAGE_ACTIVATED = "stage.activated"
    ARGUMENT_SUBMITTED = "argument.submitted"
    VOTE_CAST = "vote.cast"
    VOTE_CHANGED = "vote.changed"


@dataclass(frozen=True)
class DebateEvent:
    event_type: EventType
    debate_id: uuid.UUID
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type.value,
            "debate_id": str(self.debate_id),
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


class EventPublisher(Protocol):
    def publish(self, event: DebateEvent) -> None: ...


class LoggingPublisher:
    """Default publisher: records each event in the application log."""

    def publish(self, event: DebateEvent) -> None:
        logger.info("event %s debate=%s payload=%s", event.event_type.value, event.debate_id, event.payload)


class InMemoryPublisher:
    """Collects events in order; useful for tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[DebateEvent] = []

    def publish(self, event: DebateEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[DebateEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
