from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from threading import Lock

logger = logging.getLogger(__name__)


class RearrangementEventType(str, Enum):
    created = "request.created"
    accepted = "request.accepted"
    rejected = "request.rejected"


@dataclass(frozen=True)
class RearrangementEvent:
    event_type: RearrangementEventType
    request_id: str
    request_date: date
    period_id: str
    original_faculty_id: str
    substitute_faculty_id: str
    resolution: str | None
    occurred_at: datetime

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["event_type"] = self.event_type.value
        payload["request_date"] = self.request_date.isoformat()
        payload["occurred_at"] = self.occurred_at.isoformat()
        return payload


EventHandler = Callable[[RearrangementEvent], None]


class EventBus:
    """In-process fan-out of committed rearrangement events to external delivery adapters."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._lock = Lock()

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def publish(self, event: RearrangementEvent) -> int:
        with self._lock:
            handlers = list(self._handlers)

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:  # subscriber failures must not undo a committed transition
                logger.warning(
                    "Event subscriber %r failed for %s %s",
                    handler,
                    event.event_type.value,
                    event.request_id,
                    exc_info=True,
                )
        return delivered


event_bus = EventBus()
