"""
Status change dispatch.

Services publish one event per successful transition. Delivery (push,
email, webhooks) lives outside the core; the default dispatcher only logs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from venue_booking.core.logging import get_logger


@dataclass(frozen=True)
class StatusChangeEvent:
    """A booking or payment changed status."""

    entity_type: str
    entity_id: str
    action: str
    from_status: Optional[str]
    to_status: str
    actor: str
    occurred_at: datetime
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor": self.actor,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": dict(self.payload),
        }


class StatusChangeDispatcher(ABC):
    """Receives every status change the services commit."""

    @abstractmethod
    def dispatch(self, event: StatusChangeEvent) -> None:
        ...


class LoggingStatusChangeDispatcher(StatusChangeDispatcher):
    def __init__(self):
        self._logger = get_logger(self.__class__.__name__)

    def dispatch(self, event: StatusChangeEvent) -> None:
        self._logger.info(
            f"Status change: {event.entity_type} {event.action}",
            extra={
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
                "from_status": event.from_status,
                "to_status": event.to_status,
                "actor": event.actor,
            },
        )


class RecordingStatusChangeDispatcher(StatusChangeDispatcher):
    """Keeps dispatched events in memory; used by tests and dry runs."""

    def __init__(self):
        self.events: List[StatusChangeEvent] = []

    def dispatch(self, event: StatusChangeEvent) -> None:
        self.events.append(event)

    def actions(self) -> List[str]:
        return [event.action for event in self.events]
