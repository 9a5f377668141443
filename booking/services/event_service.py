import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from booking.models.types import utc_now

logger = logging.getLogger(__name__)


class AppointmentEventType(str, Enum):
    CONFIRMED = "APPOINTMENT_CONFIRMED"
    CANCELLED = "APPOINTMENT_CANCELLED"
    RESCHEDULED = "APPOINTMENT_RESCHEDULED"


class AppointmentEventPayload(BaseModel):
    appointment_id: str
    patient_id: str | None = None
    provider_id: str | None = None
    appointment_time: datetime | None = None
    new_appointment_time: datetime | None = None
    previous_appointment_time: datetime | None = None
    reason: str | None = None


class AppointmentEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: f"evt_{uuid4()}")
    event_type: AppointmentEventType
    timestamp: datetime = Field(default_factory=utc_now)
    payload: AppointmentEventPayload


EventListener = Callable[[AppointmentEvent], None]


class EventPublisher(ABC):
    """Outbound boundary for appointment events (message queue, webhook, ...)."""

    @abstractmethod
    async def publish(
        self, event_type: AppointmentEventType, payload: AppointmentEventPayload
    ) -> AppointmentEvent:
        ...


class LoggingEventPublisher(EventPublisher):
    """Logs events and fans them out to in-process listeners."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(
        self, event_type: AppointmentEventType, payload: AppointmentEventPayload
    ) -> AppointmentEvent:
        event = AppointmentEvent(event_type=event_type, payload=payload)
        logger.info(
            "Event emitted: type=%s id=%s timestamp=%s",
            event.event_type.value,
            event.event_id,
            event.timestamp.isoformat(),
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.exception("Event listener failed for %s: %s", event.event_id, e)
        return event
