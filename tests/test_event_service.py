import logging
from datetime import UTC, datetime

import pytest

from booking.services.event_service import (
    AppointmentEventPayload,
    AppointmentEventType,
    LoggingEventPublisher,
)


@pytest.fixture
def payload() -> AppointmentEventPayload:
    return AppointmentEventPayload(
        appointment_id="appt-1",
        patient_id="patient-1",
        provider_id="provider-1",
        appointment_time=datetime(2025, 6, 16, 8, 0, tzinfo=UTC),
    )


class TestLoggingEventPublisher:
    @pytest.mark.asyncio
    async def test_publish_builds_event(self, payload):
        event = await LoggingEventPublisher().publish(AppointmentEventType.CONFIRMED, payload)

        assert event.event_id.startswith("evt_")
        assert event.event_type == AppointmentEventType.CONFIRMED
        assert event.event_type.value == "APPOINTMENT_CONFIRMED"
        assert event.payload.appointment_id == "appt-1"
        assert event.timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_event_ids_are_unique(self, payload):
        publisher = LoggingEventPublisher()
        first = await publisher.publish(AppointmentEventType.CONFIRMED, payload)
        second = await publisher.publish(AppointmentEventType.CONFIRMED, payload)
        assert first.event_id != second.event_id

    @pytest.mark.asyncio
    async def test_publish_logs(self, payload, caplog):
        with caplog.at_level(logging.INFO, logger="booking.services.event_service"):
            await LoggingEventPublisher().publish(AppointmentEventType.CANCELLED, payload)
        assert "APPOINTMENT_CANCELLED" in caplog.text

    @pytest.mark.asyncio
    async def test_listeners_receive_events(self, payload):
        publisher = LoggingEventPublisher()
        received = []
        publisher.subscribe(received.append)

        await publisher.publish(AppointmentEventType.RESCHEDULED, payload)
        publisher.unsubscribe(received.append)
        await publisher.publish(AppointmentEventType.CANCELLED, payload)

        assert [e.event_type for e in received] == [AppointmentEventType.RESCHEDULED]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_publish(self, payload):
        publisher = LoggingEventPublisher()
        received = []

        def broken(event):
            raise RuntimeError("listener down")

        publisher.subscribe(broken)
        publisher.subscribe(received.append)

        event = await publisher.publish(AppointmentEventType.CONFIRMED, payload)

        assert received == [event]

    def test_payload_serializes_times_as_iso(self, payload):
        data = payload.model_dump(mode="json", exclude_none=True)
        assert data["appointment_time"].startswith("2025-06-16T08:00:00")
        assert "reason" not in data
