"""
Shared fixtures: in-memory repositories, a recording publisher and a throwaway SQLite database.
"""

import asyncio
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from booking.core.db import build_session_maker, init_db
from booking.core.errors import DuplicateSlotError, NotFoundError
from booking.models.appointment import Appointment, AppointmentStatus, BookedInterval
from booking.models.provider import DayOfWeek, Provider, ProviderSchedule
from booking.services.appointment_service import BookingService
from booking.services.availability_service import AvailabilityService
from booking.services.event_service import (
    AppointmentEvent,
    AppointmentEventPayload,
    AppointmentEventType,
    EventPublisher,
)
from booking.services.lock_service import InMemoryLockManager

BERLIN = "Europe/Berlin"


def make_provider(
    provider_id: str = "provider-1",
    timezone: str = BERLIN,
    duration: int = 30,
    schedule: dict[str, tuple[str, str]] | None = None,
) -> Provider:
    if schedule is None:
        schedule = {"MONDAY": ("09:00", "17:00")}
    return Provider(
        id=provider_id,
        timezone=timezone,
        appointment_duration=duration,
        schedules=[
            ProviderSchedule(provider_id=provider_id, day_of_week=DayOfWeek(day), start_time=start, end_time=end)
            for day, (start, end) in schedule.items()
        ],
    )


class FakeProviderRepository:
    def __init__(self, *providers: Provider) -> None:
        self.providers = {p.id: p for p in providers}
        self.upserts: list[tuple] = []

    async def find_provider_with_schedule(self, provider_id: str) -> Provider | None:
        await asyncio.sleep(0)
        return self.providers.get(provider_id)

    async def upsert_schedule(self, provider_id, weekly_schedule, timezone, appointment_duration):
        self.upserts.append((provider_id, weekly_schedule, timezone, appointment_duration))
        provider = Provider(
            id=provider_id,
            timezone=timezone,
            appointment_duration=appointment_duration,
            schedules=[
                ProviderSchedule(provider_id=provider_id, day_of_week=day, start_time=w.start, end_time=w.end)
                for day, w in weekly_schedule.items()
            ],
        )
        self.providers[provider_id] = provider
        return provider


class FakeAppointmentRepository:
    """Dict-backed repository that yields to the event loop on every call, like real I/O."""

    def __init__(self) -> None:
        self.appointments: dict[str, Appointment] = {}
        self.interval_queries: list[tuple[str, datetime, datetime]] = []
        self.writes = 0

    def _taken(self, provider_id: str, start: datetime, exclude: str | None = None) -> bool:
        return any(
            a.provider_id == provider_id
            and a.start_time == start
            and a.status != AppointmentStatus.CANCELLED
            and a.id != exclude
            for a in self.appointments.values()
        )

    async def find_appointment_by_id(self, appointment_id: str) -> Appointment | None:
        await asyncio.sleep(0)
        return self.appointments.get(appointment_id)

    async def find_booked_intervals(self, provider_id, range_start, range_end) -> list[BookedInterval]:
        self.interval_queries.append((provider_id, range_start, range_end))
        await asyncio.sleep(0)
        booked = [
            BookedInterval(start=a.start_time, end=a.end_time)
            for a in self.appointments.values()
            if a.provider_id == provider_id
            and a.status != AppointmentStatus.CANCELLED
            and a.start_time < range_end
            and a.end_time > range_start
        ]
        return sorted(booked, key=lambda b: b.start)

    async def create_appointment(self, patient_id, provider_id, start, end) -> Appointment:
        await asyncio.sleep(0)
        if self._taken(provider_id, start):
            raise DuplicateSlotError(f"{provider_id} {start}")
        appointment = Appointment(
            patient_id=patient_id, provider_id=provider_id, start_time=start, end_time=end
        )
        self.appointments[appointment.id] = appointment
        self.writes += 1
        return appointment

    async def update_appointment_time(self, appointment_id, new_start, new_end) -> Appointment:
        await asyncio.sleep(0)
        appointment = self.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        if self._taken(appointment.provider_id, new_start, exclude=appointment_id):
            raise DuplicateSlotError(f"{appointment.provider_id} {new_start}")
        appointment.start_time = new_start
        appointment.end_time = new_end
        self.writes += 1
        return appointment

    async def update_appointment_status(self, appointment_id, status) -> Appointment:
        await asyncio.sleep(0)
        appointment = self.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        appointment.status = status
        self.writes += 1
        return appointment


class RecordingPublisher(EventPublisher):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events: list[AppointmentEvent] = []

    async def publish(
        self, event_type: AppointmentEventType, payload: AppointmentEventPayload
    ) -> AppointmentEvent:
        if self.fail:
            raise RuntimeError("broker unavailable")
        event = AppointmentEvent(event_type=event_type, payload=payload)
        self.events.append(event)
        return event


@pytest.fixture
def provider() -> Provider:
    """Berlin provider working Mondays 09:00-17:00 with 30-minute appointments."""
    return make_provider()


@pytest.fixture
def provider_repository(provider) -> FakeProviderRepository:
    return FakeProviderRepository(provider)


@pytest.fixture
def appointment_repository() -> FakeAppointmentRepository:
    return FakeAppointmentRepository()


@pytest.fixture
def lock_manager() -> InMemoryLockManager:
    return InMemoryLockManager()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def availability_service(appointment_repository) -> AvailabilityService:
    return AvailabilityService(appointment_repository)


@pytest.fixture
def booking_service(
    provider_repository, appointment_repository, availability_service, lock_manager, publisher
) -> BookingService:
    return BookingService(
        provider_repository,
        appointment_repository,
        availability_service,
        lock_manager,
        publisher,
        lock_ttl_seconds=10,
    )


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield build_session_maker(engine)
    await engine.dispose()
