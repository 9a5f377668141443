from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking.core.config import settings
from booking.core.db import async_session_maker
from booking.repositories.appointment_repository import AppointmentRepository
from booking.repositories.provider_repository import ProviderRepository
from booking.services.appointment_service import BookingService
from booking.services.availability_service import AvailabilityService
from booking.services.event_service import EventPublisher
from booking.services.lock_service import LockManager
from booking.services.provider_service import ProviderService


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_session_maker


def get_lock_manager(request: Request) -> LockManager:
    """Process-wide lock table; every request must share the same instance."""
    return request.app.state.lock_manager


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher


def get_provider_repository(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> ProviderRepository:
    return ProviderRepository(session_maker)


def get_appointment_repository(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> AppointmentRepository:
    return AppointmentRepository(session_maker)


def get_availability_service(
    appointment_repository: AppointmentRepository = Depends(get_appointment_repository),
) -> AvailabilityService:
    return AvailabilityService(appointment_repository)


def get_provider_service(
    provider_repository: ProviderRepository = Depends(get_provider_repository),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ProviderService:
    return ProviderService(provider_repository, availability_service)


def get_booking_service(
    provider_repository: ProviderRepository = Depends(get_provider_repository),
    appointment_repository: AppointmentRepository = Depends(get_appointment_repository),
    availability_service: AvailabilityService = Depends(get_availability_service),
    lock_manager: LockManager = Depends(get_lock_manager),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingService:
    return BookingService(
        provider_repository,
        appointment_repository,
        availability_service,
        lock_manager,
        event_publisher,
        lock_ttl_seconds=settings.lock_ttl_seconds,
    )
