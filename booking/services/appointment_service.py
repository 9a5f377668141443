"""Booking orchestration: the only place where slots are claimed or moved.

Appointment lifecycle::

    (none) -> CONFIRMED -> CANCELLED           (terminal)
                        -> CONFIRMED           (rescheduled in place)
                        -> NO_SHOW

book and reschedule take a lock on the *target* slot only, re-check
availability inside it and write through the repository before releasing it.
Events are published after the lock is released and never affect the result.
"""

import logging
from datetime import datetime, timedelta

from booking.core.config import settings
from booking.core.errors import (
    BadRequestError,
    BookingError,
    ConflictError,
    DuplicateSlotError,
    InternalFailureError,
    NotFoundError,
)
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.provider import Provider
from booking.repositories.appointment_repository import AppointmentRepository
from booking.repositories.provider_repository import ProviderRepository
from booking.services.availability_service import AvailabilityService
from booking.services.event_service import AppointmentEventPayload, AppointmentEventType, EventPublisher
from booking.services.lock_service import LockManager, lock_key
from booking.services.time_service import ensure_utc, get_zone, utc_to_local_date, utc_to_local_time

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        provider_repository: ProviderRepository,
        appointment_repository: AppointmentRepository,
        availability_service: AvailabilityService,
        lock_manager: LockManager,
        event_publisher: EventPublisher,
        lock_ttl_seconds: float | None = None,
    ) -> None:
        self.provider_repository = provider_repository
        self.appointment_repository = appointment_repository
        self.availability_service = availability_service
        self.lock_manager = lock_manager
        self.event_publisher = event_publisher
        self.lock_ttl_seconds = settings.lock_ttl_seconds if lock_ttl_seconds is None else lock_ttl_seconds

    async def book(self, patient_id: str, provider_id: str, requested_time: datetime) -> Appointment:
        start = ensure_utc(requested_time)
        key = lock_key("appointment", provider_id, start)
        appointment = await self.lock_manager.run_exclusive(
            key, self.lock_ttl_seconds, lambda: self._book_locked(patient_id, provider_id, start)
        )
        await self._publish(
            AppointmentEventType.CONFIRMED,
            AppointmentEventPayload(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                provider_id=appointment.provider_id,
                appointment_time=appointment.start_time,
            ),
        )
        return appointment

    async def _book_locked(self, patient_id: str, provider_id: str, start: datetime) -> Appointment:
        provider = await self._get_provider(provider_id)
        await self._ensure_slot_available(provider, start)
        end = start + timedelta(minutes=provider.appointment_duration)
        try:
            return await self.appointment_repository.create_appointment(patient_id, provider_id, start, end)
        except DuplicateSlotError as e:
            logger.error("Duplicate slot even with lock held for provider %s at %s", provider_id, start)
            raise ConflictError("Time slot is already booked.") from e
        except BookingError:
            raise
        except Exception as e:
            logger.exception("Failed to create appointment for provider %s at %s", provider_id, start)
            raise InternalFailureError("Failed to create appointment due to a database issue.") from e

    async def reschedule(self, appointment_id: str, new_time: datetime) -> Appointment:
        existing = await self.get_by_id(appointment_id)
        if existing.status == AppointmentStatus.CANCELLED:
            raise BadRequestError("Cannot reschedule a cancelled appointment.")
        if existing.status == AppointmentStatus.NO_SHOW:
            raise BadRequestError("Cannot reschedule an appointment marked as no-show.")
        new_start = ensure_utc(new_time)
        previous_start = existing.start_time
        if new_start == previous_start:
            return existing

        key = lock_key("appointment", existing.provider_id, new_start)
        updated = await self.lock_manager.run_exclusive(
            key, self.lock_ttl_seconds, lambda: self._reschedule_locked(existing, new_start)
        )
        await self._publish(
            AppointmentEventType.RESCHEDULED,
            AppointmentEventPayload(
                appointment_id=updated.id,
                patient_id=existing.patient_id,
                provider_id=existing.provider_id,
                new_appointment_time=updated.start_time,
                previous_appointment_time=previous_start,
            ),
        )
        return updated

    async def _reschedule_locked(self, existing: Appointment, new_start: datetime) -> Appointment:
        provider = await self._get_provider(existing.provider_id)
        await self._ensure_slot_available(provider, new_start)
        new_end = new_start + timedelta(minutes=provider.appointment_duration)
        try:
            return await self.appointment_repository.update_appointment_time(existing.id, new_start, new_end)
        except DuplicateSlotError as e:
            logger.error(
                "Duplicate slot even with lock held rescheduling %s to %s", existing.id, new_start
            )
            raise ConflictError("The new time slot is already booked.") from e
        except BookingError:
            raise
        except Exception as e:
            logger.exception("Failed to reschedule appointment %s", existing.id)
            raise InternalFailureError("Failed to reschedule appointment due to a database issue.") from e

    async def cancel(self, appointment_id: str, reason: str = "UNKNOWN") -> Appointment:
        existing = await self.get_by_id(appointment_id)
        if existing.status == AppointmentStatus.CANCELLED:
            logger.warning("Attempted to cancel an already cancelled appointment: %s", appointment_id)
            return existing
        cancelled = await self._update_status(appointment_id, AppointmentStatus.CANCELLED)
        await self._publish(
            AppointmentEventType.CANCELLED,
            AppointmentEventPayload(
                appointment_id=cancelled.id,
                patient_id=cancelled.patient_id,
                provider_id=cancelled.provider_id,
                appointment_time=cancelled.start_time,
                reason=reason,
            ),
        )
        return cancelled

    async def mark_no_show(self, appointment_id: str) -> Appointment:
        existing = await self.get_by_id(appointment_id)
        if existing.status == AppointmentStatus.NO_SHOW:
            return existing
        if existing.status != AppointmentStatus.CONFIRMED:
            raise BadRequestError(
                f"Only confirmed appointments can be marked as no-show (status is {existing.status.value})."
            )
        return await self._update_status(appointment_id, AppointmentStatus.NO_SHOW)

    async def get_by_id(self, appointment_id: str) -> Appointment:
        appointment = await self.appointment_repository.find_appointment_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        return appointment

    async def _get_provider(self, provider_id: str) -> Provider:
        provider = await self.provider_repository.find_provider_with_schedule(provider_id)
        if not provider:
            raise NotFoundError("Provider")
        get_zone(provider.timezone)
        return provider

    async def _ensure_slot_available(self, provider: Provider, start: datetime) -> None:
        # Availability is decided on the provider's local calendar date
        local_date = utc_to_local_date(start, provider.timezone)
        available = await self.availability_service.slot_starts_for_date(provider, local_date)
        if start not in available:
            local_time = utc_to_local_time(start, provider.timezone)
            raise ConflictError(
                f"Time slot {local_time} on {local_date} is not available for provider {provider.id}."
            )

    async def _update_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        try:
            return await self.appointment_repository.update_appointment_status(appointment_id, status)
        except BookingError:
            raise
        except Exception as e:
            logger.exception("Failed to set status %s on appointment %s", status.value, appointment_id)
            raise InternalFailureError("Failed to update appointment due to a database issue.") from e

    async def _publish(self, event_type: AppointmentEventType, payload: AppointmentEventPayload) -> None:
        try:
            await self.event_publisher.publish(event_type, payload)
        except Exception as e:
            logger.exception("Failed to publish %s for %s: %s", event_type.value, payload.appointment_id, e)
