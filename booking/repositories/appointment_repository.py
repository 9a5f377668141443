from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking.core.errors import DuplicateSlotError, NotFoundError
from booking.models.appointment import Appointment, AppointmentStatus, BookedInterval


class AppointmentRepository:
    """Appointment persistence. Each call runs in its own committed transaction."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def find_appointment_by_id(self, appointment_id: str) -> Appointment | None:
        async with self._session_maker() as session:
            return await session.get(Appointment, appointment_id)

    async def find_booked_intervals(
        self, provider_id: str, range_start: datetime, range_end: datetime
    ) -> list[BookedInterval]:
        """Non-cancelled appointments overlapping [range_start, range_end), by start."""
        async with self._session_maker() as session:
            result = await session.execute(
                select(Appointment.start_time, Appointment.end_time)
                .where(
                    Appointment.provider_id == provider_id,
                    Appointment.status != AppointmentStatus.CANCELLED,
                    Appointment.start_time < range_end,
                    Appointment.end_time > range_start,
                )
                .order_by(Appointment.start_time)
            )
            return [BookedInterval(start=start, end=end) for start, end in result.all()]

    async def create_appointment(
        self, patient_id: str, provider_id: str, start: datetime, end: datetime
    ) -> Appointment:
        appointment = Appointment(
            patient_id=patient_id,
            provider_id=provider_id,
            start_time=start,
            end_time=end,
            status=AppointmentStatus.CONFIRMED,
        )
        async with self._session_maker() as session:
            session.add(appointment)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateSlotError(
                    f"Provider {provider_id} already has an appointment at {start.isoformat()}"
                ) from e
            await session.refresh(appointment)
            return appointment

    async def update_appointment_time(
        self, appointment_id: str, new_start: datetime, new_end: datetime
    ) -> Appointment:
        async with self._session_maker() as session:
            appointment = await session.get(Appointment, appointment_id)
            if not appointment:
                raise NotFoundError("Appointment")
            appointment.start_time = new_start
            appointment.end_time = new_end
            session.add(appointment)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateSlotError(
                    f"The new time slot {new_start.isoformat()} is already booked"
                ) from e
            await session.refresh(appointment)
            return appointment

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        async with self._session_maker() as session:
            appointment = await session.get(Appointment, appointment_id)
            if not appointment:
                raise NotFoundError("Appointment")
            appointment.status = status
            session.add(appointment)
            await session.commit()
            await session.refresh(appointment)
            return appointment
