import logging

from fastapi import APIRouter, Depends, Query, status

from booking.api.deps import get_booking_service
from booking.api.schemas.appointment import (
    AppointmentPublic,
    BookAppointmentRequest,
    MessageResponse,
    RescheduleAppointmentRequest,
)
from booking.services.appointment_service import BookingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentPublic:
    appointment = await booking_service.book(body.patient_id, body.provider_id, body.start_time)
    logger.info(
        "Booked appointment %s for provider %s at %s",
        appointment.id,
        appointment.provider_id,
        appointment.start_time.isoformat(),
    )
    return AppointmentPublic.from_model(appointment)


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentPublic:
    return AppointmentPublic.from_model(await booking_service.get_by_id(appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def reschedule_appointment(
    appointment_id: str,
    body: RescheduleAppointmentRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentPublic:
    appointment = await booking_service.reschedule(appointment_id, body.start_time)
    return AppointmentPublic.from_model(appointment)


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def cancel_appointment(
    appointment_id: str,
    reason: str = Query("CLIENT_REQUEST"),
    booking_service: BookingService = Depends(get_booking_service),
) -> MessageResponse:
    await booking_service.cancel(appointment_id, reason)
    return MessageResponse(message="Appointment cancelled successfully.")


@router.post("/{appointment_id}/no-show", response_model=AppointmentPublic)
async def mark_no_show(
    appointment_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentPublic:
    return AppointmentPublic.from_model(await booking_service.mark_no_show(appointment_id))
