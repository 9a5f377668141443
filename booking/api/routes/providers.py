from typing import Annotated

from fastapi import APIRouter, Depends, Query

from booking.api.deps import get_provider_service
from booking.api.schemas.appointment import MessageResponse
from booking.api.schemas.provider import AvailabilityQuery, DayAvailability, UpsertScheduleRequest
from booking.services.provider_service import ProviderService

router = APIRouter(prefix="/providers", tags=["providers"])


@router.post("/{provider_id}/schedule", response_model=MessageResponse)
async def upsert_schedule(
    provider_id: str,
    body: UpsertScheduleRequest,
    provider_service: ProviderService = Depends(get_provider_service),
) -> MessageResponse:
    await provider_service.set_schedule(
        provider_id,
        {day: window.model_dump() for day, window in body.weekly_schedule.items()},
        body.timezone,
        body.appointment_duration,
    )
    return MessageResponse(message="Provider schedule updated successfully.")


@router.get("/{provider_id}/availability", response_model=DayAvailability | dict[str, list[str]])
async def get_availability(
    provider_id: str,
    query: Annotated[AvailabilityQuery, Query()],
    provider_service: ProviderService = Depends(get_provider_service),
) -> DayAvailability | dict[str, list[str]]:
    """Free slots ("HH:mm", provider local) for one date, or a date -> slots map for a range."""
    if query.date:
        slots = await provider_service.available_slots(provider_id, query.date)
        return DayAvailability(provider_id=provider_id, date=query.date, available_slots=slots)
    return await provider_service.available_slots_in_range(
        provider_id, query.start_date, query.end_date
    )
