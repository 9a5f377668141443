from datetime import datetime

from pydantic import AwareDatetime, BaseModel

from booking.models.appointment import Appointment, AppointmentStatus


class BookAppointmentRequest(BaseModel):
    patient_id: str
    provider_id: str
    start_time: AwareDatetime


class RescheduleAppointmentRequest(BaseModel):
    start_time: AwareDatetime


class AppointmentPublic(BaseModel):
    appointment_id: str
    status: AppointmentStatus
    patient_id: str
    provider_id: str
    start_time: datetime
    end_time: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, a: Appointment) -> "AppointmentPublic":
        return cls(
            appointment_id=a.id,
            status=a.status,
            patient_id=a.patient_id,
            provider_id=a.provider_id,
            start_time=a.start_time,
            end_time=a.end_time,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )


class MessageResponse(BaseModel):
    message: str
