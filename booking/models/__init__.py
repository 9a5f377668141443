from booking.models.appointment import Appointment, AppointmentStatus, BookedInterval
from booking.models.provider import DailyWindow, DayOfWeek, Provider, ProviderSchedule, WeeklySchedule

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BookedInterval",
    "DailyWindow",
    "DayOfWeek",
    "Provider",
    "ProviderSchedule",
    "WeeklySchedule",
]
