from fastapi import status


class BookingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An internal error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found.")


class BadRequestError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_message = "Bad request."


class InvalidTimezoneError(BadRequestError):
    code = "INVALID_TIMEZONE"

    def __init__(self, timezone: str | None) -> None:
        super().__init__(f'Invalid or unrecognized IANA timezone identifier: "{timezone}"')


class InvalidRangeError(BadRequestError):
    code = "INVALID_RANGE"
    default_message = "Start date cannot be after end date."


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Conflict detected."


class LockUnavailableError(ConflictError):
    code = "LOCK_UNAVAILABLE"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Failed to acquire lock for resource: {key}. It might be locked by another operation."
        )


class InternalFailureError(BookingError):
    code = "INTERNAL_FAILURE"


class DuplicateSlotError(Exception):
    """Raised by the persistence layer when (provider, start) is already taken."""
