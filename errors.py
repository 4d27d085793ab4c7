# errors.py
from typing import Any, Dict, Optional


class HotelError(Exception):
    """Base for every error the booking core and API raise on purpose."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(HotelError):
    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidRangeError(ValidationError):
    """Check-out is not after check-in."""
    code = "INVALID_DATE_RANGE"


class DateParseError(ValidationError):
    code = "INVALID_DATE"


class InvalidStayError(ValidationError):
    """Stay of fewer than one night."""
    code = "INVALID_STAY"


class InvalidDiscountError(ValidationError):
    code = "INVALID_DISCOUNT"


class InvalidOccupancyError(ValidationError):
    code = "INVALID_OCCUPANCY"


class NotFoundError(HotelError):
    status_code = 404
    code = "NOT_FOUND"


class RoomUnavailableError(HotelError):
    status_code = 409
    code = "ROOM_UNAVAILABLE"


class InvalidTransitionError(HotelError):
    status_code = 409
    code = "INVALID_STATE_TRANSITION"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move booking from {current} to {target}",
            {"current": current, "target": target},
        )
        self.current = current
        self.target = target
