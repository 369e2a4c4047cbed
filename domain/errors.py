"""Domain errors.

Every error raised by the booking core derives from ReservationError, which is
itself a ValueError so callers that only know "bad input" keep working. Each
error carries an ErrorCode that the API layer maps to an HTTP status.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    VALIDATION_FAILED = "ERR_VALIDATION"
    CURRENCY_MISMATCH = "ERR_CURRENCY"
    QUANTITY_LIMIT_EXCEEDED = "ERR_QUANTITY_LIMIT"
    DUPLICATE_ITEM = "ERR_DUPLICATE_ITEM"
    NOT_FOUND = "ERR_NOT_FOUND"
    INVALID_TRANSITION = "ERR_INVALID_TRANSITION"
    UNKNOWN_STATUS = "ERR_UNKNOWN_STATUS"
    NEGATIVE_RESULT = "ERR_NEGATIVE_RESULT"
    FORBIDDEN = "ERR_FORBIDDEN"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "The request is missing or has invalid fields",
    ErrorCode.CURRENCY_MISMATCH: "Amounts in different currencies cannot be combined",
    ErrorCode.QUANTITY_LIMIT_EXCEEDED: "Requested quantity exceeds the available limit",
    ErrorCode.DUPLICATE_ITEM: "The item is already in the cart",
    ErrorCode.NOT_FOUND: "The requested record was not found",
    ErrorCode.INVALID_TRANSITION: "The action is not allowed in the current booking status",
    ErrorCode.UNKNOWN_STATUS: "Unrecognized booking status",
    ErrorCode.NEGATIVE_RESULT: "Amount arithmetic produced a negative result",
    ErrorCode.FORBIDDEN: "You are not allowed to perform this action",
}


class ReservationError(ValueError):
    """Base class for booking core errors"""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or ERROR_MESSAGES[self.code]
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses"""
        return {
            "success": False,
            "error_code": self.code.value,
            "message": self.message,
            "details": {key: str(value) for key, value in self.details.items()} or None,
        }


class ValidationError(ReservationError):
    code = ErrorCode.VALIDATION_FAILED


class CurrencyMismatchError(ValidationError):
    code = ErrorCode.CURRENCY_MISMATCH

    def __init__(self, left: str, right: str):
        super().__init__(
            f"Cannot combine {left} with {right}",
            details={"left": left, "right": right},
        )


class QuantityLimitExceeded(ReservationError):
    code = ErrorCode.QUANTITY_LIMIT_EXCEEDED

    def __init__(self, limit: int, amenity_id: Optional[str] = None):
        self.limit = limit
        if limit <= 0:
            message = "This item is fully booked"
        else:
            message = f"Limit reached! Only {limit} available"
        details: Dict[str, Any] = {"limit": limit}
        if amenity_id is not None:
            details["amenity_id"] = amenity_id
        super().__init__(message, details=details)


class DuplicateItemError(ReservationError):
    code = ErrorCode.DUPLICATE_ITEM

    def __init__(self, amenity_id: str):
        self.amenity_id = amenity_id
        super().__init__(
            f"Amenity {amenity_id} is already in the cart",
            details={"amenity_id": amenity_id},
        )


class NotFoundError(ReservationError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key} not found", details={"kind": kind, "key": key})


class InvalidTransitionError(ReservationError):
    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, current: Any, target: Any):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move booking from {_label(current)} to {_label(target)}",
            details={"current": _label(current), "target": _label(target)},
        )


class UnknownStatusError(ReservationError):
    code = ErrorCode.UNKNOWN_STATUS

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown booking status: {value!r}", details={"value": value})


class NegativeResultError(ReservationError):
    code = ErrorCode.NEGATIVE_RESULT


class ForbiddenError(ReservationError):
    code = ErrorCode.FORBIDDEN


def _label(value: Any) -> str:
    # enums render by value, free-form actions and statuses as given
    return str(getattr(value, "value", value))
