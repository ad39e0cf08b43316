# ================================
# CUSTOM EXCEPTIONS (core/exceptions.py)
# ================================

from typing import Optional

class AppException(Exception):
    """Base exception for application errors; detail is safe to show to users"""

    def __init__(self, detail: str, status_code: int = 400, error_code: str = None):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(detail)

class NotFoundError(AppException):
    """Referenced booking, apartment or owner does not exist"""

    def __init__(self, detail: str = "Booking not found.", error_code: str = "NOT_FOUND"):
        super().__init__(detail, 404, error_code)

class InvalidPinError(AppException):
    """Wrong, expired or already used PIN; deliberately undifferentiated"""

    def __init__(
        self,
        detail: str = "Invalid or expired PIN. Please check with your tenant and retry.",
        error_code: str = "INVALID_PIN",
        attempts_left: Optional[int] = None
    ):
        self.attempts_left = attempts_left
        super().__init__(detail, 400, error_code)

class UnavailableError(AppException):
    """Apartment cannot be booked right now"""

    def __init__(self, detail: str = "This apartment is currently unavailable.", error_code: str = "UNAVAILABLE"):
        super().__init__(detail, 409, error_code)

class InvalidStateError(AppException):
    """Operation not allowed from the booking's current lifecycle state"""

    def __init__(self, detail: str = "This action is not possible for this booking anymore.", error_code: str = "INVALID_STATE"):
        super().__init__(detail, 409, error_code)

class StorageConflictError(AppException):
    """Booking code collision that survived the retry"""

    def __init__(self, detail: str = "Could not create your booking. Please try again.", error_code: str = "STORAGE_CONFLICT"):
        super().__init__(detail, 503, error_code)

class NotificationDeliveryError(AppException):
    """Telegram refused or failed a message; never leaves the notification layer"""

    def __init__(self, detail: str = "Notification delivery failed", error_code: str = "NOTIFICATION_FAILED"):
        super().__init__(detail, 502, error_code)

class ValidationError(AppException):
    """Input rejected before it reaches the lifecycle"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(detail, 422, error_code)

class AuthorizationError(AppException):
    """Caller is not allowed to perform the action"""

    def __init__(self, detail: str = "Access denied", error_code: str = "ACCESS_DENIED"):
        super().__init__(detail, 403, error_code)
