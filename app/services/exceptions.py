class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when Microsoft Graph returns an error response or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class ConfigurationError(ServiceError):
    """Raised when the bookings business or its credentials are not configured."""


class AuthorizationError(ServiceError):
    """Raised when no usable bearer token is available for Graph calls."""


class BookingValidationError(ServiceError):
    """Raised before any provider call when a request is missing required data."""


class BookingConflictError(ServiceError):
    """Raised when requested dates overlap an existing booking for the room."""
