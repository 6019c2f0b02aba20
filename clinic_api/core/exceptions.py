"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Scheduling conflict exception."""

    def __init__(self, message: str = "Conflict", conflicting_ids: list[str] | None = None):
        """Initialize with 409 status code."""
        self.conflicting_ids = conflicting_ids or []
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class AvailabilityError(AppException):
    """Slot computation failed because a store lookup failed."""

    def __init__(self, message: str = "Could not compute available slots"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class LedgerSyncError(AppException):
    """
    Transaction insert failed while settling an entity.

    The entity status was restored to its previous value, so neither the
    entity nor the ledger changed.
    """

    def __init__(
        self,
        message: str,
        *,
        origin: str,
        origin_id: str,
        entity: Any = None,
        rolled_back: bool = True,
    ):
        """Initialize with 502 status code."""
        self.origin = origin
        self.origin_id = origin_id
        self.entity = entity
        self.rolled_back = rolled_back
        super().__init__(message, status_code=502)
