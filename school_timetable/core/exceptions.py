from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class NotFoundError(ServiceError):
    """Missing, soft-deleted or out-of-scope entity. Scope mismatches never surface as 403."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND, code)


class InvalidInputError(ServiceError):
    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, code)


class ConflictError(ServiceError):
    """Overlapping periods or double-booked teacher/section."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, code)
