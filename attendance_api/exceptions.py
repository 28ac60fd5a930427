from typing import Any, Dict

from fastapi import status


class ApiError(Exception):
    """Base error rendered as ``{"error": message, **extra}``"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error: str, **extra: Any):
        super().__init__(error)
        self.message = error
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StorageError(InternalError):
    """Raised by a storage backend when a write violates its constraints"""
