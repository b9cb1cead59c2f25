"""Application exceptions."""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors."""


class ModelError(AppError):
    """Base exception for model/database operations."""


class RecordNotFoundError(ModelError):
    """Raised when a record is not found in the database."""

    def __init__(
        self, model_name: str, record_id: Any = None, message: Optional[str] = None
    ):
        self.model_name = model_name
        self.record_id = record_id
        super().__init__(message or f"{model_name} not found")


class DuplicateRecordError(ModelError):
    """Raised when a unique field value is already taken."""

    def __init__(
        self, model_name: str, field: Optional[str] = None, detail: Optional[str] = None
    ):
        self.model_name = model_name
        self.field = field
        super().__init__(
            detail or f"{model_name} with this {field or 'value'} already exists"
        )


class RecordInUseError(ModelError):
    """Raised when a record cannot be removed because others reference it."""

    def __init__(
        self, model_name: str, record_id: Any, usage_count: Optional[int] = None
    ):
        self.model_name = model_name
        self.record_id = record_id
        self.usage_count = usage_count
        if usage_count is None:
            message = f"Cannot delete {model_name.lower()}: it is still referenced"
        else:
            message = (
                f"Cannot delete {model_name.lower()}: it is used by "
                f"{usage_count} course(s)"
            )
        super().__init__(message)


class DatabaseConnectionError(ModelError):
    """Raised when database connection fails."""


class InvalidFilterError(ModelError):
    """Raised when invalid filter is provided."""


class InvalidInputError(AppError):
    """Raised when input data is rejected before reaching the store."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class PermissionDeniedError(AppError):
    """Raised when the caller may not perform the requested operation."""


class AuthenticationError(AppError):
    """Raised when the caller identity is missing or malformed."""
