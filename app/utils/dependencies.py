"""Dependency injection functions for FastAPI routes.

Uses descriptor pattern to automatically create dependency functions
for all services, eliminating code duplication.
"""

from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar, Union

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AuthenticationError
from app.models.user import UserRole
from app.services.specialist_service import SpecialistService
from app.services.subject_access import coerce_role
from app.services.subject_service import SubjectService
from app.utils.db import get_db_session

T = TypeVar("T")


class ServiceDependency:
    """Descriptor that creates a dependency injection function for a service.

    Caches the dependency function to ensure the same function object is returned
    each time, enabling proper use of FastAPI's dependency_overrides.
    """

    def __init__(self, service_class: Type[T]) -> None:
        """Initialize service dependency descriptor.

        Args:
            service_class: The service class to create instances of.
        """
        self.service_class = service_class
        self._cached_func: Any = None

    def __get__(self, instance: Any, owner: type) -> Any:
        """Create and return cached dependency function when accessed."""
        if self._cached_func is None:

            def dependency_func(
                db: AsyncSession = Depends(get_db_session),
            ) -> T:
                """Get service instance for dependency injection."""
                return self.service_class(db)

            self._cached_func = dependency_func
        return self._cached_func


class ServiceDependencies:
    """Container for all service dependency injection functions."""

    subject = ServiceDependency(SubjectService)
    specialist = ServiceDependency(SpecialistService)


# Create singleton instance for easy access
dependencies = ServiceDependencies()


@dataclass(frozen=True)
class Caller:
    """Already authenticated user forwarded by the upstream gateway.

    Attributes:
        id: User id of the caller.
        role: Role of the caller; unknown roles are kept as the raw string
            so that the access policy can reject them.
    """

    id: int
    role: Union[UserRole, str]


def get_current_caller(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Caller:
    """Resolve the caller from the X-User-Id and X-User-Role headers.

    Raises:
        AuthenticationError: If either header is missing or the id is not numeric.
    """
    if not x_user_id or not x_user_role:
        raise AuthenticationError("Missing caller identity")
    try:
        user_id = int(x_user_id)
    except ValueError as e:
        raise AuthenticationError("Malformed caller identity") from e

    return Caller(id=user_id, role=coerce_role(x_user_role) or x_user_role.strip())
