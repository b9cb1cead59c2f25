"""Base service class with transaction management for database operations."""

import logging
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.engine import Result
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseConnectionError,
    DuplicateRecordError,
    InvalidFilterError,
    InvalidInputError,
    RecordInUseError,
)
from app.models.base import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _is_foreign_key_violation(error: IntegrityError) -> bool:
    # asyncpg and SQLite both name the constraint kind in the message
    return "foreign key" in str(error.orig).lower()


class BaseService(Generic[T]):
    """Base service class managing database transactions for model operations.

    Provides automatic transaction management using direct SQLAlchemy queries:
    - Write operations (create, save, delete) automatically commit
    - Read operations (get_by_id, get_one_by) don't commit
    - All errors trigger automatic rollback

    Usage:
        class SpecialistService(BaseService[Specialist]):
            model = Specialist

        service = SpecialistService(db_session)
        specialist = await service.create(name="Data Science")
        # Transaction is automatically committed

    Attributes:
        db: Database session for operations
        model: Model class this service manages
    """

    model: type[T]

    def __init__(self, db: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            db: Database session for operations
        """
        self.db = db

    @property
    def model_name(self) -> str:
        return self.model.__name__

    async def create(self, **kwargs: Any) -> T:
        """Create a new record and commit transaction.

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance

        Raises:
            DuplicateRecordError: If unique constraint is violated
            DatabaseConnectionError: If database operation fails
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        return await self.save(instance, action="create")

    async def save(self, instance: T, action: str = "update") -> T:
        """Flush pending changes of an instance and commit.

        Always bumps ``updated_at`` so that changes limited to related
        link rows still mark the record as modified.

        Args:
            instance: Model instance attached to the session
            action: Operation name used in log records

        Returns:
            Refreshed model instance

        Raises:
            DuplicateRecordError: If unique constraint is violated
            InvalidInputError: If a foreign key points at a missing record
            DatabaseConnectionError: If database operation fails
        """
        try:
            if action != "create":
                instance.updated_at = func.now()
            await self.db.flush()
            await self.db.refresh(instance)
            await self.db.commit()
            logger.debug(
                f"{action.capitalize()}d {self.model_name}",
                extra={"model": self.model_name, "id": instance.id},
            )
            return instance
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Integrity violation during {action} of {self.model_name}",
                extra={"model": self.model_name, "error": str(e)},
            )
            if _is_foreign_key_violation(e):
                raise InvalidInputError(
                    f"{self.model_name} references a record that does not exist"
                ) from e
            raise DuplicateRecordError(self.model_name) from e
        except (DBAPIError, SQLAlchemyError) as e:
            await self.db.rollback()
            logger.error(
                f"Failed to {action} {self.model_name}",
                extra={"model": self.model_name, "error": str(e)},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during {action}: {str(e)}"
            ) from e

    async def get_by_id(self, record_id: int) -> Optional[T]:
        """Retrieve a record by its primary key ID.

        This is a read operation and does not commit the transaction.

        Args:
            record_id: Primary key ID

        Returns:
            Model instance or None if not found

        Raises:
            DatabaseConnectionError: If database operation fails
        """
        return await self.get_one_by(id=record_id)

    async def get_one_by(self, **filters: Any) -> Optional[T]:
        """Retrieve the first record matching all given field values.

        Args:
            **filters: Field-value pairs to filter by

        Returns:
            Model instance or None if nothing matches

        Raises:
            InvalidFilterError: If invalid filter key provided
            DatabaseConnectionError: If database operation fails
        """
        query = self._apply_filters(select(self.model), filters).limit(1)
        result = await self._execute(query, "get", filters=filters)
        return result.scalars().first()

    async def delete(self, instance: T) -> None:
        """Delete a record and commit transaction.

        Raises:
            RecordInUseError: If a foreign key still references the record
            DatabaseConnectionError: If database operation fails
        """
        record_id = instance.id
        try:
            await self.db.delete(instance)
            await self.db.flush()
            await self.db.commit()
            logger.debug(
                f"Deleted {self.model_name}",
                extra={"model": self.model_name, "id": record_id},
            )
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Refused to delete referenced {self.model_name}",
                extra={"model": self.model_name, "id": record_id, "error": str(e)},
            )
            raise RecordInUseError(self.model_name, record_id) from e
        except (DBAPIError, SQLAlchemyError) as e:
            await self.db.rollback()
            logger.error(
                f"Failed to delete {self.model_name}",
                extra={"model": self.model_name, "id": record_id, "error": str(e)},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during delete: {str(e)}"
            ) from e

    async def _execute(self, statement: Any, action: str, **log_extra: Any) -> Result:
        """Execute a read statement, translating driver errors.

        Raises:
            DatabaseConnectionError: If database operation fails
        """
        try:
            return await self.db.execute(statement)
        except (DBAPIError, SQLAlchemyError) as e:
            logger.error(
                f"Failed to {action} {self.model_name}",
                extra={"model": self.model_name, "error": str(e), **log_extra},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during {action}: {str(e)}"
            ) from e

    def _apply_filters(self, query: Any, filters: dict[str, Any]) -> Any:
        for key, value in filters.items():
            if not hasattr(self.model, key):
                raise InvalidFilterError(
                    f"Invalid filter key '{key}' for model {self.model_name}"
                )
            query = query.where(getattr(self.model, key) == value)
        return query
