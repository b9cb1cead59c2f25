"""User service resolving teacher specialist assignments."""

import logging
from typing import Set

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from app.exceptions import DatabaseConnectionError, RecordNotFoundError
from app.models.user import User, UserSpecialist
from app.services.base import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService[User]):
    """Service for User entities.

    Provides the specialist lookup the subject access policy relies on.

    Usage:
        service = UserService(db_session)
        specialist_ids = await service.get_assigned_specialists(teacher_id)
    """

    model = User

    async def get_assigned_specialists(self, user_id: int) -> Set[int]:
        """Return ids of the specialists a user is assigned to.

        The lookup is live: assignments changed by an administrator take
        effect on the next request.

        Args:
            user_id: User primary key.

        Returns:
            Set of specialist ids, empty if the user has none.

        Raises:
            RecordNotFoundError: If the user does not exist ("User not found").
            DatabaseConnectionError: If database operation fails.
        """
        try:
            exists = await self.db.execute(select(User.id).where(User.id == user_id))
            if exists.scalar_one_or_none() is None:
                raise RecordNotFoundError("User", user_id)

            result = await self.db.execute(
                select(UserSpecialist.specialist_id).where(
                    UserSpecialist.user_id == user_id
                )
            )
            return set(result.scalars().all())
        except (DBAPIError, SQLAlchemyError) as e:
            logger.error(
                "Failed to load user specialists",
                extra={"user_id": user_id, "error": str(e)},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during get_assigned_specialists: {str(e)}"
            ) from e
