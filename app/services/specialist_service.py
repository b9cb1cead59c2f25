"""Specialist service providing lookups for subject assignment forms."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from app.exceptions import DatabaseConnectionError
from app.models.specialist import Specialist
from app.services.base import BaseService

logger = logging.getLogger(__name__)


class SpecialistService(BaseService[Specialist]):
    """Service for managing Specialist entities.

    Usage:
        service = SpecialistService(db_session)
        specialists = await service.search(search="data", limit=10)
    """

    model = Specialist

    async def search(
        self, search: str = "", limit: int = 10, active_only: bool = True
    ) -> List[Specialist]:
        """Search specialists by name with limit.

        Args:
            search: Search term to filter by name (case-insensitive).
            limit: Maximum number of results to return.
            active_only: Skip specialists that are no longer offered.

        Returns:
            List of matching Specialist instances ordered by name.

        Raises:
            DatabaseConnectionError: If database operation fails.
        """
        try:
            stmt = select(Specialist).order_by(Specialist.name).limit(limit)
            if search:
                stmt = stmt.where(Specialist.name.ilike(f"%{search}%"))
            if active_only:
                stmt = stmt.where(Specialist.is_active.is_(True))
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except (DBAPIError, SQLAlchemyError) as e:
            logger.error(
                "Failed to search specialists",
                extra={"search": search, "error": str(e)},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during search: {str(e)}"
            ) from e
