"""Course service answering referential-integrity questions about subjects."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from app.exceptions import DatabaseConnectionError
from app.models.course import Course
from app.services.base import BaseService

logger = logging.getLogger(__name__)


class CourseService(BaseService[Course]):
    """Service for Course entities.

    The subject directory only needs to know whether courses still use a
    subject; course management itself lives elsewhere.

    Usage:
        service = CourseService(db_session)
        in_use = await service.count_referencing_subject(subject.id)
    """

    model = Course

    async def count_referencing_subject(self, subject_id: int) -> int:
        """Count courses built on the given subject.

        Args:
            subject_id: Subject primary key.

        Returns:
            Number of courses whose subject_id equals subject_id.

        Raises:
            DatabaseConnectionError: If database operation fails.
        """
        try:
            stmt = select(func.count(Course.id)).where(Course.subject_id == subject_id)
            result = await self.db.execute(stmt)
            return result.scalar_one()
        except (DBAPIError, SQLAlchemyError) as e:
            logger.error(
                "Failed to count courses for subject",
                extra={"subject_id": subject_id, "error": str(e)},
                exc_info=True,
            )
            raise DatabaseConnectionError(
                f"Database error during count_referencing_subject: {str(e)}"
            ) from e
