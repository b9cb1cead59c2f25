"""Business logic services package."""

from app.services.base import BaseService
from app.services.course_service import CourseService
from app.services.specialist_service import SpecialistService
from app.services.subject_access import SubjectAccessPolicy
from app.services.subject_service import SubjectService
from app.services.user_service import UserService

__all__ = [
    "BaseService",
    "CourseService",
    "SpecialistService",
    "SubjectAccessPolicy",
    "SubjectService",
    "UserService",
]
