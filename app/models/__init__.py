"""Data models package."""

from app.exceptions import (
    DatabaseConnectionError,
    InvalidFilterError,
    ModelError,
    RecordNotFoundError,
)
from app.models.base import BaseModel
from app.models.course import Course
from app.models.specialist import Specialist
from app.models.subject import (
    Subject,
    SubjectPrerequisite,
    SubjectSpecialist,
    make_slug,
)
from app.models.user import User, UserRole, UserSpecialist

__all__ = [
    "BaseModel",
    "ModelError",
    "RecordNotFoundError",
    "DatabaseConnectionError",
    "InvalidFilterError",
    "Course",
    "Specialist",
    "Subject",
    "SubjectPrerequisite",
    "SubjectSpecialist",
    "User",
    "UserRole",
    "UserSpecialist",
    "make_slug",
]
