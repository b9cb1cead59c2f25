"""Pydantic schemas for API request/response models."""

from app.schemas.specialist import SpecialistResponse
from app.schemas.subject import (
    PrerequisitesAdd,
    SubjectCreate,
    SubjectListQuery,
    SubjectResponse,
    SubjectSummary,
    SubjectUpdate,
)

__all__ = [
    "PrerequisitesAdd",
    "SpecialistResponse",
    "SubjectCreate",
    "SubjectListQuery",
    "SubjectResponse",
    "SubjectSummary",
    "SubjectUpdate",
]
