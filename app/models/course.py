"""Course model representing a course offering built on a subject."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class Course(BaseModel):
    """Course taught for a subject.

    The subject foreign key uses ON DELETE RESTRICT, so a subject that is
    still used by a course cannot be removed even if two requests race.

    Attributes:
        title: Course title
        code: Optional course code
        description: Optional free text
        subject_id: Subject the course is built on
        is_published: Whether students can see the course
        capacity: Optional enrollment limit
    """

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    subject_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    is_published: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return (
            f"Course(id={self.id}, title={self.title!r}, subject_id={self.subject_id})"
        )
