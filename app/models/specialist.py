"""Specialist model representing study specializations."""

from typing import Optional

from sqlalchemy import Boolean, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class Specialist(BaseModel):
    """Specialization (e.g. "Software Engineering") that groups subjects.

    Teachers are assigned to specialists and may only manage subjects that
    belong to one of them.

    Attributes:
        name: Unique name of the specialist
        slug: URL-safe identifier
        description: Optional free text
        is_active: Whether the specialist is offered
    """

    __tablename__ = "specialists"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    slug: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, unique=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    def __repr__(self) -> str:
        return f"Specialist(id={self.id}, name={self.name!r})"
