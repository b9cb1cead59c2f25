"""Subject model representing academic subjects."""

import re
import unicodedata
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    true,
)
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.utils.db import Base


def make_slug(value: str) -> str:
    """Build a URL-safe slug from a subject name.

    Example:
        make_slug("Linear Algebra II") -> "linear-algebra-ii"
    """
    normalized = unicodedata.normalize("NFKD", value)
    ascii_value = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_value = re.sub(r"[^\w\s-]", "", ascii_value.lower()).strip()
    return re.sub(r"[\s_-]+", "-", ascii_value)


class SubjectSpecialist(Base):
    """Link between a subject and one of its specialists. Order is irrelevant."""

    __tablename__ = "subject_specialists"

    subject_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True
    )
    specialist_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("specialists.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )


class SubjectPrerequisite(Base):
    """Ordered edge of the prerequisite graph.

    The composite primary key rules out duplicate edges and the check
    constraint rules out self references.
    """

    __tablename__ = "subject_prerequisites"

    subject_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True
    )
    prerequisite_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "subject_id <> prerequisite_id", name="ck_subject_prerequisite_not_self"
        ),
    )


def _specialist_link(specialist_id: int) -> SubjectSpecialist:
    return SubjectSpecialist(specialist_id=specialist_id)


def _prerequisite_link(prerequisite_id: int) -> SubjectPrerequisite:
    return SubjectPrerequisite(prerequisite_id=prerequisite_id)


class Subject(BaseModel):
    """Subject model for the academic subject directory.

    Name, code and slug are each unique across all subjects. Prerequisites
    are kept as an ordered list of other subject ids; specialists as an
    unordered set of specialist ids.

    Attributes:
        name: Human-readable title (e.g., "Linear Algebra")
        code: Short identifier (e.g., "MATH201")
        slug: URL-safe identifier, derived from name when not supplied
        credits: Positive number of credits
        description: Optional free text
        is_active: Business-state flag, true on creation
        specialist_ids: Ids of the specialists the subject belongs to
        prerequisite_ids: Ordered ids of prerequisite subjects
        created_at: Timestamp when record was created (inherited)
        updated_at: Timestamp when record was last updated (inherited)

    Example:
        subject = Subject(name="Linear Algebra", code="MATH201", credits=3)
        subject.specialist_ids.append(specialist.id)
        subject.prerequisite_ids.append(calculus.id)
    """

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true(), index=True
    )

    specialist_links: Mapped[List[SubjectSpecialist]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )
    prerequisite_links: Mapped[List[SubjectPrerequisite]] = relationship(
        foreign_keys=[SubjectPrerequisite.subject_id],
        order_by=SubjectPrerequisite.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    specialist_ids: AssociationProxy[List[int]] = association_proxy(
        "specialist_links", "specialist_id", creator=_specialist_link
    )
    prerequisite_ids: AssociationProxy[List[int]] = association_proxy(
        "prerequisite_links", "prerequisite_id", creator=_prerequisite_link
    )

    __table_args__ = (CheckConstraint("credits > 0", name="ck_subject_credits_positive"),)

    def __repr__(self) -> str:
        """String representation of the subject."""
        return f"Subject(id={self.id}, code={self.code!r}, name={self.name!r})"
