"""User model with role and specialist assignments."""

import enum
from typing import List, Optional

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.utils.db import Base


class UserRole(str, enum.Enum):
    """Roles a platform user can hold.

    Attributes:
        ADMIN: Full access to the subject directory
        TEACHER: Manages subjects of the specialists they are assigned to
        STUDENT: Read-only access
    """

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class UserSpecialist(Base):
    """Assignment of a user (teacher) to a specialist."""

    __tablename__ = "user_specialists"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    specialist_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("specialists.id", ondelete="CASCADE"), primary_key=True
    )


def _specialist_assignment(specialist_id: int) -> UserSpecialist:
    return UserSpecialist(specialist_id=specialist_id)


class User(BaseModel):
    """Platform user.

    Only the fields the subject directory needs are mapped here; credentials
    and sessions belong to the authentication service.

    Attributes:
        username: Unique login name
        email: Unique e-mail address
        fullname: Display name
        role: User role (admin, teacher, student)
        specialist_ids: Ids of the specialists the user is assigned to
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    fullname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=20),
        nullable=False,
        default=UserRole.STUDENT,
        index=True,
    )

    specialist_links: Mapped[List[UserSpecialist]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )
    specialist_ids: AssociationProxy[List[int]] = association_proxy(
        "specialist_links", "specialist_id", creator=_specialist_assignment
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username!r}, role={self.role.value})"
