"""Authorization policy for writes to the subject directory.

Admins manage every subject. Teachers manage subjects that share at least
one specialist with them, plus subjects that have no specialist at all.
Every other role is rejected.
"""

import logging
from typing import Iterable, Optional, Set, Union

from app.exceptions import PermissionDeniedError
from app.models.subject import Subject
from app.models.user import UserRole
from app.services.protocols import SpecialistLookup

logger = logging.getLogger(__name__)

ROLE_NOT_ALLOWED = "Only admin and teacher can access this resource"
TEACHER_WITHOUT_SPECIALISTS = "Teacher must be assigned to at least one specialist"
CREATE_WITH_FOREIGN_SPECIALISTS = (
    "You can only create subjects with specialists you are assigned to"
)
MANAGE_FOREIGN_SUBJECT = "You can only manage subjects assigned to your specialists"


def coerce_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    """Map a caller role to UserRole, case-insensitively. Unknown roles map to None."""
    if isinstance(role, UserRole):
        return role
    if not role:
        return None
    try:
        return UserRole(str(role).strip().lower())
    except ValueError:
        return None


class SubjectAccessPolicy:
    """Single decision point for subject create/manage permissions.

    Usage:
        policy = SubjectAccessPolicy(user_service)
        await policy.ensure_can_manage(caller_id, caller_role, subject)
    """

    def __init__(self, specialist_lookup: SpecialistLookup) -> None:
        self.specialist_lookup = specialist_lookup

    async def ensure_can_create(
        self,
        caller_id: int,
        caller_role: Union[UserRole, str],
        specialist_ids: Iterable[int],
    ) -> None:
        """Check that the caller may create a subject with these specialists.

        Raises:
            PermissionDeniedError: If the role or the specialists are not allowed.
            RecordNotFoundError: If the teacher cannot be resolved.
        """
        role = self._require_staff_role(caller_id, caller_role)
        if role is UserRole.ADMIN:
            return

        own = await self._teacher_specialists(caller_id)
        requested = set(specialist_ids)
        if not requested.issubset(own):
            self._deny(caller_id, CREATE_WITH_FOREIGN_SPECIALISTS, requested - own)

    async def ensure_can_manage(
        self, caller_id: int, caller_role: Union[UserRole, str], subject: Subject
    ) -> None:
        """Check that the caller may modify or delete an existing subject.

        Only the subject's current specialists are considered.

        Raises:
            PermissionDeniedError: If the caller may not manage the subject.
            RecordNotFoundError: If the teacher cannot be resolved.
        """
        role = self._require_staff_role(caller_id, caller_role)
        if role is UserRole.ADMIN:
            return

        own = await self._teacher_specialists(caller_id)
        current = set(subject.specialist_ids)
        if current and not current & own:
            self._deny(caller_id, MANAGE_FOREIGN_SUBJECT, current)

    async def can_manage_subject(
        self, caller_id: int, caller_role: Union[UserRole, str], subject: Subject
    ) -> bool:
        """Boolean form of ensure_can_manage. Lookup failures still raise."""
        try:
            await self.ensure_can_manage(caller_id, caller_role, subject)
        except PermissionDeniedError:
            return False
        return True

    def _require_staff_role(
        self, caller_id: int, caller_role: Union[UserRole, str]
    ) -> UserRole:
        role = coerce_role(caller_role)
        if role not in (UserRole.ADMIN, UserRole.TEACHER):
            self._deny(caller_id, ROLE_NOT_ALLOWED, caller_role)
        return role

    async def _teacher_specialists(self, caller_id: int) -> Set[int]:
        own = set(await self.specialist_lookup.get_assigned_specialists(caller_id))
        if not own:
            self._deny(caller_id, TEACHER_WITHOUT_SPECIALISTS)
        return own

    @staticmethod
    def _deny(caller_id: int, message: str, detail: object = None) -> None:
        logger.warning(
            "Subject access denied",
            extra={"caller_id": caller_id, "reason": message, "detail": str(detail)},
        )
        raise PermissionDeniedError(message)
