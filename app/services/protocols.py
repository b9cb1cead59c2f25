"""Interfaces of the collaborators the subject directory depends on."""

from typing import Protocol, Set


class CourseReferenceChecker(Protocol):
    """Answers whether courses still use a subject."""

    async def count_referencing_subject(self, subject_id: int) -> int: ...


class SpecialistLookup(Protocol):
    """Resolves the specialists a user is assigned to.

    Implementations raise RecordNotFoundError("User", ...) for unknown users.
    """

    async def get_assigned_specialists(self, user_id: int) -> Set[int]: ...
