"""Subject service providing business logic for the subject directory.

Single authority for reads and writes of Subject records. Enforces name,
code and slug uniqueness, role-based authorization through
SubjectAccessPolicy, and the prerequisite graph rules (no self reference,
no duplicates, referenced subjects must exist).
"""

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel as Schema
from pydantic import ValidationError
from sqlalchemy import asc, cast, desc, func, literal, or_, select
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DuplicateRecordError,
    InvalidInputError,
    RecordInUseError,
    RecordNotFoundError,
)
from app.models.specialist import Specialist
from app.models.subject import (
    Subject,
    SubjectPrerequisite,
    SubjectSpecialist,
    make_slug,
)
from app.models.user import UserRole
from app.schemas.subject import SubjectCreate, SubjectListQuery, SubjectUpdate
from app.services.base import BaseService
from app.services.course_service import CourseService
from app.services.protocols import CourseReferenceChecker, SpecialistLookup
from app.services.subject_access import SubjectAccessPolicy
from app.services.user_service import UserService
from app.utils.api_helpers import get_pagination_context

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Schema)

Role = Union[UserRole, str]

UNIQUE_FIELDS = ("name", "code", "slug")


def _parse(schema: Type[S], data: Union[S, Dict[str, Any]]) -> S:
    """Validate raw input against a schema, raising InvalidInputError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise InvalidInputError(f"Invalid {field}: {error['msg']}", field=field) from e


def _coerce_bool(value: Union[bool, str]) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _coerce_specialist_id(value: Union[int, str]) -> int:
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise InvalidInputError(
            f"Invalid specialist_id: '{value}' is not a valid id", field="specialist_id"
        ) from e


def _range_start(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _range_end(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def _unique_ids(ids: Iterable[int], exclude: Optional[int] = None) -> List[int]:
    """Drop duplicates and ``exclude`` from ids, keeping first-seen order."""
    seen = set()
    result = []
    for value in ids:
        if value == exclude or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class SubjectService(BaseService[Subject]):
    """Service for managing Subject entities.

    Collaborators are injected so that tests can substitute in-memory
    fakes; by default they are the SQL-backed services on the same session.

    Usage:
        service = SubjectService(db_session)

        subject = await service.create_subject(
            {"name": "Linear Algebra", "code": "MATH201", "credits": 3},
            caller_id=admin.id,
            caller_role=UserRole.ADMIN,
        )
        await service.add_prerequisites(
            subject.id, [calculus.id], admin.id, UserRole.ADMIN
        )

    Attributes:
        model: Subject model class
        db: Database session for operations
        course_checker: Counts courses that reference a subject
        specialist_lookup: Resolves a teacher's assigned specialists
        access_policy: Authorization decisions for writes
    """

    model = Subject

    def __init__(
        self,
        db: AsyncSession,
        course_checker: Optional[CourseReferenceChecker] = None,
        specialist_lookup: Optional[SpecialistLookup] = None,
        access_policy: Optional[SubjectAccessPolicy] = None,
    ) -> None:
        super().__init__(db)
        self.course_checker = course_checker or CourseService(db)
        self.specialist_lookup = specialist_lookup or UserService(db)
        self.access_policy = access_policy or SubjectAccessPolicy(
            self.specialist_lookup
        )

    # Reads

    async def list_subjects(
        self, query: Union[SubjectListQuery, Dict[str, Any], None] = None
    ) -> Dict[str, Any]:
        """List subjects with filters, sorting and pagination.

        Args:
            query: Listing parameters, see SubjectListQuery.

        Returns:
            Dictionary with ``subjects`` and ``pagination`` keys. An empty
            page is an empty list, not an error.

        Raises:
            InvalidInputError: If a parameter cannot be coerced.
            DatabaseConnectionError: If database operation fails.
        """
        params = _parse(SubjectListQuery, query or {})
        conditions = self._list_conditions(params)

        total_result = await self._execute(
            select(func.count(Subject.id)).where(*conditions), "count"
        )
        total = total_result.scalar_one()

        order = desc if params.sort_order == "desc" else asc
        stmt = (
            select(Subject)
            .where(*conditions)
            .order_by(order(getattr(Subject, params.sort_by)), order(Subject.id))
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )
        result = await self._execute(stmt, "list")

        return {
            "subjects": list(result.scalars().all()),
            "pagination": get_pagination_context(params.page, params.limit, total),
        }

    async def get_subject_by_id(self, subject_id: int) -> Subject:
        """Get a subject by id.

        Raises:
            RecordNotFoundError: If no subject has this id.
        """
        return await self._get_or_fail(id=subject_id)

    async def get_subject_by_slug(self, slug: str) -> Subject:
        """Get a subject by slug.

        Raises:
            RecordNotFoundError: If no subject has this slug.
        """
        return await self._get_or_fail(slug=slug)

    async def list_prerequisites(self, subject_id: int) -> List[Subject]:
        """Resolve the prerequisites of a subject, in their stored order.

        Raises:
            RecordNotFoundError: If the subject does not exist.
        """
        subject = await self._get_or_fail(id=subject_id)
        if not subject.prerequisite_links:
            return []

        stmt = (
            select(Subject)
            .join(SubjectPrerequisite, SubjectPrerequisite.prerequisite_id == Subject.id)
            .where(SubjectPrerequisite.subject_id == subject.id)
            .order_by(SubjectPrerequisite.position)
        )
        result = await self._execute(stmt, "list_prerequisites", subject_id=subject.id)
        return list(result.scalars().all())

    async def search_subjects_autocomplete(
        self, query: Optional[str], limit: int = 10
    ) -> List[Subject]:
        """Match subjects whose name, code or slug contain the query.

        Args:
            query: Free text; blank input yields no results.
            limit: Maximum number of results.

        Returns:
            Subjects ordered by name.
        """
        term = (query or "").strip()
        if not term:
            return []

        stmt = (
            select(Subject)
            .where(
                or_(
                    Subject.name.icontains(term, autoescape=True),
                    Subject.code.icontains(term, autoescape=True),
                    Subject.slug.icontains(term, autoescape=True),
                )
            )
            .order_by(Subject.name)
            .limit(limit)
        )
        result = await self._execute(stmt, "autocomplete", query=term)
        return list(result.scalars().all())

    async def get_related_subjects(self, subject_id: int, limit: int = 5) -> List[Subject]:
        """Find subjects related to the given one.

        Related subjects share at least one specialist with it, are among
        its prerequisites, or list it as a prerequisite.

        Raises:
            RecordNotFoundError: If the subject does not exist.
        """
        subject = await self._get_or_fail(id=subject_id)
        specialist_ids = list(subject.specialist_ids)
        prerequisite_ids = list(subject.prerequisite_ids)
        if not specialist_ids and not prerequisite_ids:
            return []

        related = [
            Subject.prerequisite_links.any(SubjectPrerequisite.prerequisite_id == subject.id)
        ]
        if specialist_ids:
            related.append(
                Subject.specialist_links.any(
                    SubjectSpecialist.specialist_id.in_(specialist_ids)
                )
            )
        if prerequisite_ids:
            related.append(Subject.id.in_(prerequisite_ids))

        stmt = (
            select(Subject)
            .where(Subject.id != subject.id, or_(*related))
            .order_by(Subject.name)
            .limit(limit)
        )
        result = await self._execute(stmt, "related", subject_id=subject.id)
        return list(result.scalars().all())

    # Writes

    async def create_subject(
        self,
        data: Union[SubjectCreate, Dict[str, Any]],
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        """Create a subject on behalf of an admin or teacher.

        The slug is derived from the name when not supplied. Initial
        prerequisites follow the same rules as add_prerequisites.

        Raises:
            InvalidInputError: If the payload is malformed.
            PermissionDeniedError: If the caller may not create this subject.
            DuplicateRecordError: If name, code or slug is taken.
            RecordNotFoundError: If the teacher, a specialist or a prerequisite
                is unknown.
        """
        payload = _parse(SubjectCreate, data)
        specialist_ids = _unique_ids(payload.specialist_ids)
        await self.access_policy.ensure_can_create(caller_id, caller_role, specialist_ids)

        slug = payload.slug or make_slug(payload.name) or make_slug(payload.code) or payload.code
        values = {"name": payload.name, "code": payload.code, "slug": slug}
        for field in UNIQUE_FIELDS:
            await self._ensure_unique(field, values[field])
        await self._ensure_specialists_exist(specialist_ids)

        prerequisite_ids = _unique_ids(payload.prerequisite_ids)
        await self._ensure_subjects_exist(prerequisite_ids)

        subject = await self.create(
            **values,
            credits=payload.credits,
            description=payload.description,
            is_active=payload.is_active,
            specialist_links=[
                SubjectSpecialist(specialist_id=specialist_id)
                for specialist_id in specialist_ids
            ],
            prerequisite_links=[
                SubjectPrerequisite(prerequisite_id=prerequisite_id, position=position)
                for position, prerequisite_id in enumerate(prerequisite_ids)
            ],
        )
        logger.info(
            "Subject created",
            extra={"subject_id": subject.id, "code": subject.code, "caller_id": caller_id},
        )
        return subject

    async def update_subject_by_id(
        self,
        subject_id: int,
        data: Union[SubjectUpdate, Dict[str, Any]],
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        """Apply a partial update to the subject with this id."""
        subject = await self._get_or_fail(id=subject_id)
        return await self._update(subject, data, caller_id, caller_role)

    async def update_subject_by_slug(
        self,
        slug: str,
        data: Union[SubjectUpdate, Dict[str, Any]],
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        """Apply a partial update to the subject with this slug."""
        subject = await self._get_or_fail(slug=slug)
        return await self._update(subject, data, caller_id, caller_role)

    async def delete_subject_by_id(
        self, subject_id: int, caller_id: int, caller_role: Role
    ) -> Dict[str, int]:
        """Delete the subject with this id.

        Returns:
            ``{"id": ..., "deleted_count": 1}``

        Raises:
            RecordNotFoundError: If the subject does not exist.
            PermissionDeniedError: If the caller may not manage it.
            RecordInUseError: If courses still reference the subject.
        """
        subject = await self._get_or_fail(id=subject_id)
        return await self._delete(subject, caller_id, caller_role)

    async def delete_subject_by_slug(
        self, slug: str, caller_id: int, caller_role: Role
    ) -> Dict[str, int]:
        """Delete the subject with this slug. See delete_subject_by_id."""
        subject = await self._get_or_fail(slug=slug)
        return await self._delete(subject, caller_id, caller_role)

    async def activate_subject_by_id(
        self, subject_id: int, caller_id: int, caller_role: Role
    ) -> Subject:
        subject = await self._get_or_fail(id=subject_id)
        return await self._set_active(subject, True, caller_id, caller_role)

    async def deactivate_subject_by_id(
        self, subject_id: int, caller_id: int, caller_role: Role
    ) -> Subject:
        subject = await self._get_or_fail(id=subject_id)
        return await self._set_active(subject, False, caller_id, caller_role)

    async def activate_subject_by_slug(
        self, slug: str, caller_id: int, caller_role: Role
    ) -> Subject:
        subject = await self._get_or_fail(slug=slug)
        return await self._set_active(subject, True, caller_id, caller_role)

    async def deactivate_subject_by_slug(
        self, slug: str, caller_id: int, caller_role: Role
    ) -> Subject:
        subject = await self._get_or_fail(slug=slug)
        return await self._set_active(subject, False, caller_id, caller_role)

    async def add_prerequisites(
        self,
        subject_id: int,
        prerequisite_ids: Iterable[int],
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        """Append prerequisites to a subject.

        The subject's own id and ids already present are skipped without
        error. The remaining ids must all exist; otherwise nothing is
        written.

        Args:
            subject_id: Target subject.
            prerequisite_ids: Ids to append, in order.
            caller_id: Id of the acting user.
            caller_role: Role of the acting user.

        Returns:
            Updated subject.

        Raises:
            RecordNotFoundError: If the subject or a prerequisite is unknown.
            PermissionDeniedError: If the caller may not manage the subject.
        """
        subject = await self._get_or_fail(id=subject_id)
        await self.access_policy.ensure_can_manage(caller_id, caller_role, subject)

        current = set(subject.prerequisite_ids)
        to_add = [
            prerequisite_id
            for prerequisite_id in _unique_ids(prerequisite_ids, exclude=subject.id)
            if prerequisite_id not in current
        ]
        if not to_add:
            return subject

        await self._ensure_subjects_exist(to_add)
        for prerequisite_id in to_add:
            subject.prerequisite_ids.append(prerequisite_id)

        subject = await self.save(subject)
        logger.info(
            "Subject prerequisites added",
            extra={"subject_id": subject.id, "added": to_add, "caller_id": caller_id},
        )
        return subject

    async def remove_prerequisite(
        self,
        subject_id: int,
        prerequisite_id: int,
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        """Remove one prerequisite; an id that is not present is ignored.

        Raises:
            RecordNotFoundError: If the subject does not exist.
            PermissionDeniedError: If the caller may not manage the subject.
        """
        subject = await self._get_or_fail(id=subject_id)
        await self.access_policy.ensure_can_manage(caller_id, caller_role, subject)

        link = next(
            (
                link
                for link in subject.prerequisite_links
                if link.prerequisite_id == prerequisite_id
            ),
            None,
        )
        if link is None:
            return subject

        subject.prerequisite_links.remove(link)
        subject = await self.save(subject)
        logger.info(
            "Subject prerequisite removed",
            extra={
                "subject_id": subject.id,
                "prerequisite_id": prerequisite_id,
                "caller_id": caller_id,
            },
        )
        return subject

    # Internals

    async def _get_or_fail(self, **filters: Any) -> Subject:
        subject = await self.get_one_by(**filters)
        if subject is None:
            raise RecordNotFoundError("Subject", next(iter(filters.values()), None))
        return subject

    async def _update(
        self,
        subject: Subject,
        data: Union[SubjectUpdate, Dict[str, Any]],
        caller_id: int,
        caller_role: Role,
    ) -> Subject:
        await self.access_policy.ensure_can_manage(caller_id, caller_role, subject)
        patch = _parse(SubjectUpdate, data)

        changes = patch.model_dump(exclude_unset=True)
        for field in UNIQUE_FIELDS:
            if field in changes and changes[field] != getattr(subject, field):
                await self._ensure_unique(field, changes[field], exclude_id=subject.id)

        prerequisite_ids = changes.pop("prerequisite_ids", None)
        if prerequisite_ids is not None:
            prerequisite_ids = _unique_ids(prerequisite_ids, exclude=subject.id)
            await self._ensure_subjects_exist(prerequisite_ids)
            self._replace_prerequisites(subject, prerequisite_ids)

        specialist_ids = changes.pop("specialist_ids", None)
        if specialist_ids is not None:
            specialist_ids = _unique_ids(specialist_ids)
            await self._ensure_specialists_exist(specialist_ids)
            self._replace_specialists(subject, specialist_ids)

        for field, value in changes.items():
            setattr(subject, field, value)

        subject = await self.save(subject)
        logger.info(
            "Subject updated",
            extra={
                "subject_id": subject.id,
                "fields": sorted(patch.model_fields_set),
                "caller_id": caller_id,
            },
        )
        return subject

    async def _delete(
        self, subject: Subject, caller_id: int, caller_role: Role
    ) -> Dict[str, int]:
        await self.access_policy.ensure_can_manage(caller_id, caller_role, subject)

        subject_id = subject.id
        usage_count = await self.course_checker.count_referencing_subject(subject_id)
        if usage_count > 0:
            logger.warning(
                "Refused to delete subject used by courses",
                extra={"subject_id": subject_id, "courses": usage_count},
            )
            raise RecordInUseError("Subject", subject_id, usage_count=usage_count)

        await self.delete(subject)
        logger.info(
            "Subject deleted", extra={"subject_id": subject_id, "caller_id": caller_id}
        )
        return {"id": subject_id, "deleted_count": 1}

    async def _set_active(
        self, subject: Subject, is_active: bool, caller_id: int, caller_role: Role
    ) -> Subject:
        await self.access_policy.ensure_can_manage(caller_id, caller_role, subject)
        if subject.is_active == is_active:
            return subject

        subject.is_active = is_active
        subject = await self.save(subject)
        logger.info(
            "Subject activated" if is_active else "Subject deactivated",
            extra={"subject_id": subject.id, "caller_id": caller_id},
        )
        return subject

    async def _ensure_unique(
        self, field: str, value: Any, exclude_id: Optional[int] = None
    ) -> None:
        """Raise DuplicateRecordError if another subject already uses value."""
        column = getattr(Subject, field)
        stmt = select(Subject.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(Subject.id != exclude_id)
        result = await self._execute(stmt.limit(1), "check", field=field)
        if result.scalar_one_or_none() is not None:
            raise DuplicateRecordError("Subject", field=field)

    async def _ensure_subjects_exist(self, subject_ids: List[int]) -> None:
        """Raise RecordNotFoundError naming the first id with no subject."""
        if not subject_ids:
            return
        result = await self._execute(
            select(Subject.id).where(Subject.id.in_(subject_ids)), "check"
        )
        found = set(result.scalars().all())
        for subject_id in subject_ids:
            if subject_id not in found:
                raise RecordNotFoundError(
                    "Subject",
                    subject_id,
                    message=f"Prerequisite subject with id={subject_id} not found",
                )

    async def _ensure_specialists_exist(self, specialist_ids: List[int]) -> None:
        """Raise RecordNotFoundError naming the first id with no specialist."""
        if not specialist_ids:
            return
        result = await self._execute(
            select(Specialist.id).where(Specialist.id.in_(specialist_ids)), "check"
        )
        found = set(result.scalars().all())
        for specialist_id in specialist_ids:
            if specialist_id not in found:
                raise RecordNotFoundError("Specialist", specialist_id)

    @staticmethod
    def _replace_prerequisites(subject: Subject, prerequisite_ids: List[int]) -> None:
        existing = {link.prerequisite_id: link for link in subject.prerequisite_links}
        subject.prerequisite_links = [
            existing.get(prerequisite_id)
            or SubjectPrerequisite(prerequisite_id=prerequisite_id)
            for prerequisite_id in prerequisite_ids
        ]
        subject.prerequisite_links.reorder()

    @staticmethod
    def _replace_specialists(subject: Subject, specialist_ids: List[int]) -> None:
        existing = {link.specialist_id: link for link in subject.specialist_links}
        subject.specialist_links = [
            existing.get(specialist_id) or SubjectSpecialist(specialist_id=specialist_id)
            for specialist_id in specialist_ids
        ]

    def _list_conditions(self, params: SubjectListQuery) -> List[Any]:
        conditions: List[Any] = []

        if params.search and params.search.strip():
            conditions.append(self._search_condition(params.search.strip()))
        for field in ("name", "slug", "code"):
            value = getattr(params, field)
            if value is not None:
                conditions.append(getattr(Subject, field) == value)
        if params.is_active is not None:
            conditions.append(Subject.is_active == _coerce_bool(params.is_active))
        if params.specialist_id is not None:
            specialist_id = _coerce_specialist_id(params.specialist_id)
            conditions.append(
                Subject.specialist_links.any(
                    SubjectSpecialist.specialist_id == specialist_id
                )
            )

        if params.from_ is not None or params.to is not None:
            if params.from_ is not None:
                conditions.append(Subject.created_at >= _range_start(params.from_))
            if params.to is not None:
                conditions.append(Subject.created_at <= _range_end(params.to))
        elif params.created_at is not None:
            conditions.append(Subject.created_at == params.created_at)
        if params.updated_at is not None:
            conditions.append(Subject.updated_at == params.updated_at)

        return conditions

    def _search_condition(self, term: str) -> Any:
        """Full-text match on PostgreSQL, substring match elsewhere."""
        if self.db.get_bind().dialect.name == "postgresql":
            config = cast(literal("simple"), REGCONFIG)
            document = func.to_tsvector(
                config, Subject.name + " " + func.coalesce(Subject.description, "")
            )
            return document.op("@@")(func.plainto_tsquery(config, term))
        return or_(
            Subject.name.icontains(term, autoescape=True),
            Subject.description.icontains(term, autoescape=True),
        )
