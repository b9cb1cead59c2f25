"""Subjects API endpoints.

Static paths (``/autocomplete/search``, ``/id/...``) are declared before
the ``/{slug}`` routes so they are never captured as slugs.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status

from app.config import settings
from app.schemas.subject import (
    Pagination,
    PrerequisitesAdd,
    SubjectCreate,
    SubjectDeleted,
    SubjectDeletedEnvelope,
    SubjectEnvelope,
    SubjectListResponse,
    SubjectResponse,
    SubjectSummary,
    SubjectSummaryList,
    SubjectUpdate,
)
from app.services.subject_service import SubjectService
from app.utils.dependencies import Caller, dependencies, get_current_caller

router = APIRouter(
    prefix="/subjects",
    tags=["Subjects"],
)


def _envelope(message: str, subject) -> SubjectEnvelope:
    return SubjectEnvelope(message=message, data=SubjectResponse.model_validate(subject))


def _summaries(message: str, subjects) -> SubjectSummaryList:
    return SubjectSummaryList(
        message=message,
        data=[SubjectSummary.model_validate(subject) for subject in subjects],
    )


@router.get("")
async def list_subjects(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, description="Full-text search"),
    name: Optional[str] = None,
    slug: Optional[str] = None,
    code: Optional[str] = None,
    is_active: Optional[str] = Query(default=None, description="true or false"),
    specialist_id: Optional[str] = None,
    created_at: Optional[str] = None,
    updated_at: Optional[str] = None,
    date_from: Optional[str] = Query(default=None, alias="from"),
    date_to: Optional[str] = Query(default=None, alias="to"),
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectListResponse:
    """List subjects with filters, sorting and pagination.

    ``from``/``to`` bound the creation date inclusively.
    """
    raw = {
        "page": page,
        "limit": limit,
        "search": search,
        "name": name,
        "slug": slug,
        "code": code,
        "is_active": is_active,
        "specialist_id": specialist_id,
        "created_at": created_at,
        "updated_at": updated_at,
        "from": date_from,
        "to": date_to,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    result = await service.list_subjects(
        {key: value for key, value in raw.items() if value is not None}
    )
    return SubjectListResponse(
        message="Subjects retrieved successfully",
        data=[SubjectResponse.model_validate(s) for s in result["subjects"]],
        pagination=Pagination(**result["pagination"]),
    )


@router.post("", status_code=http_status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreate,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    """Create a new subject.

    Raises:
        PermissionDeniedError: If the caller may not create it.
        DuplicateRecordError: If name, code or slug is taken.
    """
    subject = await service.create_subject(data, caller.id, caller.role)
    return _envelope("Subject created successfully", subject)


@router.get("/autocomplete/search")
async def autocomplete_subjects(
    q: str = Query(default="", description="Search term"),
    limit: int = Query(default=10, ge=1, le=50, description="Max results"),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectSummaryList:
    """Suggest subjects by name, code or slug."""
    subjects = await service.search_subjects_autocomplete(q, limit)
    return _summaries("Subjects retrieved successfully", subjects)


@router.get("/id/{subject_id}")
async def get_subject_by_id(
    subject_id: int,
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.get_subject_by_id(subject_id)
    return _envelope("Subject retrieved successfully", subject)


@router.patch("/id/{subject_id}")
async def update_subject_by_id(
    subject_id: int,
    data: SubjectUpdate,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.update_subject_by_id(
        subject_id, data, caller.id, caller.role
    )
    return _envelope("Subject updated successfully", subject)


@router.delete("/id/{subject_id}")
async def delete_subject_by_id(
    subject_id: int,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectDeletedEnvelope:
    """Delete a subject that no course uses."""
    result = await service.delete_subject_by_id(subject_id, caller.id, caller.role)
    return SubjectDeletedEnvelope(
        message="Subject deleted successfully", data=SubjectDeleted(**result)
    )


@router.patch("/id/{subject_id}/activate")
async def activate_subject(
    subject_id: int,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.activate_subject_by_id(subject_id, caller.id, caller.role)
    return _envelope("Subject activated successfully", subject)


@router.patch("/id/{subject_id}/deactivate")
async def deactivate_subject(
    subject_id: int,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.deactivate_subject_by_id(
        subject_id, caller.id, caller.role
    )
    return _envelope("Subject deactivated successfully", subject)


@router.get("/id/{subject_id}/prerequisites")
async def list_prerequisites(
    subject_id: int,
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectSummaryList:
    """List prerequisites of a subject in their stored order."""
    subjects = await service.list_prerequisites(subject_id)
    return _summaries("Prerequisites retrieved successfully", subjects)


@router.post("/id/{subject_id}/prerequisites")
async def add_prerequisites(
    subject_id: int,
    data: PrerequisitesAdd,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    """Append prerequisites; self references and duplicates are skipped."""
    subject = await service.add_prerequisites(
        subject_id, data.prerequisite_ids, caller.id, caller.role
    )
    return _envelope("Prerequisites added successfully", subject)


@router.delete("/id/{subject_id}/prerequisites/{prerequisite_id}")
async def remove_prerequisite(
    subject_id: int,
    prerequisite_id: int,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.remove_prerequisite(
        subject_id, prerequisite_id, caller.id, caller.role
    )
    return _envelope("Prerequisite removed successfully", subject)


@router.get("/id/{subject_id}/related")
async def related_subjects(
    subject_id: int,
    limit: int = Query(default=5, ge=1, le=50),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectSummaryList:
    """Subjects sharing a specialist or linked through prerequisites."""
    subjects = await service.get_related_subjects(subject_id, limit)
    return _summaries("Related subjects retrieved successfully", subjects)


@router.get("/{slug}")
async def get_subject_by_slug(
    slug: str,
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.get_subject_by_slug(slug)
    return _envelope("Subject retrieved successfully", subject)


@router.patch("/{slug}")
async def update_subject_by_slug(
    slug: str,
    data: SubjectUpdate,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectEnvelope:
    subject = await service.update_subject_by_slug(slug, data, caller.id, caller.role)
    return _envelope("Subject updated successfully", subject)


@router.delete("/{slug}")
async def delete_subject_by_slug(
    slug: str,
    caller: Caller = Depends(get_current_caller),
    service: SubjectService = Depends(dependencies.subject),
) -> SubjectDeletedEnvelope:
    result = await service.delete_subject_by_slug(slug, caller.id, caller.role)
    return SubjectDeletedEnvelope(
        message="Subject deleted successfully", data=SubjectDeleted(**result)
    )
