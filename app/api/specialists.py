"""Specialists API endpoints."""

from fastapi import APIRouter, Depends, Query

from app.schemas.specialist import SpecialistResponse
from app.services.specialist_service import SpecialistService
from app.utils.dependencies import dependencies

router = APIRouter(
    prefix="/specialists",
    tags=["Specialists"],
)


@router.get("")
async def search_specialists(
    search: str = Query(default="", description="Search term for specialist name"),
    limit: int = Query(default=10, ge=1, le=50, description="Max results"),
    service: SpecialistService = Depends(dependencies.specialist),
) -> list[SpecialistResponse]:
    """Search active specialists by name.

    Used by subject forms to pick the specialists a subject belongs to.

    Args:
        search: Search term to filter by name (case-insensitive).
        limit: Maximum number of results to return.
        service: SpecialistService instance.

    Returns:
        List of matching specialists ordered by name.
    """
    specialists = await service.search(search=search, limit=limit)
    return [SpecialistResponse.model_validate(s) for s in specialists]
