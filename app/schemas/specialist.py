"""Specialist schemas for API request/response models."""

from typing import Optional

from pydantic import BaseModel


class SpecialistResponse(BaseModel):
    """Response schema for specialist.

    Attributes:
        id: Specialist ID.
        name: Specialist name.
        slug: URL-safe identifier.
        is_active: Whether the specialist is offered.
    """

    id: int
    name: str
    slug: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}
