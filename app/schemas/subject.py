"""Subject schemas for API request/response models."""

from datetime import date, datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

SortField = Literal["created_at", "updated_at", "name", "code"]
SortOrder = Literal["asc", "desc"]


def _as_list(value: Any) -> Any:
    """Materialize association proxies and other iterables into a list."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return value
    return list(value)


class SubjectCreate(BaseModel):
    """Schema for creating a subject.

    Attributes:
        name: Name of the subject, unique.
        code: Short code, unique.
        credits: Positive number of credits.
        description: Optional free text.
        slug: Optional URL-safe identifier; derived from name when omitted.
        specialist_ids: Specialists the subject belongs to.
        is_active: Initial state, active by default.
        prerequisite_ids: Initial prerequisites, in order.
    """

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=64)
    credits: int = Field(..., ge=1, le=100)
    description: Optional[str] = None
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    specialist_ids: List[int] = Field(default_factory=list)
    is_active: bool = True
    prerequisite_ids: List[int] = Field(default_factory=list)


class SubjectUpdate(BaseModel):
    """Schema for a partial subject update. Only fields that are sent are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, min_length=1, max_length=64)
    credits: Optional[int] = Field(default=None, ge=1, le=100)
    description: Optional[str] = None
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    specialist_ids: Optional[List[int]] = None
    is_active: Optional[bool] = None
    prerequisite_ids: Optional[List[int]] = None

    @field_validator(
        "name", "code", "credits", "slug", "specialist_ids", "is_active",
        "prerequisite_ids",
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


class SubjectResponse(BaseModel):
    """Response schema for subject."""

    id: int
    name: str
    code: str
    slug: str
    credits: int
    description: Optional[str] = None
    specialist_ids: List[int]
    is_active: bool
    prerequisite_ids: List[int]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("specialist_ids", "prerequisite_ids", mode="before")
    @classmethod
    def materialize_ids(cls, value: Any) -> Any:
        return _as_list(value)


class SubjectSummary(BaseModel):
    """Lightweight subject projection for autocomplete and related lists."""

    id: int
    name: str
    code: str
    slug: str
    credits: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SubjectListQuery(BaseModel):
    """Query parameters accepted by the subject listing.

    ``from``/``to`` bound ``created_at`` inclusively; a bare date as ``to``
    covers the whole day.
    """

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    code: Optional[str] = None
    specialist_id: Optional[str] = None
    is_active: Optional[Union[bool, str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    from_: Optional[Union[date, datetime]] = Field(default=None, alias="from")
    to: Optional[Union[date, datetime]] = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"

    model_config = ConfigDict(populate_by_name=True)


class PrerequisitesAdd(BaseModel):
    """Body of the add-prerequisites request."""

    prerequisite_ids: List[int] = Field(..., min_length=1)


class Pagination(BaseModel):
    """Pagination metadata of a listing."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class SubjectListResponse(BaseModel):
    """Envelope of the subject listing."""

    message: str
    data: List[SubjectResponse]
    pagination: Pagination


class SubjectEnvelope(BaseModel):
    """Envelope of a single subject."""

    message: str
    data: SubjectResponse


class SubjectSummaryList(BaseModel):
    """Envelope of a list of subject projections."""

    message: str
    data: List[SubjectSummary]


class SubjectDeleted(BaseModel):
    """Result of a subject deletion."""

    id: int
    deleted_count: int


class SubjectDeletedEnvelope(BaseModel):
    message: str
    data: SubjectDeleted
