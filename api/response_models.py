"""
Pydantic models for the budget API.

Request bodies carry only client-editable fields. Allocation bodies forbid
unknown keys, so a client-sent duration_minutes is a 422, never ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ==== Requests ====


class AllocationCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str = Field(description="Category id from the catalog")
    start_time: str = Field(description="HH:MM, 24-hour")
    end_time: str = Field(description="HH:MM, 24-hour, after start_time")
    label: str | None = Field(default=None, description="Overrides the category label")
    project_id: str | None = None


class AllocationUpdateRequest(BaseModel):
    """Only fields present in the body are changed; explicit null clears label/project_id."""

    model_config = ConfigDict(extra="forbid")

    category: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    label: str | None = None
    project_id: str | None = None
    allocation_date: str | None = Field(default=None, description="Move to another day")


class PreferencesRequest(BaseModel):
    day_start_time: str = Field(description="HH:MM")
    day_end_time: str = Field(description="HH:MM, after day_start_time")


class TemplateCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    date: str = Field(description="Day to capture, YYYY-MM-DD")


class TemplateLoadRequest(BaseModel):
    date: str = Field(description="Day to overwrite, YYYY-MM-DD")


# ==== Responses ====


class CategoryResponse(BaseModel):
    id: str
    color: str
    label: str
    icon: str


class AllocationResponse(BaseModel):
    id: str
    user_id: str
    allocation_date: str
    start_time: str | None = None
    end_time: str | None = None
    duration_minutes: int
    category: str
    label: str | None = None
    project_id: str | None = None
    display_label: str
    color: str
    created_at: str | None = None
    updated_at: str | None = None


class AllocationListResponse(BaseModel):
    items: list[AllocationResponse] = Field(default_factory=list)
    total: int


class PreferencesResponse(BaseModel):
    user_id: str
    day_start_time: str
    day_end_time: str
    total_window_minutes: int
    created_at: str | None = None
    updated_at: str | None = None


class CategoryShare(BaseModel):
    category: str
    label: str
    color: str
    minutes: int
    share: float


class SummaryResponse(BaseModel):
    user_id: str
    allocation_date: str
    day_start_time: str
    day_end_time: str
    by_category: dict[str, int] = Field(default_factory=dict)
    breakdown: list[CategoryShare] = Field(default_factory=list)
    block_count: int
    allocated_minutes: int
    total_window_minutes: int
    remaining_minutes: int


class BlockGeometryResponse(BaseModel):
    id: str
    left_pct: float
    width_pct: float
    color: str
    label: str
    category: str
    start_time: str
    end_time: str
    time_range: str
    clipped: bool = False


class HourMarkerResponse(BaseModel):
    left_pct: float
    label: str


class TimelineResponse(BaseModel):
    day_start_time: str
    day_end_time: str
    blocks: list[BlockGeometryResponse] = Field(default_factory=list)
    hour_markers: list[HourMarkerResponse] = Field(default_factory=list)
    now_pct: float | None = None
    allocated_minutes: int
    remaining_minutes: int


class TemplateBlockResponse(BaseModel):
    label: str
    category: str
    start_time: str
    end_time: str
    project_id: str | None = None


class TemplateResponse(BaseModel):
    id: str
    user_id: str
    name: str
    blocks: list[TemplateBlockResponse] = Field(default_factory=list)
    total_minutes: int
    created_at: str | None = None


class TemplateListResponse(BaseModel):
    items: list[TemplateResponse] = Field(default_factory=list)
    total: int


class MutationResponse(BaseModel):
    success: bool

    model_config = {"extra": "allow"}


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or error")
    timestamp: str
    schema_version: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)
