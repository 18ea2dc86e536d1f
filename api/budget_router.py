"""
Budget API Router - REST endpoints for the daily time budget.

Endpoints (mounted under /api):
- GET    /budget/categories                   - category catalog
- GET    /budget/preferences                  - caller's day window
- PUT    /budget/preferences                  - change the day window
- GET    /budget/days/{date}/allocations      - blocks of a day
- POST   /budget/days/{date}/allocations      - add a block
- PATCH  /budget/allocations/{id}             - edit a block
- DELETE /budget/allocations/{id}             - remove a block
- GET    /budget/days/{date}/summary          - per-category totals
- GET    /budget/days/{date}/timeline         - timeline geometry
- GET    /budget/templates                    - saved templates
- POST   /budget/templates                    - save a day as a template
- DELETE /budget/templates/{id}               - delete a template
- POST   /budget/templates/{id}/load          - replay a template onto a day

Every endpoint is scoped to the X-User-Id caller.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from api.auth import require_user
from api.response_models import (
    AllocationCreateRequest,
    AllocationListResponse,
    AllocationResponse,
    AllocationUpdateRequest,
    CategoryResponse,
    MutationResponse,
    PreferencesRequest,
    PreferencesResponse,
    SummaryResponse,
    TemplateCreateRequest,
    TemplateListResponse,
    TemplateLoadRequest,
    TemplateResponse,
    TimelineResponse,
)
from timebudget.budget import (
    AllocationStore,
    PreferenceManager,
    SummaryAggregator,
    TemplateManager,
    build_timeline,
)
from timebudget.budget.allocation_store import normalize_date
from timebudget.categories import category_catalog
from timebudget.errors import (
    NotFoundError,
    OverlapError,
    ReplayFailedError,
    TimeBudgetError,
)
from timebudget.state_store import get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budget", tags=["budget"])


def get_allocations() -> AllocationStore:
    return AllocationStore(get_store())


def get_preferences() -> PreferenceManager:
    return PreferenceManager(get_store())


def get_templates() -> TemplateManager:
    return TemplateManager(get_allocations())


def _http_error(e: Exception) -> HTTPException:
    """Map a domain error to the HTTP status the dashboard expects."""
    if isinstance(e, OverlapError):
        return HTTPException(status_code=409, detail={"message": str(e), "conflict": e.to_dict()})
    if isinstance(e, ReplayFailedError):
        return HTTPException(
            status_code=409,
            detail={
                "message": str(e),
                "template_id": e.template_id,
                "date": e.target_date,
                "block_index": e.block_index,
            },
        )
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    # InvalidIntervalError, PreferenceInvariantError, ValueError
    return HTTPException(status_code=400, detail=str(e))


# ==== Catalog & Preferences ====


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories():
    """The fixed category catalog, in display order."""
    return category_catalog()


@router.get("/preferences", response_model=PreferencesResponse)
async def get_day_preferences(user_id: str = Depends(require_user)):
    """Caller's day window; created with defaults on first access."""
    return get_preferences().get_day_preferences(user_id).to_dict()


@router.put("/preferences", response_model=PreferencesResponse)
async def set_day_preferences(request: PreferencesRequest, user_id: str = Depends(require_user)):
    try:
        prefs = get_preferences().set_day_preferences(
            user_id, request.day_start_time, request.day_end_time
        )
    except (TimeBudgetError, ValueError) as e:
        raise _http_error(e) from e
    return prefs.to_dict()


# ==== Allocations ====


@router.get("/days/{allocation_date}/allocations", response_model=AllocationListResponse)
async def list_allocations(allocation_date: str, user_id: str = Depends(require_user)):
    try:
        allocations = get_allocations().list(user_id, allocation_date)
    except ValueError as e:
        raise _http_error(e) from e
    return {"items": [a.to_dict() for a in allocations], "total": len(allocations)}


@router.post(
    "/days/{allocation_date}/allocations", response_model=AllocationResponse, status_code=201
)
async def create_allocation(
    allocation_date: str, request: AllocationCreateRequest, user_id: str = Depends(require_user)
):
    """Add a block. 409 with the conflicting block when it overlaps."""
    try:
        allocation = get_allocations().create(
            user_id,
            allocation_date,
            request.category,
            request.start_time,
            request.end_time,
            label=request.label,
            project_id=request.project_id,
        )
    except (TimeBudgetError, ValueError) as e:
        logger.info("Create on %s rejected for %s: %s", allocation_date, user_id, e)
        raise _http_error(e) from e
    return allocation.to_dict()


@router.patch("/allocations/{allocation_id}", response_model=AllocationResponse)
async def update_allocation(
    allocation_id: str, request: AllocationUpdateRequest, user_id: str = Depends(require_user)
):
    """Partial update; only fields present in the body change."""
    fields = request.model_dump(exclude_unset=True)
    try:
        allocation = get_allocations().update(allocation_id, user_id=user_id, **fields)
    except (TimeBudgetError, ValueError) as e:
        logger.info("Update of %s rejected for %s: %s", allocation_id, user_id, e)
        raise _http_error(e) from e
    return allocation.to_dict()


@router.delete("/allocations/{allocation_id}", response_model=MutationResponse)
async def delete_allocation(allocation_id: str, user_id: str = Depends(require_user)):
    try:
        get_allocations().delete(allocation_id, user_id=user_id)
    except TimeBudgetError as e:
        raise _http_error(e) from e
    return {"success": True, "id": allocation_id}


# ==== Read models ====


@router.get("/days/{allocation_date}/summary", response_model=SummaryResponse)
async def get_summary(allocation_date: str, user_id: str = Depends(require_user)):
    aggregator = SummaryAggregator(get_allocations(), get_preferences())
    try:
        summary = aggregator.daily_summary(user_id, allocation_date)
    except ValueError as e:
        raise _http_error(e) from e
    return summary.to_dict()


@router.get("/days/{allocation_date}/timeline", response_model=TimelineResponse)
async def get_timeline(allocation_date: str, user_id: str = Depends(require_user)):
    """Timeline geometry; the now marker is only set when viewing today."""
    try:
        day = normalize_date(allocation_date)
        allocations = get_allocations().list(user_id, day)
    except ValueError as e:
        raise _http_error(e) from e

    window = get_preferences().get_day_window(user_id)
    now = datetime.now()
    timeline = build_timeline(
        allocations, window, now=now if day == now.date().isoformat() else None
    )
    return timeline.to_dict()


# ==== Templates ====


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(user_id: str = Depends(require_user)):
    templates = get_templates().list_templates(user_id)
    return {"items": [t.to_dict() for t in templates], "total": len(templates)}


@router.post("/templates", response_model=TemplateResponse, status_code=201)
async def save_template(request: TemplateCreateRequest, user_id: str = Depends(require_user)):
    """Capture every block of `date` under `name`."""
    try:
        template = get_templates().save_as_template(user_id, request.name, request.date)
    except (TimeBudgetError, ValueError) as e:
        raise _http_error(e) from e
    return template.to_dict()


@router.delete("/templates/{template_id}", response_model=MutationResponse)
async def delete_template(template_id: str, user_id: str = Depends(require_user)):
    try:
        get_templates().delete_template(user_id, template_id)
    except TimeBudgetError as e:
        raise _http_error(e) from e
    return {"success": True, "id": template_id}


@router.post("/templates/{template_id}/load", response_model=AllocationListResponse)
async def load_template(
    template_id: str, request: TemplateLoadRequest, user_id: str = Depends(require_user)
):
    """
    Replace the day's blocks with the template's.

    All-or-nothing: on 409 the day still holds what it had before.
    """
    try:
        created = get_templates().load_template(user_id, template_id, request.date)
    except (TimeBudgetError, ValueError) as e:
        raise _http_error(e) from e
    return {"items": [a.to_dict() for a in created], "total": len(created)}
