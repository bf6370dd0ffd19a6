from typing import List, Optional, Union
import uuid
from math import ceil

from fastapi import APIRouter, status, Query, Depends

from listingops.api.deps import DB, CurrentUser, Permissions, require_permissions
from listingops.config import settings
from listingops.schemas.analytics import (
    TaskAnalyticsSummary,
    TaskDailyRow,
    TaskAdminListerRow,
    ListerDailyRow,
    TaskListingsSummaryRow,
)
from listingops.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskAssign,
    TaskComplete,
    TaskResponse,
    TaskPage,
    TaskDeleteResponse,
)
from listingops.services.analytics_service import AnalyticsService
from listingops.services.task_service import TaskService


router = APIRouter(tags=["Tasks"])


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("tasks:create"))]
)
async def create_task(data: TaskCreate, db: DB, current_user: CurrentUser):
    """Create a product research entry. Status starts as draft."""
    service = TaskService(db)
    task = await service.create_task(data, current_user)
    return TaskResponse.model_validate(task)


@router.get(
    "",
    response_model=Union[TaskPage, List[TaskResponse]],
    dependencies=[Depends(require_permissions("tasks:read"))]
)
async def list_tasks(
    db: DB,
    checker: Permissions,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, reporting timezone"),
    search: Optional[str] = Query(None, description="Matches title or supplier link"),
    sort_by: str = Query("date", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
):
    """
    List tasks. Listers only see tasks assigned to them.
    Without page/limit the full list is returned; with either, a page.
    """
    service = TaskService(db)
    paged = page is not None or limit is not None
    page = page or 1
    limit = limit or settings.DEFAULT_PAGE_LIMIT

    tasks, total = await service.list_tasks(
        checker,
        platform_id=platform_id,
        store_id=store_id,
        lister_id=lister_id,
        date=date,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=(page - 1) * limit if paged else None,
        limit=limit if paged else None,
    )
    items = [TaskResponse.model_validate(t) for t in tasks]
    if not paged:
        return items

    return TaskPage(
        items=items,
        total=total,
        page=page,
        limit=limit,
        total_pages=ceil(total / limit) if total > 0 else 0,
    )


# ==================== ANALYTICS ====================

@router.get(
    "/analytics",
    response_model=TaskAnalyticsSummary,
    dependencies=[Depends(require_permissions("tasks:analytics"))]
)
async def task_analytics(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
    date: Optional[str] = Query(None),
):
    service = AnalyticsService(db)
    return await service.task_summary(
        platform_id=platform_id, store_id=store_id, lister_id=lister_id, date=date
    )


@router.get(
    "/analytics/daily",
    response_model=List[TaskDailyRow],
    dependencies=[Depends(require_permissions("tasks:analytics"))]
)
async def task_analytics_daily(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
):
    service = AnalyticsService(db)
    return await service.task_daily(platform_id=platform_id, store_id=store_id, lister_id=lister_id)


@router.get(
    "/analytics/admin-lister",
    response_model=List[TaskAdminListerRow],
    dependencies=[Depends(require_permissions("tasks:analytics"))]
)
async def task_analytics_admin_lister(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
    date: Optional[str] = Query(None),
):
    service = AnalyticsService(db)
    return await service.task_admin_lister(
        platform_id=platform_id, store_id=store_id, lister_id=lister_id, date=date
    )


@router.get(
    "/analytics/lister-daily",
    response_model=List[ListerDailyRow],
    dependencies=[Depends(require_permissions("tasks:analytics"))]
)
async def task_analytics_lister_daily(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
):
    service = AnalyticsService(db)
    return await service.task_lister_daily(platform_id=platform_id, store_id=store_id, lister_id=lister_id)


@router.get(
    "/analytics/listings-summary",
    response_model=List[TaskListingsSummaryRow],
    dependencies=[Depends(require_permissions("tasks:analytics"))]
)
async def task_listings_summary(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
):
    """Assigned and completed tasks per assignment day, listing platform and store."""
    service = AnalyticsService(db)
    return await service.task_listings_summary(platform_id=platform_id, store_id=store_id)


# ==================== SINGLE TASK ====================

@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    dependencies=[Depends(require_permissions("tasks:read"))]
)
async def get_task(task_id: uuid.UUID, db: DB, checker: Permissions):
    service = TaskService(db)
    task = await service.get_task_for(task_id, checker)
    return TaskResponse.model_validate(task)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    dependencies=[Depends(require_permissions("tasks:update"))]
)
async def update_task(task_id: uuid.UUID, data: TaskUpdate, db: DB, checker: Permissions):
    """
    Update a task. Product admins edit product fields, listing admins edit
    lister/quantity/platform/store; either may reset status by hand.
    """
    service = TaskService(db)
    task = await service.update_task(task_id, data, checker)
    return TaskResponse.model_validate(task)


@router.post(
    "/{task_id}/assign",
    response_model=TaskResponse,
    dependencies=[Depends(require_permissions("tasks:assign"))]
)
async def assign_task(task_id: uuid.UUID, data: TaskAssign, db: DB, current_user: CurrentUser):
    service = TaskService(db)
    task = await service.assign_task(task_id, data, current_user)
    return TaskResponse.model_validate(task)


@router.post(
    "/{task_id}/complete",
    response_model=TaskResponse,
    dependencies=[Depends(require_permissions("tasks:complete"))]
)
async def complete_task(
    task_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
    data: Optional[TaskComplete] = None,
):
    """Lister reports completed units on a task assigned to them. No body completes it fully."""
    service = TaskService(db)
    completed_quantity = data.completed_quantity if data else None
    task = await service.complete_task(task_id, completed_quantity, current_user)
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}",
    response_model=TaskDeleteResponse,
    dependencies=[Depends(require_permissions("tasks:delete"))]
)
async def delete_task(task_id: uuid.UUID, db: DB):
    """Delete a task together with its assignments, completions and compatibility work."""
    service = TaskService(db)
    counts = await service.delete_task(task_id)
    return TaskDeleteResponse(
        message="Task and all related data deleted successfully",
        deleted_assignments=counts["assignments"],
        deleted_completions=counts["completions"],
        deleted_compatibility_assignments=counts["compatibility_assignments"],
    )
