from typing import List, Optional, Union
import uuid

from fastapi import APIRouter, status, Query, Depends

from listingops.api.deps import DB, CurrentUser, Permissions, require_permissions
from listingops.config import settings
from listingops.schemas.analytics import AdminListerRow, ListingsSummaryRow, StockLedgerRow
from listingops.schemas.assignment import (
    AssignmentCreate,
    AssignmentBulkCreate,
    AssignmentCompleteRequest,
    AssignmentResponse,
    AssignmentPage,
    AssignmentsByStatus,
    AssignmentDeleteResponse,
    AssignmentFilterOptions,
    BulkAssignmentResult,
    RangeQuantityReport,
    RangeQuantityResponse,
)
from listingops.services.analytics_service import AnalyticsService
from listingops.services.assignment_service import AssignmentService
from listingops.services.reconciliation_service import ReconciliationService


router = APIRouter(tags=["Assignments"])


# ==================== CREATE / LIST ====================

@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("assignments:create"))]
)
async def create_assignment(data: AssignmentCreate, db: DB, current_user: CurrentUser):
    """Share a task with a lister for a platform/store. Marketplace is taken from the task."""
    service = AssignmentService(db)
    assignment = await service.create_assignment(data, current_user)
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/bulk",
    response_model=BulkAssignmentResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("assignments:create"))]
)
async def bulk_create_assignments(data: AssignmentBulkCreate, db: DB, current_user: CurrentUser):
    """Assign several tasks to one lister. Items that fail are listed in `errors`."""
    service = AssignmentService(db)
    count, errors = await service.bulk_create(data, current_user)
    return BulkAssignmentResult(success=True, count=count, errors=errors or None)


@router.get(
    "",
    response_model=Union[AssignmentPage, List[AssignmentResponse]],
    dependencies=[Depends(require_permissions("assignments:read"))]
)
async def list_assignments(
    db: DB,
    task_id: Optional[uuid.UUID] = Query(None, alias="taskId"),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    marketplace: Optional[str] = Query(None),
    product_title: Optional[str] = Query(None, alias="productTitle"),
    date_mode: Optional[str] = Query(None, alias="dateMode", pattern="^(single|range)$"),
    date_single: Optional[str] = Query(None, alias="dateSingle"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    scheduled_date_mode: Optional[str] = Query(None, alias="scheduledDateMode", pattern="^(single|range)$"),
    scheduled_date_single: Optional[str] = Query(None, alias="scheduledDateSingle"),
    scheduled_date_from: Optional[str] = Query(None, alias="scheduledDateFrom"),
    scheduled_date_to: Optional[str] = Query(None, alias="scheduledDateTo"),
    source_platform: Optional[str] = Query(None, alias="sourcePlatform", description="Comma separated names"),
    category: Optional[str] = Query(None, description="Comma separated names"),
    subcategory: Optional[str] = Query(None, description="Comma separated names"),
    created_by_task: Optional[str] = Query(None, alias="createdByTask", description="Comma separated usernames"),
    lister_username: Optional[str] = Query(None, alias="listerUsername", description="Comma separated usernames"),
    shared_by: Optional[str] = Query(None, alias="sharedBy", description="Comma separated usernames"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
):
    """
    List assignments. Dates are YYYY-MM-DD in the reporting timezone.
    Without page/limit the full list is returned; with either, a page.
    """
    service = AssignmentService(db)
    paged = page is not None or limit is not None
    page = page or 1
    limit = limit or settings.DEFAULT_PAGE_LIMIT

    assignments, total = await service.list_assignments(
        task_id=task_id,
        lister_id=lister_id,
        platform_id=platform_id,
        store_id=store_id,
        marketplace=marketplace,
        product_title=product_title,
        date_mode=date_mode,
        date_single=date_single,
        date_from=date_from,
        date_to=date_to,
        scheduled_date_mode=scheduled_date_mode,
        scheduled_date_single=scheduled_date_single,
        scheduled_date_from=scheduled_date_from,
        scheduled_date_to=scheduled_date_to,
        source_platform=source_platform,
        category=category,
        subcategory=subcategory,
        created_by_task=created_by_task,
        lister_username=lister_username,
        shared_by=shared_by,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=(page - 1) * limit if paged else None,
        limit=limit if paged else None,
    )
    items = [AssignmentResponse.model_validate(a) for a in assignments]
    if not paged:
        return items
    return AssignmentPage(items=items, total=total, page=page, limit=limit)


@router.get(
    "/filter-options",
    response_model=AssignmentFilterOptions,
    dependencies=[Depends(require_permissions("assignments:read"))]
)
async def get_filter_options(db: DB):
    service = AssignmentService(db)
    return await service.get_filter_options()


# ==================== LISTER VIEWS ====================

@router.get(
    "/mine",
    response_model=List[AssignmentResponse],
    dependencies=[Depends(require_permissions("assignments:mine"))]
)
async def list_my_assignments(db: DB, current_user: CurrentUser):
    service = AssignmentService(db)
    assignments = await service.list_for_lister(current_user.id)
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.get(
    "/mine/with-status",
    response_model=AssignmentsByStatus,
    dependencies=[Depends(require_permissions("assignments:mine"))]
)
async def list_my_assignments_by_status(db: DB, current_user: CurrentUser):
    """Today's, carried-over and completed work, up to the end of today."""
    service = AssignmentService(db)
    buckets = await service.list_for_lister_by_status(current_user.id)
    return AssignmentsByStatus(
        **{
            name: [AssignmentResponse.model_validate(a) for a in assignments]
            for name, assignments in buckets.items()
        }
    )


# ==================== ANALYTICS ====================

@router.get(
    "/analytics/admin-lister",
    response_model=List[AdminListerRow],
    dependencies=[Depends(require_permissions("assignments:analytics"))]
)
async def admin_lister_analytics(db: DB):
    service = AnalyticsService(db)
    return await service.assignment_admin_lister()


@router.get(
    "/analytics/listings-summary",
    response_model=List[ListingsSummaryRow],
    dependencies=[Depends(require_permissions("assignments:analytics"))]
)
async def listings_summary(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    date_mode: Optional[str] = Query(None, alias="dateMode", pattern="^(single|range)$"),
    date_single: Optional[str] = Query(None, alias="dateSingle"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
):
    service = AnalyticsService(db)
    return await service.listings_summary(
        platform_id=platform_id,
        store_id=store_id,
        date_mode=date_mode,
        date_single=date_single,
        date_from=date_from,
        date_to=date_to,
    )


@router.get(
    "/analytics/stock-ledger",
    response_model=List[StockLedgerRow],
    dependencies=[Depends(require_permissions("assignments:analytics"))]
)
async def stock_ledger(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryId"),
    subcategory_id: Optional[uuid.UUID] = Query(None, alias="subcategoryId"),
    category: Optional[str] = Query(None, description="Comma separated category names"),
    range_names: Optional[str] = Query(None, alias="range", description="Comma separated range names"),
):
    service = AnalyticsService(db)
    return await service.stock_ledger(
        platform_id=platform_id,
        store_id=store_id,
        category_id=category_id,
        subcategory_id=subcategory_id,
        category=category,
        range_names=range_names,
    )


# ==================== RECONCILIATION ====================

@router.get(
    "/{assignment_id}/ranges",
    response_model=List[RangeQuantityResponse],
    dependencies=[Depends(require_permissions("assignments:complete"))]
)
async def get_assignment_ranges(assignment_id: uuid.UUID, db: DB, checker: Permissions):
    service = ReconciliationService(db)
    entries = await service.get_ranges(assignment_id, checker)
    return [RangeQuantityResponse.model_validate(e) for e in entries]


@router.post(
    "/{assignment_id}/complete-range",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permissions("assignments:complete"))]
)
async def complete_range(
    assignment_id: uuid.UUID,
    data: RangeQuantityReport,
    db: DB,
    checker: Permissions,
):
    """
    Set how many units were listed for one range. The quantity replaces the
    previous value for that range; 0 removes it.
    """
    service = ReconciliationService(db)
    assignment = await service.report_range_quantity(assignment_id, data.range_id, data.quantity, checker)
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/{assignment_id}/submit",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permissions("assignments:complete"))]
)
async def submit_assignment(assignment_id: uuid.UUID, db: DB, checker: Permissions):
    """Finalize an assignment. 409 while the ranges cover less than the assigned quantity."""
    service = ReconciliationService(db)
    assignment = await service.submit(assignment_id, checker)
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/{assignment_id}/complete",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permissions("assignments:complete"))]
)
async def complete_assignment(
    assignment_id: uuid.UUID,
    data: AssignmentCompleteRequest,
    db: DB,
    checker: Permissions,
):
    """Set the completed count directly, without a range breakdown."""
    service = ReconciliationService(db)
    assignment = await service.complete(assignment_id, data.completed_quantity, checker)
    return AssignmentResponse.model_validate(assignment)


# ==================== DELETE ====================

@router.delete(
    "/{assignment_id}",
    response_model=AssignmentDeleteResponse,
    dependencies=[Depends(require_permissions("assignments:delete"))]
)
async def delete_assignment(assignment_id: uuid.UUID, db: DB):
    """Delete an assignment with its listing completion and compatibility work."""
    service = AssignmentService(db)
    counts = await service.delete_assignment(assignment_id)
    return AssignmentDeleteResponse(
        message="Assignment and related data deleted successfully.",
        deleted_completions=counts["completions"],
        deleted_compatibility_assignments=counts["compatibility_assignments"],
    )
