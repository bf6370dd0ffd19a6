from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, Depends

from listingops.api.deps import DB, require_permissions
from listingops.config import settings
from listingops.schemas.analytics import StoreWiseSummaryRow
from listingops.schemas.assignment import AssignmentPage, AssignmentResponse
from listingops.services.analytics_service import AnalyticsService
from listingops.services.assignment_service import AssignmentService


router = APIRouter(tags=["Workload"])


@router.get(
    "/summary",
    response_model=List[StoreWiseSummaryRow],
    dependencies=[Depends(require_permissions("assignments:workload"))]
)
async def store_wise_summary(db: DB):
    """Assigned, completed and pending units per store and scheduled day."""
    service = AnalyticsService(db)
    return await service.store_wise_summary()


@router.get(
    "/details",
    response_model=AssignmentPage,
    dependencies=[Depends(require_permissions("assignments:workload"))]
)
async def store_wise_details(
    db: DB,
    store_id: uuid.UUID = Query(..., alias="storeId"),
    date: str = Query(..., description="Scheduled day, YYYY-MM-DD in the reporting timezone"),
    marketplace: Optional[str] = Query(None),
    product_title: Optional[str] = Query(None, alias="productTitle"),
    source_platform: Optional[str] = Query(None, alias="sourcePlatform"),
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    created_by_task: Optional[str] = Query(None, alias="createdByTask"),
    lister_username: Optional[str] = Query(None, alias="listerUsername"),
    shared_by: Optional[str] = Query(None, alias="sharedBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
):
    """One store's assignments for one scheduled day, newest first."""
    service = AssignmentService(db)
    assignments, total = await service.list_assignments(
        store_id=store_id,
        marketplace=marketplace,
        product_title=product_title,
        scheduled_date_mode="single",
        scheduled_date_single=date,
        source_platform=source_platform,
        category=category,
        subcategory=subcategory,
        created_by_task=created_by_task,
        lister_username=lister_username,
        shared_by=shared_by,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return AssignmentPage(
        items=[AssignmentResponse.model_validate(a) for a in assignments],
        total=total,
        page=page,
        limit=limit,
    )
