from typing import List
from math import ceil
import uuid

from fastapi import APIRouter, Query, Depends

from listingops.api.deps import DB, require_permissions
from listingops.config import settings
from listingops.schemas.analytics import ListerSummaryRow
from listingops.schemas.assignment import AssignmentResponse, ListerAssignmentPage
from listingops.services.analytics_service import AnalyticsService
from listingops.services.assignment_service import AssignmentService


router = APIRouter(tags=["Workload"])


@router.get(
    "/summary",
    response_model=List[ListerSummaryRow],
    dependencies=[Depends(require_permissions("assignments:workload"))]
)
async def lister_summary(db: DB):
    """Per lister and scheduled day: units, progress and the stores involved."""
    service = AnalyticsService(db)
    return await service.lister_summary()


@router.get(
    "/details",
    response_model=ListerAssignmentPage,
    dependencies=[Depends(require_permissions("assignments:workload"))]
)
async def lister_details(
    db: DB,
    lister_id: uuid.UUID = Query(..., alias="listerId"),
    date: str = Query(..., description="Scheduled day, YYYY-MM-DD in the reporting timezone"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
):
    service = AssignmentService(db)
    assignments, total = await service.list_assignments(
        lister_id=lister_id,
        scheduled_date_mode="single",
        scheduled_date_single=date,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return ListerAssignmentPage(
        items=[AssignmentResponse.model_validate(a) for a in assignments],
        total=total,
        page=page,
        limit=limit,
        pages=ceil(total / limit),
    )
