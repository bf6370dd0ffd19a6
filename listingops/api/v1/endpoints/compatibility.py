from typing import List
import uuid

from fastapi import APIRouter, status, Depends

from listingops.api.deps import DB, CurrentUser, Permissions, require_permissions
from listingops.schemas.assignment import AssignmentResponse, RangeQuantityReport
from listingops.schemas.compatibility import CompatibilityAssignCreate, CompatibilityAssignmentResponse
from listingops.services.compatibility_service import CompatibilityService


router = APIRouter(tags=["Compatibility"])


# ==================== ADMIN ====================

@router.get(
    "/eligible",
    response_model=List[AssignmentResponse],
    dependencies=[Depends(require_permissions("compatibility:manage"))]
)
async def list_eligible_assignments(db: DB):
    """Fully completed motors assignments that can be handed to an editor."""
    service = CompatibilityService(db)
    assignments = await service.list_eligible()
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/assign",
    response_model=CompatibilityAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("compatibility:manage"))]
)
async def assign_compatibility(data: CompatibilityAssignCreate, db: DB, current_user: CurrentUser):
    service = CompatibilityService(db)
    item = await service.assign(data, current_user)
    return CompatibilityAssignmentResponse.model_validate(item)


@router.get(
    "/progress",
    response_model=List[CompatibilityAssignmentResponse],
    dependencies=[Depends(require_permissions("compatibility:manage"))]
)
async def compatibility_progress(db: DB, checker: Permissions):
    service = CompatibilityService(db)
    items = await service.list_progress(checker)
    return [CompatibilityAssignmentResponse.model_validate(i) for i in items]


# ==================== EDITOR ====================

@router.get(
    "/mine",
    response_model=List[CompatibilityAssignmentResponse],
    dependencies=[Depends(require_permissions("compatibility:edit"))]
)
async def list_my_compatibility(db: DB, current_user: CurrentUser):
    service = CompatibilityService(db)
    items = await service.list_for_editor(current_user.id)
    return [CompatibilityAssignmentResponse.model_validate(i) for i in items]


@router.post(
    "/{compatibility_id}/complete-range",
    response_model=CompatibilityAssignmentResponse,
    dependencies=[Depends(require_permissions("compatibility:edit"))]
)
async def complete_compatibility_range(
    compatibility_id: uuid.UUID,
    data: RangeQuantityReport,
    db: DB,
    checker: Permissions,
):
    """Set the edited count for one range; 0 removes it."""
    service = CompatibilityService(db)
    item = await service.report_range_quantity(compatibility_id, data.range_id, data.quantity, checker)
    return CompatibilityAssignmentResponse.model_validate(item)
