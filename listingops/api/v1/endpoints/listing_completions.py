from typing import List, Optional
import uuid

from fastapi import APIRouter, Query, Depends

from listingops.api.deps import DB, require_permissions
from listingops.schemas.listing_completion import ListingCompletionResponse, ListingSheetRow
from listingops.services.listing_completion_service import ListingCompletionService


router = APIRouter(tags=["Listing Completions"])


@router.get(
    "",
    response_model=List[ListingCompletionResponse],
    dependencies=[Depends(require_permissions("completions:read"))]
)
async def list_listing_completions(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    marketplace: Optional[str] = Query(None),
    lister_id: Optional[uuid.UUID] = Query(None, alias="listerId"),
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD, inclusive"),
):
    """Completion snapshots, one per assignment with listed units, newest first."""
    service = ListingCompletionService(db)
    completions = await service.list_completions(
        platform_id=platform_id,
        store_id=store_id,
        marketplace=marketplace,
        lister_id=lister_id,
        start_date=start_date,
        end_date=end_date,
    )
    return [ListingCompletionResponse.model_validate(c) for c in completions]


@router.get(
    "/sheet",
    response_model=List[ListingSheetRow],
    dependencies=[Depends(require_permissions("completions:read"))]
)
async def listing_sheet(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
    store_id: Optional[uuid.UUID] = Query(None, alias="storeId"),
    marketplace: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
):
    service = ListingCompletionService(db)
    return await service.listing_sheet(
        platform_id=platform_id,
        store_id=store_id,
        marketplace=marketplace,
        start_date=start_date,
        end_date=end_date,
    )
