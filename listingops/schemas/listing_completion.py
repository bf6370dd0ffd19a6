from typing import Optional, List
from datetime import datetime
import uuid

from listingops.schemas.base import BaseResponseSchema
from listingops.schemas.catalog import NamedRef, UserBrief


class RangeCompletionResponse(BaseResponseSchema):
    range_id: uuid.UUID
    range: Optional[NamedRef] = None
    quantity: int


class ListingCompletionResponse(BaseResponseSchema):
    id: uuid.UUID
    date: datetime
    assignment_id: uuid.UUID
    task_id: uuid.UUID
    lister_id: uuid.UUID
    lister: Optional[UserBrief] = None
    listing_platform_id: uuid.UUID
    listing_platform: Optional[NamedRef] = None
    store_id: uuid.UUID
    store: Optional[NamedRef] = None
    marketplace: str
    category_id: uuid.UUID
    category: Optional[NamedRef] = None
    subcategory_id: uuid.UUID
    subcategory: Optional[NamedRef] = None
    range_completions: List[RangeCompletionResponse] = []
    total_quantity: int
    created_at: datetime
    updated_at: datetime


class ListingSheetRow(BaseResponseSchema):
    """One (day, platform, store, marketplace, category, subcategory, range) cell."""
    date: str
    platform: str
    store: str
    marketplace: str
    category: str
    subcategory: str
    range: str
    quantity: int
