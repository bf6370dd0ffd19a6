from pydantic import Field
from typing import Optional, List
from datetime import datetime
import uuid

from listingops.schemas.base import BaseCreateSchema, BaseResponseSchema, PageResponse
from listingops.schemas.catalog import NamedRef, UserBrief


# ==================== RANGE DISTRIBUTION ====================

class RangeQuantityResponse(BaseResponseSchema):
    range_id: uuid.UUID
    range: Optional[NamedRef] = None
    quantity: int


class RangeQuantityReport(BaseCreateSchema):
    """Absolute quantity for one range; 0 removes the range."""
    range_id: uuid.UUID
    quantity: int = Field(..., ge=0)


class AssignmentCompleteRequest(BaseCreateSchema):
    completed_quantity: int = Field(..., ge=0)


# ==================== ASSIGNMENT ====================

class AssignmentCreate(BaseCreateSchema):
    task_id: uuid.UUID
    lister_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    listing_platform_id: uuid.UUID
    store_id: uuid.UUID
    notes: Optional[str] = ""
    scheduled_date: Optional[datetime] = None


class BulkAssignmentItem(BaseCreateSchema):
    task_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    store_id: Optional[uuid.UUID] = None


class AssignmentBulkCreate(BaseCreateSchema):
    lister_id: uuid.UUID
    listing_platform_id: uuid.UUID
    store_id: Optional[uuid.UUID] = None  # fallback for items without one
    notes: Optional[str] = ""
    scheduled_date: Optional[datetime] = None
    assignments: List[BulkAssignmentItem] = Field(..., min_length=1)


class BulkAssignmentResult(BaseResponseSchema):
    success: bool
    count: int
    errors: Optional[List[str]] = None


class AssignmentTaskBrief(BaseResponseSchema):
    """Task fields shown alongside an assignment."""
    id: uuid.UUID
    date: datetime
    product_title: str
    supplier_link: str
    source_price: float
    selling_price: float
    marketplace: str
    status: str
    category_id: uuid.UUID
    subcategory_id: uuid.UUID
    source_platform: Optional[NamedRef] = None
    category: Optional[NamedRef] = None
    subcategory: Optional[NamedRef] = None
    range: Optional[NamedRef] = None
    created_by: Optional[UserBrief] = None


class AssignmentResponse(BaseResponseSchema):
    id: uuid.UUID
    task_id: uuid.UUID
    task: Optional[AssignmentTaskBrief] = None
    lister_id: uuid.UUID
    lister: Optional[UserBrief] = None
    quantity: int
    listing_platform_id: uuid.UUID
    listing_platform: Optional[NamedRef] = None
    store_id: uuid.UUID
    store: Optional[NamedRef] = None
    marketplace: str
    created_by_id: uuid.UUID
    created_by: Optional[UserBrief] = None
    notes: str
    scheduled_date: datetime
    completed_quantity: int
    completed_at: Optional[datetime] = None
    range_quantities: List[RangeQuantityResponse] = []
    distributed_total: int
    created_at: datetime
    updated_at: datetime


class AssignmentPage(PageResponse[AssignmentResponse]):
    pass


class ListerAssignmentPage(AssignmentPage):
    pages: int


class AssignmentsByStatus(BaseResponseSchema):
    """A lister's work up to today, bucketed for the dashboard."""
    todays_tasks: List[AssignmentResponse]
    pending_tasks: List[AssignmentResponse]
    completed_tasks: List[AssignmentResponse]


class AssignmentDeleteResponse(BaseResponseSchema):
    message: str
    deleted_completions: int
    deleted_compatibility_assignments: int


class AssignmentFilterOptions(BaseResponseSchema):
    source_platforms: List[NamedRef]
    listing_platforms: List[NamedRef]
    stores: List[NamedRef]
    categories: List[NamedRef]
    subcategories: List[NamedRef]
    listers: List[UserBrief]
    assigners: List[UserBrief]
    task_creators: List[UserBrief]
    marketplaces: List[str]
