from pydantic import Field
from typing import Optional, List
from datetime import datetime
import uuid

from listingops.schemas.base import BaseCreateSchema, BaseResponseSchema
from listingops.schemas.catalog import NamedRef, UserBrief
from listingops.schemas.assignment import RangeQuantityResponse


class CompatibilityRangeInput(BaseCreateSchema):
    range_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class CompatibilityAssignCreate(BaseCreateSchema):
    source_assignment_id: uuid.UUID
    editor_id: uuid.UUID
    range_quantities: List[CompatibilityRangeInput] = Field(..., min_length=1)
    notes: Optional[str] = ""


class CompatibilityTaskBrief(BaseResponseSchema):
    id: uuid.UUID
    product_title: str
    marketplace: str
    source_platform: Optional[NamedRef] = None
    category: Optional[NamedRef] = None
    subcategory: Optional[NamedRef] = None


class CompatibilitySourceBrief(BaseResponseSchema):
    id: uuid.UUID
    quantity: int
    marketplace: str
    listing_platform: Optional[NamedRef] = None
    store: Optional[NamedRef] = None
    range_quantities: List[RangeQuantityResponse] = []


class CompatibilityAssignmentResponse(BaseResponseSchema):
    id: uuid.UUID
    source_assignment_id: uuid.UUID
    source_assignment: Optional[CompatibilitySourceBrief] = None
    task_id: uuid.UUID
    task: Optional[CompatibilityTaskBrief] = None
    admin: Optional[UserBrief] = None
    editor_id: uuid.UUID
    editor: Optional[UserBrief] = None
    quantity: int
    notes: str
    assigned_ranges: List[RangeQuantityResponse] = []
    completed_ranges: List[RangeQuantityResponse] = []
    completed_quantity: int
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
