from pydantic import Field, AliasChoices
from typing import Optional, Any, Dict
from datetime import datetime
from decimal import Decimal
import uuid

from listingops.models.task import Marketplace, TaskStatus
from listingops.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema, PageResponse
from listingops.schemas.catalog import NamedRef, UserBrief


class TaskCreate(BaseCreateSchema):
    """Product research entry. `link` is accepted for older clients."""
    date: Optional[datetime] = None
    product_title: str = Field(..., min_length=1, max_length=500)
    supplier_link: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("supplierLink", "supplier_link", "link"),
    )
    source_price: Decimal = Field(..., ge=0)
    selling_price: Decimal = Field(..., ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    source_platform_id: uuid.UUID
    marketplace: Marketplace
    category_id: uuid.UUID
    subcategory_id: uuid.UUID
    range_id: Optional[uuid.UUID] = None
    listing_platform_id: Optional[uuid.UUID] = None
    store_id: Optional[uuid.UUID] = None
    assigned_lister_id: Optional[uuid.UUID] = None
    extra_info: Optional[Dict[str, Any]] = None


class TaskUpdate(BaseUpdateSchema):
    """
    Partial update. Which fields are applied depends on the caller's role:
    product fields for product admins, listing fields for listing admins.
    """
    # Product fields
    date: Optional[datetime] = None
    product_title: Optional[str] = Field(None, min_length=1, max_length=500)
    supplier_link: Optional[str] = None
    source_price: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    source_platform_id: Optional[uuid.UUID] = None
    marketplace: Optional[Marketplace] = None
    category_id: Optional[uuid.UUID] = None
    subcategory_id: Optional[uuid.UUID] = None
    range_id: Optional[uuid.UUID] = None
    extra_info: Optional[Dict[str, Any]] = None

    # Listing fields
    lister_id: Optional[uuid.UUID] = None
    quantity: Optional[int] = Field(None, ge=0)
    listing_platform_id: Optional[uuid.UUID] = None
    store_id: Optional[uuid.UUID] = None

    # Manual status reset (admins only)
    status: Optional[TaskStatus] = None


class TaskAssign(BaseCreateSchema):
    lister_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    listing_platform_id: uuid.UUID
    store_id: uuid.UUID


class TaskComplete(BaseCreateSchema):
    """Omitted quantity means the whole task."""
    completed_quantity: Optional[int] = None


class TaskResponse(BaseResponseSchema):
    id: uuid.UUID
    date: datetime
    product_title: str
    supplier_link: str
    source_price: float
    selling_price: float
    quantity: Optional[int] = None
    completed_quantity: int
    marketplace: str
    status: str

    source_platform_id: uuid.UUID
    source_platform: Optional[NamedRef] = None
    category_id: uuid.UUID
    category: Optional[NamedRef] = None
    subcategory_id: uuid.UUID
    subcategory: Optional[NamedRef] = None
    range_id: Optional[uuid.UUID] = None
    range: Optional[NamedRef] = None

    listing_platform_id: Optional[uuid.UUID] = None
    listing_platform: Optional[NamedRef] = None
    store_id: Optional[uuid.UUID] = None
    store: Optional[NamedRef] = None
    assigned_lister_id: Optional[uuid.UUID] = None
    assigned_lister: Optional[UserBrief] = None

    created_by_id: uuid.UUID
    created_by: Optional[UserBrief] = None
    assigned_by_id: Optional[uuid.UUID] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    extra_info: Optional[Dict[str, Any]] = None

    created_at: datetime
    updated_at: datetime


class TaskPage(PageResponse[TaskResponse]):
    total_pages: int


class TaskDeleteResponse(BaseResponseSchema):
    message: str
    deleted_assignments: int
    deleted_completions: int
    deleted_compatibility_assignments: int
