"""Row shapes for the read-only reporting endpoints. Dates are reporting-timezone days."""
from typing import List, Optional
import uuid

from listingops.schemas.base import BaseResponseSchema


# ==================== ASSIGNMENT ANALYTICS ====================

class AdminListerRow(BaseResponseSchema):
    date: str
    admin_id: Optional[uuid.UUID] = None
    lister_id: Optional[uuid.UUID] = None
    admin_name: str
    lister_name: str
    tasks_count: int
    quantity_total: int
    completed_count: int
    completed_qty: int


class ListingsSummaryRow(BaseResponseSchema):
    date: str
    platform_id: uuid.UUID
    platform: Optional[str] = None
    store_id: uuid.UUID
    store: Optional[str] = None
    total_quantity: int
    assignments_count: int
    completed_qty: int
    num_listers: int
    num_categories: int
    num_ranges: int


class StockLedgerRow(BaseResponseSchema):
    platform_id: uuid.UUID
    platform: Optional[str] = None
    store_id: uuid.UUID
    store: Optional[str] = None
    category_id: uuid.UUID
    category: Optional[str] = None
    subcategory_id: uuid.UUID
    subcategory: Optional[str] = None
    range_id: uuid.UUID
    range: Optional[str] = None
    total_assigned: int
    total_completed: int
    pending: int


# ==================== STORE & LISTER WORKLOAD ====================

class StoreWiseSummaryRow(BaseResponseSchema):
    store_id: uuid.UUID
    store_name: str
    date: str
    total_quantity: int
    completed_quantity: int
    pending_quantity: int
    assignment_count: int


class StoreRef(BaseResponseSchema):
    store_id: uuid.UUID
    store_name: str


class ListerSummaryRow(BaseResponseSchema):
    lister_id: uuid.UUID
    lister_name: str
    date: str
    total_quantity: int
    completed_quantity: int
    pending_quantity: int
    assignment_count: int
    stores: List[StoreRef]
    store_count: int


# ==================== TASK ANALYTICS ====================

class TaskAnalyticsSummary(BaseResponseSchema):
    total_listings: int = 0
    completed_qty: int = 0
    num_listers: int = 0
    num_stores: int = 0
    num_categories: int = 0
    num_subcategories: int = 0


class TaskDailyRow(BaseResponseSchema):
    date: str
    total_quantity: int
    num_listers: int
    num_stores: int
    num_categories: int
    num_subcategories: int


class TaskAdminListerRow(BaseResponseSchema):
    date: str
    admin_id: Optional[uuid.UUID] = None
    lister_id: Optional[uuid.UUID] = None
    admin_name: Optional[str] = None
    lister_name: Optional[str] = None
    tasks_count: int
    quantity_total: int
    completed_count: int
    completed_qty: int


class TaskListingsSummaryRow(BaseResponseSchema):
    date: str
    platform_id: uuid.UUID
    platform: Optional[str] = None
    store_id: Optional[uuid.UUID] = None
    store: Optional[str] = None
    total_quantity: int
    assignments_count: int
    num_listers: int
    num_categories: int
    num_subcategories: int


class ListerDailyRow(BaseResponseSchema):
    date: str
    platform: Optional[str] = None
    store: Optional[str] = None
    tasks_count: int
    quantity_total: int
    completed_count: int
    completed_qty: int
    num_categories: int
    num_ranges: int
