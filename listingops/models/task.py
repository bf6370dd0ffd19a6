import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listingops.database import Base, UUIDType, JSONType
from listingops.models.catalog import Platform, Store, Category, Subcategory, Range
from listingops.models.user import User


class Marketplace(str, Enum):
    """Target marketplaces a product can be listed on."""
    EBAY_US = "EBAY_US"
    EBAY_AUS = "EBAY_AUS"
    EBAY_CANADA = "EBAY_CANADA"


class TaskStatus(str, Enum):
    """draft -> assigned -> completed. Only a manual edit moves it backwards."""
    DRAFT = "draft"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


TASK_STATUS_ORDER = {
    TaskStatus.DRAFT.value: 0,
    TaskStatus.ASSIGNED.value: 1,
    TaskStatus.COMPLETED.value: 2,
}


class Task(Base):
    """
    Product research record: something a product admin found that should be
    listed on a marketplace.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_platform_store", "listing_platform_id", "store_id"),
        Index("ix_tasks_lister_status_date", "assigned_lister_id", "status", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Product
    product_title: Mapped[str] = mapped_column(String(500), nullable=False)
    supplier_link: Mapped[str] = mapped_column(Text, nullable=False)
    source_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Quantities
    quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    source_platform_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("platforms.id"), nullable=False
    )
    marketplace: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="EBAY_US, EBAY_AUS, EBAY_CANADA"
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("categories.id"), nullable=False
    )
    subcategory_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("subcategories.id"), nullable=False
    )
    range_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("ranges.id"), nullable=True
    )

    # Listing side (task-level assignment)
    listing_platform_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("platforms.id"), nullable=True
    )
    store_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("stores.id"), nullable=True
    )
    assigned_lister_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.DRAFT.value,
        comment="draft, assigned, completed"
    )

    # Raw marketplace/supplier payload, kept verbatim
    extra_info: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False
    )
    assigned_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=True
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    source_platform: Mapped["Platform"] = relationship("Platform", foreign_keys=[source_platform_id])
    category: Mapped["Category"] = relationship("Category")
    subcategory: Mapped["Subcategory"] = relationship("Subcategory")
    range: Mapped[Optional["Range"]] = relationship("Range")
    listing_platform: Mapped[Optional["Platform"]] = relationship("Platform", foreign_keys=[listing_platform_id])
    store: Mapped[Optional["Store"]] = relationship("Store")
    assigned_lister: Mapped[Optional["User"]] = relationship("User", foreign_keys=[assigned_lister_id])
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_id])
    assigned_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[assigned_by_id])

    def advance_status(self, new_status: TaskStatus) -> bool:
        """Move status forward only. Returns True if it changed."""
        if TASK_STATUS_ORDER[new_status.value] > TASK_STATUS_ORDER.get(self.status, 0):
            self.status = new_status.value
            return True
        return False

    def __repr__(self) -> str:
        return f"<Task(title='{self.product_title[:30]}', status='{self.status}')>"
