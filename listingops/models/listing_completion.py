import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import String, DateTime, ForeignKey, Integer, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listingops.database import Base, UUIDType
from listingops.models.catalog import Platform, Store, Category, Subcategory, Range
from listingops.models.user import User


class ListingCompletion(Base):
    """
    Reporting snapshot of one assignment's completion state.

    Never written by clients directly: the reconciliation workflow keeps at
    most one row per assignment and deletes it when the assignment's
    distributed quantity drops back to zero.
    """
    __tablename__ = "listing_completions"
    __table_args__ = (
        CheckConstraint("total_quantity >= 1", name="ck_listing_completions_total_positive"),
        Index("ix_listing_completions_date_platform_store_mkt", "date", "listing_platform_id", "store_id", "marketplace"),
        Index("ix_listing_completions_lister_date", "lister_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("assignments.id"), nullable=False, index=True
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("tasks.id"), nullable=False, index=True
    )
    lister_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False
    )
    listing_platform_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("platforms.id"), nullable=False
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("stores.id"), nullable=False
    )
    marketplace: Mapped[str] = mapped_column(String(20), nullable=False)
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("categories.id"), nullable=False
    )
    subcategory_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("subcategories.id"), nullable=False
    )

    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

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
    lister: Mapped["User"] = relationship("User")
    listing_platform: Mapped["Platform"] = relationship("Platform")
    store: Mapped["Store"] = relationship("Store")
    category: Mapped["Category"] = relationship("Category")
    subcategory: Mapped["Subcategory"] = relationship("Subcategory")
    range_completions: Mapped[List["ListingCompletionRange"]] = relationship(
        "ListingCompletionRange",
        back_populates="completion",
        cascade="all, delete-orphan",
        order_by="ListingCompletionRange.position",
    )

    def __repr__(self) -> str:
        return f"<ListingCompletion(assignment='{self.assignment_id}', total={self.total_quantity})>"


class ListingCompletionRange(Base):
    __tablename__ = "listing_completion_ranges"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_listing_completion_ranges_quantity_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    completion_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("listing_completions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    range_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("ranges.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    completion: Mapped["ListingCompletion"] = relationship("ListingCompletion", back_populates="range_completions")
    range: Mapped["Range"] = relationship("Range")
