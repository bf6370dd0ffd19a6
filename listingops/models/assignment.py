import uuid
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import String, DateTime, ForeignKey, Integer, Text, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listingops.database import Base, UUIDType
from listingops.models.catalog import Platform, Store, Range
from listingops.models.task import Task
from listingops.models.user import User


class Assignment(Base):
    """
    A lister's commitment to list `quantity` units of a task's product on a
    given platform/store.

    The requested quantity is distributed across product ranges through
    `range_quantities`; completion bookkeeping is derived from that
    distribution (see services.reconciliation_service).

    `version` is bumped on every UPDATE; a write based on a stale read fails
    with StaleDataError instead of silently overwriting.
    """
    __tablename__ = "assignments"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_assignments_quantity_positive"),
        CheckConstraint("completed_quantity >= 0", name="ck_assignments_completed_non_negative"),
        Index("ix_assignments_platform_store", "listing_platform_id", "store_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    task_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("tasks.id"), nullable=False, index=True
    )
    lister_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    listing_platform_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("platforms.id"), nullable=False
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("stores.id"), nullable=False
    )
    # Copied from the task at creation time
    marketplace: Mapped[str] = mapped_column(String(20), nullable=False)

    # Listing admin who shared the work, and their note to the lister
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # When the work should show up for the lister
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    # Completion tracking
    completed_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

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

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    task: Mapped["Task"] = relationship("Task")
    lister: Mapped["User"] = relationship("User", foreign_keys=[lister_id])
    listing_platform: Mapped["Platform"] = relationship("Platform")
    store: Mapped["Store"] = relationship("Store")
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_id])
    range_quantities: Mapped[List["AssignmentRangeQuantity"]] = relationship(
        "AssignmentRangeQuantity",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="AssignmentRangeQuantity.position",
    )

    @property
    def distributed_total(self) -> int:
        """Sum of the range distribution."""
        return sum(rq.quantity or 0 for rq in self.range_quantities)

    @property
    def is_completed(self) -> bool:
        return self.distributed_total >= self.quantity or self.completed_quantity >= self.quantity

    def __repr__(self) -> str:
        return f"<Assignment(id='{self.id}', quantity={self.quantity}, completed={self.completed_quantity})>"


class AssignmentRangeQuantity(Base):
    """One {range, quantity} entry of an assignment's distribution."""
    __tablename__ = "assignment_range_quantities"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_assignment_range_quantity_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    range_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("ranges.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    assignment: Mapped["Assignment"] = relationship("Assignment", back_populates="range_quantities")
    range: Mapped["Range"] = relationship("Range")
