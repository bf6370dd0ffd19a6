import uuid
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listingops.database import Base, UUIDType
from listingops.models.assignment import Assignment
from listingops.models.catalog import Range
from listingops.models.task import Task
from listingops.models.user import User


class CompatibilityAssignment(Base):
    """
    Follow-up work handed to a compatibility editor once a listing
    assignment is fully completed (vehicle fitment data for motors listings).
    """
    __tablename__ = "compatibility_assignments"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    source_assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("assignments.id"), nullable=False, index=True
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("tasks.id"), nullable=False, index=True
    )
    admin_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False
    )
    editor_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("users.id"), nullable=False
    )

    completed_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
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
    source_assignment: Mapped["Assignment"] = relationship("Assignment")
    task: Mapped["Task"] = relationship("Task")
    admin: Mapped["User"] = relationship("User", foreign_keys=[admin_id])
    editor: Mapped["User"] = relationship("User", foreign_keys=[editor_id])
    assigned_ranges: Mapped[List["CompatibilityAssignedRange"]] = relationship(
        "CompatibilityAssignedRange",
        cascade="all, delete-orphan",
        order_by="CompatibilityAssignedRange.position",
    )
    completed_ranges: Mapped[List["CompatibilityCompletedRange"]] = relationship(
        "CompatibilityCompletedRange",
        cascade="all, delete-orphan",
        order_by="CompatibilityCompletedRange.position",
    )

    def __repr__(self) -> str:
        return f"<CompatibilityAssignment(id='{self.id}', quantity={self.quantity})>"


class CompatibilityAssignedRange(Base):
    __tablename__ = "compatibility_assigned_ranges"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    compatibility_assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("compatibility_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    range_id: Mapped[uuid.UUID] = mapped_column(UUIDType, ForeignKey("ranges.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    range: Mapped["Range"] = relationship("Range")


class CompatibilityCompletedRange(Base):
    __tablename__ = "compatibility_completed_ranges"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    compatibility_assignment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("compatibility_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    range_id: Mapped[uuid.UUID] = mapped_column(UUIDType, ForeignKey("ranges.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    range: Mapped["Range"] = relationship("Range")
