"""
Compatibility (vehicle fitment) follow-up work.

Once a motors listing assignment is fully completed, a compatibility admin
hands parts of it to an editor, split by range; the editor reports progress
per range with the same overwrite/remove rule as listing assignments.
"""
from typing import List
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listingops.config import settings
from listingops.core.dates import utcnow
from listingops.core.errors import ForbiddenError, NotFoundError, ValidationError
from listingops.core.permissions import PermissionChecker
from listingops.models.assignment import Assignment, AssignmentRangeQuantity
from listingops.models.catalog import Category
from listingops.models.compatibility import (
    CompatibilityAssignment,
    CompatibilityAssignedRange,
    CompatibilityCompletedRange,
)
from listingops.models.task import Task
from listingops.models.user import User, UserRole
from listingops.schemas.compatibility import CompatibilityAssignCreate
from listingops.services.assignment_service import ASSIGNMENT_LOAD
from listingops.services.reconciliation_service import (
    apply_range_entry,
    settle_completion,
    get_range_in_category,
)


logger = logging.getLogger(__name__)


COMPATIBILITY_LOAD = (
    selectinload(CompatibilityAssignment.task).selectinload(Task.source_platform),
    selectinload(CompatibilityAssignment.task).selectinload(Task.category),
    selectinload(CompatibilityAssignment.task).selectinload(Task.subcategory),
    selectinload(CompatibilityAssignment.source_assignment).selectinload(Assignment.listing_platform),
    selectinload(CompatibilityAssignment.source_assignment).selectinload(Assignment.store),
    selectinload(CompatibilityAssignment.source_assignment)
    .selectinload(Assignment.range_quantities)
    .selectinload(AssignmentRangeQuantity.range),
    selectinload(CompatibilityAssignment.admin),
    selectinload(CompatibilityAssignment.editor),
    selectinload(CompatibilityAssignment.assigned_ranges).selectinload(CompatibilityAssignedRange.range),
    selectinload(CompatibilityAssignment.completed_ranges).selectinload(CompatibilityCompletedRange.range),
)


class CompatibilityService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, compatibility_id: uuid.UUID) -> CompatibilityAssignment:
        stmt = (
            select(CompatibilityAssignment)
            .options(*COMPATIBILITY_LOAD)
            .where(CompatibilityAssignment.id == compatibility_id)
            .execution_options(populate_existing=True)
        )
        item = (await self.db.execute(stmt)).scalar_one_or_none()
        if item is None:
            raise NotFoundError(
                "Compatibility assignment not found",
                details={"compatibility_assignment_id": str(compatibility_id)},
            )
        return item

    async def list_eligible(self) -> List[Assignment]:
        """Fully completed assignments of the compatibility category."""
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .join(Task, Task.id == Assignment.task_id)
            .join(Category, Category.id == Task.category_id)
            .where(
                Category.name == settings.COMPATIBILITY_CATEGORY_NAME,
                Assignment.quantity > 0,
                Assignment.completed_quantity >= Assignment.quantity,
            )
            .order_by(Assignment.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def assign(self, data: CompatibilityAssignCreate, admin: User) -> CompatibilityAssignment:
        result = await self.db.execute(
            select(Assignment).options(*ASSIGNMENT_LOAD).where(Assignment.id == data.source_assignment_id)
        )
        source = result.scalar_one_or_none()
        if source is None:
            raise NotFoundError(
                "Source assignment not found",
                details={"source_assignment_id": str(data.source_assignment_id)},
            )
        task = source.task

        editor = await self.db.get(User, data.editor_id)
        if editor is None or editor.role != UserRole.COMPATIBILITY_EDITOR.value:
            raise ValidationError("Editor not found", details={"editor_id": str(data.editor_id)})

        seen = set()
        for entry in data.range_quantities:
            if entry.range_id in seen:
                raise ValidationError("Duplicate range in rangeQuantities", details={"range_id": str(entry.range_id)})
            seen.add(entry.range_id)
            await get_range_in_category(self.db, entry.range_id, task.category_id)

        item = CompatibilityAssignment(
            source_assignment_id=source.id,
            task_id=task.id,
            admin_id=admin.id,
            editor_id=editor.id,
            quantity=sum(entry.quantity for entry in data.range_quantities),
            notes=data.notes or "",
            created_by_id=admin.id,
            assigned_ranges=[
                CompatibilityAssignedRange(range_id=entry.range_id, quantity=entry.quantity, position=index)
                for index, entry in enumerate(data.range_quantities)
            ],
        )
        self.db.add(item)
        await self.db.flush()

        logger.info(f"Compatibility assignment {item.id} for editor {editor.id}, quantity {item.quantity}")
        return await self.get(item.id)

    async def list_progress(self, checker: PermissionChecker) -> List[CompatibilityAssignment]:
        """Everything for superadmins; a compatibility admin sees what they handed out."""
        stmt = (
            select(CompatibilityAssignment)
            .options(*COMPATIBILITY_LOAD)
            .order_by(CompatibilityAssignment.created_at.desc())
        )
        if not checker.is_super_admin():
            stmt = stmt.where(CompatibilityAssignment.admin_id == checker.user.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_editor(self, editor_id: uuid.UUID) -> List[CompatibilityAssignment]:
        stmt = (
            select(CompatibilityAssignment)
            .options(*COMPATIBILITY_LOAD)
            .where(CompatibilityAssignment.editor_id == editor_id)
            .order_by(CompatibilityAssignment.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def report_range_quantity(
        self,
        compatibility_id: uuid.UUID,
        range_id: uuid.UUID,
        quantity: int,
        checker: PermissionChecker,
    ) -> CompatibilityAssignment:
        item = await self.get(compatibility_id)
        if not checker.is_super_admin() and item.editor_id != checker.user.id:
            raise ForbiddenError("Forbidden", details={"reason": "assigned to another editor"})

        await get_range_in_category(self.db, range_id, item.task.category_id)

        distributed = apply_range_entry(item.completed_ranges, range_id, quantity, CompatibilityCompletedRange)
        now = utcnow()
        settle_completion(item, distributed, now)
        item.updated_at = now
        await self.db.flush()

        logger.info(f"Compatibility assignment {compatibility_id}: range {range_id} set to {quantity}")
        return await self.get(compatibility_id)
