"""
Assignment reconciliation.

A lister (or an admin on their behalf) reports how many units of an
assignment were listed per product range. Each report overwrites the
quantity for that range; the assignment's completed quantity and completion
timestamp are derived from the sum, and a ListingCompletion snapshot of the
same state is kept for reporting.

Both writes happen in the caller's transaction. The assignment row is locked
while it is read (PostgreSQL), and its version column turns any lost update
that gets past the lock into a ConflictError.
"""
from typing import Callable, List, Optional
from datetime import datetime
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from listingops.core.dates import utcnow
from listingops.core.errors import ConflictError, NotFoundError, ValidationError
from listingops.core.permissions import PermissionChecker
from listingops.models.assignment import Assignment, AssignmentRangeQuantity
from listingops.models.catalog import Range
from listingops.models.listing_completion import ListingCompletion, ListingCompletionRange
from listingops.services.assignment_service import ASSIGNMENT_LOAD


logger = logging.getLogger(__name__)


# ==================== Range Distribution Rules ====================

def apply_range_entry(
    entries: List,
    range_id: uuid.UUID,
    quantity: int,
    factory: Callable[..., object],
) -> int:
    """
    Set the quantity for one range in an ordered range/quantity collection.

    0 removes the entry, anything else overwrites or appends it. Returns the
    new sum of the collection.
    """
    existing = next((entry for entry in entries if entry.range_id == range_id), None)

    if quantity == 0:
        if existing is not None:
            entries.remove(existing)
    elif existing is not None:
        existing.quantity = quantity
    else:
        position = max((entry.position for entry in entries), default=-1) + 1
        entries.append(factory(range_id=range_id, quantity=quantity, position=position))

    return sum(entry.quantity or 0 for entry in entries)


def settle_completion(holder, distributed: int, now: datetime) -> None:
    """
    Derive completed_quantity/completed_at from the distributed total.

    Reaching the assigned quantity stamps completed_at once; dropping below it
    clears the stamp again.
    """
    holder.completed_quantity = min(distributed, holder.quantity)
    if distributed >= holder.quantity and holder.completed_at is None:
        holder.completed_at = now
    elif distributed < holder.quantity and holder.completed_at is not None:
        holder.completed_at = None


async def get_range_in_category(db: AsyncSession, range_id: uuid.UUID, category_id: uuid.UUID) -> Range:
    range_obj = await db.get(Range, range_id)
    if range_obj is None:
        raise NotFoundError("Range not found", details={"range_id": str(range_id)})
    if range_obj.category_id != category_id:
        raise ValidationError(
            "Range does not belong to task category",
            details={"range_id": str(range_id), "category_id": str(category_id)},
        )
    return range_obj


class ReconciliationService:
    """Keeps Assignment bookkeeping and its ListingCompletion mirror in step."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== LOADING ====================

    async def load_assignment(self, assignment_id: uuid.UUID, lock: bool = False) -> Assignment:
        """Assignment with task and range entries; row-locked when lock=True."""
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .where(Assignment.id == assignment_id)
        )
        if lock:
            stmt = stmt.with_for_update(of=Assignment)
        result = await self.db.execute(stmt)
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise NotFoundError("Assignment not found", details={"assignment_id": str(assignment_id)})
        return assignment

    async def reload(self, assignment_id: uuid.UUID) -> Assignment:
        """Fresh, fully expanded copy for the response."""
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .where(Assignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    # ==================== MUTATION STEPS ====================

    async def apply_range_quantity(self, assignment: Assignment, range_id: uuid.UUID, quantity: int) -> int:
        """Validate the range and apply one report in memory. Returns the distributed total."""
        if quantity < 0:
            raise ValidationError("quantity must be >= 0", details={"quantity": quantity})

        await get_range_in_category(self.db, range_id, assignment.task.category_id)

        distributed = apply_range_entry(
            assignment.range_quantities, range_id, quantity, AssignmentRangeQuantity
        )
        now = utcnow()
        settle_completion(assignment, distributed, now)
        # Always touch the row so the version counter moves even when only
        # child entries changed
        assignment.updated_at = now
        return distributed

    async def persist(self, assignment: Assignment) -> None:
        """
        Flush the assignment; a concurrent modification becomes a ConflictError.

        A failed flush leaves the session needing a rollback, so nothing on
        the instance may be read after it.
        """
        assignment_id = assignment.id
        try:
            await self.db.flush()
        except StaleDataError:
            logger.warning(f"Concurrent modification of assignment {assignment_id}")
            raise ConflictError(
                "Assignment was modified concurrently; retry",
                details={"assignment_id": str(assignment_id)},
            )

    async def sync_listing_completion(self, assignment: Assignment) -> Optional[ListingCompletion]:
        """
        Mirror the assignment's distribution into its ListingCompletion.

        Deletes the snapshot when nothing is distributed; otherwise updates the
        existing one in place or creates it. Extra snapshots for the same
        assignment are removed so at most one remains.
        """
        result = await self.db.execute(
            select(ListingCompletion)
            .options(selectinload(ListingCompletion.range_completions))
            .where(ListingCompletion.assignment_id == assignment.id)
            .order_by(ListingCompletion.created_at)
        )
        existing = list(result.scalars().all())
        completion = existing[0] if existing else None
        for duplicate in existing[1:]:
            await self.db.delete(duplicate)

        distributed = assignment.distributed_total
        if distributed == 0:
            if completion is not None:
                await self.db.delete(completion)
                logger.info(f"Removed listing completion for assignment {assignment.id}")
            return None

        task = assignment.task
        if completion is None:
            completion = ListingCompletion(assignment_id=assignment.id)
            self.db.add(completion)

        completion.date = utcnow()
        completion.task_id = task.id
        completion.lister_id = assignment.lister_id
        completion.listing_platform_id = assignment.listing_platform_id
        completion.store_id = assignment.store_id
        completion.marketplace = assignment.marketplace
        completion.category_id = task.category_id
        completion.subcategory_id = task.subcategory_id
        completion.total_quantity = distributed
        completion.range_completions = [
            ListingCompletionRange(range_id=entry.range_id, quantity=entry.quantity, position=index)
            for index, entry in enumerate(e for e in assignment.range_quantities if e.quantity > 0)
        ]
        return completion

    # ==================== OPERATIONS ====================

    async def report_range_quantity(
        self,
        assignment_id: uuid.UUID,
        range_id: uuid.UUID,
        quantity: int,
        checker: PermissionChecker,
    ) -> Assignment:
        """Record how many units were listed for one range of an assignment."""
        assignment = await self.load_assignment(assignment_id, lock=True)
        checker.ensure_owner(assignment.lister_id)

        distributed = await self.apply_range_quantity(assignment, range_id, quantity)
        await self.persist(assignment)
        await self.sync_listing_completion(assignment)
        await self.db.flush()

        logger.info(
            f"Assignment {assignment_id}: range {range_id} set to {quantity}, "
            f"distributed {distributed}/{assignment.quantity}"
        )
        return await self.reload(assignment_id)

    async def submit(self, assignment_id: uuid.UUID, checker: PermissionChecker) -> Assignment:
        """Finalize an assignment whose ranges cover the assigned quantity."""
        assignment = await self.load_assignment(assignment_id, lock=True)
        checker.ensure_owner(assignment.lister_id)

        distributed = assignment.distributed_total
        if distributed < assignment.quantity:
            shortfall = assignment.quantity - distributed
            logger.warning(f"Rejected submit of assignment {assignment_id}: short by {shortfall}")
            raise ConflictError(
                f"Cannot submit: distributed quantity ({distributed}) is less than "
                f"assigned quantity ({assignment.quantity})",
                details={
                    "distributed": distributed,
                    "quantity": assignment.quantity,
                    "shortfall": shortfall,
                },
            )

        now = utcnow()
        assignment.completed_quantity = assignment.quantity
        assignment.completed_at = now
        assignment.updated_at = now
        await self.persist(assignment)
        await self.sync_listing_completion(assignment)
        await self.db.flush()

        logger.info(f"Assignment {assignment_id} submitted ({distributed}/{assignment.quantity})")
        return await self.reload(assignment_id)

    async def complete(
        self,
        assignment_id: uuid.UUID,
        completed_quantity: int,
        checker: PermissionChecker,
    ) -> Assignment:
        """Direct completion count, for clients that do not distribute by range."""
        if completed_quantity < 0:
            raise ValidationError("completedQuantity must be >= 0")

        assignment = await self.load_assignment(assignment_id, lock=True)
        checker.ensure_owner(assignment.lister_id)

        now = utcnow()
        assignment.completed_quantity = min(completed_quantity, assignment.quantity)
        assignment.completed_at = now if assignment.completed_quantity >= assignment.quantity else None
        assignment.updated_at = now
        await self.persist(assignment)

        logger.info(f"Assignment {assignment_id} completed quantity set to {assignment.completed_quantity}")
        return await self.reload(assignment_id)

    async def get_ranges(self, assignment_id: uuid.UUID, checker: PermissionChecker) -> List[AssignmentRangeQuantity]:
        assignment = await self.load_assignment(assignment_id)
        checker.ensure_owner(assignment.lister_id)
        return list(assignment.range_quantities)
