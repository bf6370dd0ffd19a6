"""Service for creating, querying and deleting assignments."""
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import uuid

from sqlalchemy import select, func, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listingops.core.dates import as_utc, date_filter_bounds, today_bounds, utcnow
from listingops.core.errors import NotFoundError, ValidationError
from listingops.models.assignment import Assignment, AssignmentRangeQuantity
from listingops.models.catalog import Platform, Store, Category, Subcategory
from listingops.models.compatibility import (
    CompatibilityAssignment,
    CompatibilityAssignedRange,
    CompatibilityCompletedRange,
)
from listingops.models.listing_completion import ListingCompletion, ListingCompletionRange
from listingops.models.task import Task, TaskStatus, Marketplace
from listingops.models.user import User
from listingops.schemas.assignment import AssignmentCreate, AssignmentBulkCreate


logger = logging.getLogger(__name__)


# Everything an assignment response expands
ASSIGNMENT_LOAD = (
    selectinload(Assignment.task).selectinload(Task.source_platform),
    selectinload(Assignment.task).selectinload(Task.category),
    selectinload(Assignment.task).selectinload(Task.subcategory),
    selectinload(Assignment.task).selectinload(Task.range),
    selectinload(Assignment.task).selectinload(Task.created_by),
    selectinload(Assignment.lister),
    selectinload(Assignment.listing_platform),
    selectinload(Assignment.store),
    selectinload(Assignment.created_by),
    selectinload(Assignment.range_quantities).selectinload(AssignmentRangeQuantity.range),
)

SORT_COLUMNS = {
    "createdAt": Assignment.created_at,
    "scheduledDate": Assignment.scheduled_date,
    "quantity": Assignment.quantity,
}


def _split_names(value: Optional[str]) -> List[str]:
    """Comma separated name filter -> list of names."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


async def purge_assignments(
    db: AsyncSession,
    assignment_ids: Sequence[uuid.UUID],
    task_id: Optional[uuid.UUID] = None,
) -> Dict[str, int]:
    """
    Delete assignments and everything derived from them.

    Removes compatibility assignments and listing completions pointing at the
    given assignments (or directly at task_id when given), their range rows,
    then the assignments. Runs in the caller's transaction.
    """
    no_sync = {"synchronize_session": False}
    assignment_ids = list(assignment_ids)

    compat_filter = CompatibilityAssignment.source_assignment_id.in_(assignment_ids)
    completion_filter = ListingCompletion.assignment_id.in_(assignment_ids)
    if task_id is not None:
        compat_filter = or_(compat_filter, CompatibilityAssignment.task_id == task_id)
        completion_filter = or_(completion_filter, ListingCompletion.task_id == task_id)

    compat_ids = select(CompatibilityAssignment.id).where(compat_filter)
    await db.execute(
        delete(CompatibilityAssignedRange)
        .where(CompatibilityAssignedRange.compatibility_assignment_id.in_(compat_ids))
        .execution_options(**no_sync)
    )
    await db.execute(
        delete(CompatibilityCompletedRange)
        .where(CompatibilityCompletedRange.compatibility_assignment_id.in_(compat_ids))
        .execution_options(**no_sync)
    )
    compat_result = await db.execute(
        delete(CompatibilityAssignment).where(compat_filter).execution_options(**no_sync)
    )

    completion_ids = select(ListingCompletion.id).where(completion_filter)
    await db.execute(
        delete(ListingCompletionRange)
        .where(ListingCompletionRange.completion_id.in_(completion_ids))
        .execution_options(**no_sync)
    )
    completion_result = await db.execute(
        delete(ListingCompletion).where(completion_filter).execution_options(**no_sync)
    )

    await db.execute(
        delete(AssignmentRangeQuantity)
        .where(AssignmentRangeQuantity.assignment_id.in_(assignment_ids))
        .execution_options(**no_sync)
    )
    assignment_result = await db.execute(
        delete(Assignment).where(Assignment.id.in_(assignment_ids)).execution_options(**no_sync)
    )

    return {
        "assignments": assignment_result.rowcount or 0,
        "completions": completion_result.rowcount or 0,
        "compatibility_assignments": compat_result.rowcount or 0,
    }


class AssignmentService:
    """Assignment lifecycle outside of reconciliation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== LOOKUPS ====================

    async def get_assignment(self, assignment_id: uuid.UUID) -> Optional[Assignment]:
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .where(Assignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _require(self, model, object_id: uuid.UUID, label: str):
        obj = await self.db.get(model, object_id)
        if obj is None:
            raise ValidationError(f"{label} not found", details={"id": str(object_id)})
        return obj

    async def _check_store(self, store_id: uuid.UUID, platform_id: uuid.UUID) -> Store:
        store = await self._require(Store, store_id, "Store")
        if store.platform_id != platform_id:
            raise ValidationError(
                "Store does not belong to listing platform",
                details={"store_id": str(store_id), "platform_id": str(platform_id)},
            )
        return store

    # ==================== CREATE ====================

    def _new_assignment(
        self,
        task: Task,
        creator: User,
        lister_id: uuid.UUID,
        quantity: int,
        listing_platform_id: uuid.UUID,
        store_id: uuid.UUID,
        notes: Optional[str],
        scheduled_date,
    ) -> Assignment:
        now = utcnow()
        assignment = Assignment(
            task_id=task.id,
            lister_id=lister_id,
            quantity=quantity,
            listing_platform_id=listing_platform_id,
            store_id=store_id,
            marketplace=task.marketplace,
            created_by_id=creator.id,
            notes=notes or "",
            scheduled_date=as_utc(scheduled_date) or now,
        )
        self.db.add(assignment)

        if task.advance_status(TaskStatus.ASSIGNED):
            task.assigned_by_id = creator.id
            task.assigned_at = now
        return assignment

    async def create_assignment(self, data: AssignmentCreate, creator: User) -> Assignment:
        task = await self.db.get(Task, data.task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": str(data.task_id)})

        await self._require(User, data.lister_id, "Lister")
        await self._require(Platform, data.listing_platform_id, "Listing platform")
        await self._check_store(data.store_id, data.listing_platform_id)

        assignment = self._new_assignment(
            task,
            creator,
            lister_id=data.lister_id,
            quantity=data.quantity,
            listing_platform_id=data.listing_platform_id,
            store_id=data.store_id,
            notes=data.notes,
            scheduled_date=data.scheduled_date,
        )
        await self.db.flush()

        logger.info(
            f"Assignment {assignment.id} created: task {task.id} -> lister {data.lister_id}, "
            f"quantity {data.quantity}"
        )
        return await self.get_assignment(assignment.id)

    async def bulk_create(self, data: AssignmentBulkCreate, creator: User) -> Tuple[int, List[str]]:
        """
        Create one assignment per item for a single lister and platform.

        Items that cannot be created are reported in the returned error list;
        the rest are created.
        """
        await self._require(User, data.lister_id, "Lister")
        await self._require(Platform, data.listing_platform_id, "Listing platform")

        created = 0
        errors: List[str] = []
        for item in data.assignments:
            store_id = item.store_id or data.store_id
            if store_id is None:
                errors.append(f"Task {item.task_id} missing Store ID")
                continue

            task = await self.db.get(Task, item.task_id)
            if task is None:
                errors.append(f"Task {item.task_id} not found")
                continue

            store = await self.db.get(Store, store_id)
            if store is None or store.platform_id != data.listing_platform_id:
                errors.append(f"Task {item.task_id}: store {store_id} is not on the listing platform")
                continue

            self._new_assignment(
                task,
                creator,
                lister_id=data.lister_id,
                quantity=item.quantity,
                listing_platform_id=data.listing_platform_id,
                store_id=store_id,
                notes=data.notes,
                scheduled_date=data.scheduled_date,
            )
            created += 1

        await self.db.flush()
        logger.info(f"Bulk assignment for lister {data.lister_id}: {created} created, {len(errors)} rejected")
        return created, errors

    # ==================== QUERIES ====================

    async def list_assignments(
        self,
        task_id: Optional[uuid.UUID] = None,
        lister_id: Optional[uuid.UUID] = None,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        marketplace: Optional[str] = None,
        product_title: Optional[str] = None,
        date_mode: Optional[str] = None,
        date_single: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        scheduled_date_mode: Optional[str] = None,
        scheduled_date_single: Optional[str] = None,
        scheduled_date_from: Optional[str] = None,
        scheduled_date_to: Optional[str] = None,
        source_platform: Optional[str] = None,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        created_by_task: Optional[str] = None,
        lister_username: Optional[str] = None,
        shared_by: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Assignment], int]:
        """Filtered assignments; skip/limit of None returns everything."""
        filters = []
        if task_id:
            filters.append(Assignment.task_id == task_id)
        if lister_id:
            filters.append(Assignment.lister_id == lister_id)
        if platform_id:
            filters.append(Assignment.listing_platform_id == platform_id)
        if store_id:
            filters.append(Assignment.store_id == store_id)
        if marketplace:
            filters.append(Assignment.marketplace == marketplace)

        created_start, created_end = date_filter_bounds(date_mode, date_single, date_from, date_to)
        if created_start:
            filters.append(Assignment.created_at >= created_start)
        if created_end:
            filters.append(Assignment.created_at < created_end)

        sched_start, sched_end = date_filter_bounds(
            scheduled_date_mode, scheduled_date_single, scheduled_date_from, scheduled_date_to
        )
        if sched_start:
            filters.append(Assignment.scheduled_date >= sched_start)
        if sched_end:
            filters.append(Assignment.scheduled_date < sched_end)

        # Filters on the task side
        task_filters = []
        if product_title:
            task_filters.append(Task.product_title.ilike(f"%{product_title}%"))
        names = _split_names(source_platform)
        if names:
            task_filters.append(Task.source_platform_id.in_(select(Platform.id).where(Platform.name.in_(names))))
        names = _split_names(category)
        if names:
            task_filters.append(Task.category_id.in_(select(Category.id).where(Category.name.in_(names))))
        names = _split_names(subcategory)
        if names:
            task_filters.append(Task.subcategory_id.in_(select(Subcategory.id).where(Subcategory.name.in_(names))))
        names = _split_names(created_by_task)
        if names:
            task_filters.append(Task.created_by_id.in_(select(User.id).where(User.username.in_(names))))
        if task_filters:
            filters.append(Assignment.task_id.in_(select(Task.id).where(and_(*task_filters))))

        names = _split_names(lister_username)
        if names:
            filters.append(Assignment.lister_id.in_(select(User.id).where(User.username.in_(names))))
        names = _split_names(shared_by)
        if names:
            filters.append(Assignment.created_by_id.in_(select(User.id).where(User.username.in_(names))))

        sort_column = SORT_COLUMNS.get(sort_by)
        if sort_column is None:
            raise ValidationError(f"Unsupported sortBy: {sort_by}", details={"allowed": list(SORT_COLUMNS)})
        order = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        stmt = select(Assignment).options(*ASSIGNMENT_LOAD).order_by(order, Assignment.id)
        count_stmt = select(func.count(Assignment.id))
        if filters:
            stmt = stmt.where(and_(*filters))
            count_stmt = count_stmt.where(and_(*filters))

        total = (await self.db.execute(count_stmt)).scalar() or 0

        if skip is not None:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def list_for_lister(self, lister_id: uuid.UUID) -> List[Assignment]:
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .where(Assignment.lister_id == lister_id)
            .order_by(Assignment.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_lister_by_status(self, lister_id: uuid.UUID) -> Dict[str, List[Assignment]]:
        """
        Work scheduled up to the end of today (reporting timezone), split into
        completed, due today, and carried over from earlier days.
        """
        start_of_today, end_of_today = today_bounds()
        stmt = (
            select(Assignment)
            .options(*ASSIGNMENT_LOAD)
            .where(
                Assignment.lister_id == lister_id,
                Assignment.scheduled_date < end_of_today,
            )
            .order_by(Assignment.scheduled_date.desc(), Assignment.created_at.desc())
        )
        result = await self.db.execute(stmt)

        buckets: Dict[str, List[Assignment]] = {
            "todays_tasks": [],
            "pending_tasks": [],
            "completed_tasks": [],
        }
        for assignment in result.scalars().all():
            scheduled = as_utc(assignment.scheduled_date)
            if assignment.is_completed:
                buckets["completed_tasks"].append(assignment)
            elif start_of_today <= scheduled < end_of_today:
                buckets["todays_tasks"].append(assignment)
            else:
                buckets["pending_tasks"].append(assignment)
        return buckets

    async def get_filter_options(self) -> Dict[str, Any]:
        """Values the assignment list can currently be filtered by."""

        async def named(model, ids_stmt=None) -> List[Dict[str, Any]]:
            stmt = select(model.id, model.name).order_by(model.name)
            if ids_stmt is not None:
                stmt = stmt.where(model.id.in_(ids_stmt))
            rows = (await self.db.execute(stmt)).all()
            return [{"id": row.id, "name": row.name} for row in rows]

        async def users(ids_stmt) -> List[Dict[str, Any]]:
            stmt = select(User.id, User.username).where(User.id.in_(ids_stmt)).order_by(User.username)
            rows = (await self.db.execute(stmt)).all()
            return [{"id": row.id, "username": row.username} for row in rows]

        assigned_tasks = select(Assignment.task_id)

        return {
            "source_platforms": await named(
                Platform, select(Task.source_platform_id).where(Task.id.in_(assigned_tasks))
            ),
            "listing_platforms": await named(Platform, select(Assignment.listing_platform_id)),
            "stores": await named(Store, select(Assignment.store_id)),
            "categories": await named(Category),
            "subcategories": await named(Subcategory),
            "listers": await users(select(Assignment.lister_id)),
            "assigners": await users(select(Assignment.created_by_id)),
            "task_creators": await users(select(Task.created_by_id).where(Task.id.in_(assigned_tasks))),
            "marketplaces": [m.value for m in Marketplace],
        }

    # ==================== DELETE ====================

    async def delete_assignment(self, assignment_id: uuid.UUID) -> Dict[str, int]:
        """Delete an assignment with its compatibility work and listing completion."""
        exists = await self.db.execute(select(Assignment.id).where(Assignment.id == assignment_id))
        if exists.scalar_one_or_none() is None:
            raise NotFoundError("Assignment not found", details={"assignment_id": str(assignment_id)})

        counts = await purge_assignments(self.db, [assignment_id])
        logger.info(
            f"Deleted assignment {assignment_id} with {counts['completions']} completions and "
            f"{counts['compatibility_assignments']} compatibility assignments"
        )
        return counts
