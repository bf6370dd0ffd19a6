"""Service for product research tasks."""
from typing import Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listingops.core.dates import as_utc, day_start, day_end, utcnow
from listingops.core.errors import ForbiddenError, NotFoundError, ValidationError
from listingops.core.permissions import PermissionChecker
from listingops.models.assignment import Assignment
from listingops.models.catalog import Platform, Store, Category, Subcategory, Range
from listingops.models.task import Task, TaskStatus
from listingops.models.user import User, UserRole
from listingops.schemas.task import TaskCreate, TaskUpdate, TaskAssign
from listingops.services.assignment_service import purge_assignments


logger = logging.getLogger(__name__)


TASK_LOAD = (
    selectinload(Task.source_platform),
    selectinload(Task.category),
    selectinload(Task.subcategory),
    selectinload(Task.range),
    selectinload(Task.listing_platform),
    selectinload(Task.store),
    selectinload(Task.assigned_lister),
    selectinload(Task.created_by),
)

SORT_COLUMNS = {
    "date": Task.date,
    "createdAt": Task.created_at,
    "productTitle": Task.product_title,
    "quantity": Task.quantity,
    "status": Task.status,
}

PRODUCT_FIELDS = (
    "date", "product_title", "supplier_link", "source_price", "selling_price",
    "source_platform_id", "marketplace", "category_id", "subcategory_id", "range_id", "extra_info",
)

LISTING_FIELDS = {
    "lister_id": "assigned_lister_id",
    "quantity": "quantity",
    "listing_platform_id": "listing_platform_id",
    "store_id": "store_id",
}


class TaskService:
    """Task CRUD, assignment and completion."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== LOOKUPS ====================

    async def get_task(self, task_id: uuid.UUID) -> Optional[Task]:
        stmt = (
            select(Task)
            .options(*TASK_LOAD)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_task_for(self, task_id: uuid.UUID, checker: PermissionChecker) -> Task:
        """Single task; listers only see tasks assigned to them."""
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": str(task_id)})
        if checker.has_role(UserRole.LISTER) and task.assigned_lister_id != checker.user.id:
            raise ForbiddenError("Forbidden", details={"reason": "task is assigned to another lister"})
        return task

    async def _require(self, model, object_id: Optional[uuid.UUID], label: str):
        if object_id is None:
            return None
        obj = await self.db.get(model, object_id)
        if obj is None:
            raise ValidationError(f"{label} not found", details={"id": str(object_id)})
        return obj

    async def _validate_references(self, task: Task) -> None:
        """Referenced rows exist and the classification is consistent."""
        await self._require(Platform, task.source_platform_id, "Source platform")
        await self._require(Category, task.category_id, "Category")

        subcategory = await self._require(Subcategory, task.subcategory_id, "Subcategory")
        if subcategory.category_id != task.category_id:
            raise ValidationError(
                "Subcategory does not belong to category",
                details={"subcategory_id": str(task.subcategory_id), "category_id": str(task.category_id)},
            )

        range_obj = await self._require(Range, task.range_id, "Range")
        if range_obj is not None and range_obj.category_id != task.category_id:
            raise ValidationError(
                "Range does not belong to task category",
                details={"range_id": str(task.range_id), "category_id": str(task.category_id)},
            )

        await self._require(Platform, task.listing_platform_id, "Listing platform")
        store = await self._require(Store, task.store_id, "Store")
        if store is not None and task.listing_platform_id and store.platform_id != task.listing_platform_id:
            raise ValidationError(
                "Store does not belong to listing platform",
                details={"store_id": str(task.store_id), "platform_id": str(task.listing_platform_id)},
            )
        await self._require(User, task.assigned_lister_id, "Lister")

        if task.quantity is not None and task.completed_quantity > task.quantity:
            raise ValidationError(
                "quantity cannot be below completed quantity",
                details={"quantity": task.quantity, "completed_quantity": task.completed_quantity},
            )

    # ==================== CRUD ====================

    async def create_task(self, data: TaskCreate, creator: User) -> Task:
        task = Task(
            date=as_utc(data.date) or utcnow(),
            product_title=data.product_title,
            supplier_link=data.supplier_link,
            source_price=data.source_price,
            selling_price=data.selling_price,
            quantity=data.quantity,
            completed_quantity=0,
            source_platform_id=data.source_platform_id,
            marketplace=data.marketplace.value,
            category_id=data.category_id,
            subcategory_id=data.subcategory_id,
            range_id=data.range_id,
            listing_platform_id=data.listing_platform_id,
            store_id=data.store_id,
            assigned_lister_id=data.assigned_lister_id,
            status=TaskStatus.DRAFT.value,
            extra_info=data.extra_info,
            created_by_id=creator.id,
        )
        await self._validate_references(task)

        self.db.add(task)
        await self.db.flush()
        logger.info(f"Task {task.id} created by {creator.id}: {task.product_title[:60]}")
        return await self.get_task(task.id)

    async def list_tasks(
        self,
        checker: PermissionChecker,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        lister_id: Optional[uuid.UUID] = None,
        date: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Task], int]:
        """Tasks visible to the caller; skip/limit of None returns everything."""
        filters = []
        if checker.has_role(UserRole.LISTER):
            filters.append(Task.assigned_lister_id == checker.user.id)
        else:
            if platform_id:
                filters.append(Task.listing_platform_id == platform_id)
            if store_id:
                filters.append(Task.store_id == store_id)
            if lister_id:
                filters.append(Task.assigned_lister_id == lister_id)
            if date:
                filters.append(Task.date >= day_start(date))
                filters.append(Task.date < day_end(date))

        if search:
            pattern = f"%{search}%"
            filters.append(or_(Task.product_title.ilike(pattern), Task.supplier_link.ilike(pattern)))

        sort_column = SORT_COLUMNS.get(sort_by)
        if sort_column is None:
            raise ValidationError(f"Unsupported sortBy: {sort_by}", details={"allowed": list(SORT_COLUMNS)})
        order = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        stmt = select(Task).options(*TASK_LOAD).order_by(order, Task.id)
        count_stmt = select(func.count(Task.id))
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

    async def update_task(self, task_id: uuid.UUID, data: TaskUpdate, checker: PermissionChecker) -> Task:
        """
        Apply the fields the caller's role may edit: product admins edit the
        product, listing admins edit the listing side, superadmins both.
        Fields outside the caller's role are ignored.
        """
        task = await self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": str(task_id)})

        updates = data.model_dump(exclude_unset=True)
        applied = []

        if checker.has_role(UserRole.SUPERADMIN, UserRole.PRODUCT_ADMIN):
            for field in PRODUCT_FIELDS:
                if field not in updates:
                    continue
                value = updates[field]
                if field == "date":
                    value = as_utc(value) or task.date
                elif field == "marketplace" and value is not None:
                    value = value.value
                elif value is None and field not in ("range_id", "extra_info"):
                    continue
                setattr(task, field, value)
                applied.append(field)

        if checker.has_role(UserRole.SUPERADMIN, UserRole.LISTING_ADMIN):
            for field, column in LISTING_FIELDS.items():
                if field in updates:
                    setattr(task, column, updates[field])
                    applied.append(field)

        if "status" in updates and updates["status"] is not None:
            # Manual status edit; the only way status moves backwards
            status = updates["status"]
            task.status = status.value
            if status == TaskStatus.COMPLETED:
                task.completed_at = task.completed_at or utcnow()
            else:
                task.completed_at = None
            applied.append("status")

        await self._validate_references(task)
        await self.db.flush()
        logger.info(f"Task {task_id} updated by {checker.user.id}: {applied}")
        return await self.get_task(task_id)

    async def assign_task(self, task_id: uuid.UUID, data: TaskAssign, assigner: User) -> Task:
        """Task-level assignment of a lister, quantity and destination."""
        task = await self.db.get(Task, task_id)
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": str(task_id)})

        task.assigned_lister_id = data.lister_id
        task.quantity = data.quantity
        task.listing_platform_id = data.listing_platform_id
        task.store_id = data.store_id
        task.status = TaskStatus.ASSIGNED.value
        task.assigned_by_id = assigner.id
        task.assigned_at = utcnow()

        await self._validate_references(task)
        await self.db.flush()
        logger.info(f"Task {task_id} assigned to lister {data.lister_id} by {assigner.id}")
        return await self.get_task(task_id)

    async def complete_task(self, task_id: uuid.UUID, completed_quantity: Optional[int], lister: User) -> Task:
        """
        Lister reports progress on a task assigned to them. The count is
        clamped to [0, quantity]; reaching quantity completes the task.
        """
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.assigned_lister_id == lister.id)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task not found", details={"task_id": str(task_id)})
        if task.quantity is None:
            raise ValidationError("Task has no quantity to complete", details={"task_id": str(task_id)})

        requested = task.quantity if completed_quantity is None else completed_quantity
        task.completed_quantity = max(0, min(requested, task.quantity))

        if task.completed_quantity >= task.quantity:
            if task.advance_status(TaskStatus.COMPLETED):
                task.completed_at = utcnow()
        else:
            task.advance_status(TaskStatus.ASSIGNED)

        await self.db.flush()
        logger.info(f"Task {task_id} progress {task.completed_quantity}/{task.quantity} by {lister.id}")
        return await self.get_task(task_id)

    async def delete_task(self, task_id: uuid.UUID) -> Dict[str, int]:
        """Delete a task with its assignments, listing completions and compatibility work."""
        exists = await self.db.execute(select(Task.id).where(Task.id == task_id))
        if exists.scalar_one_or_none() is None:
            raise NotFoundError("Task not found", details={"task_id": str(task_id)})

        assignment_ids = (
            await self.db.execute(select(Assignment.id).where(Assignment.task_id == task_id))
        ).scalars().all()
        counts = await purge_assignments(self.db, assignment_ids, task_id=task_id)

        await self.db.execute(
            delete(Task).where(Task.id == task_id).execution_options(synchronize_session=False)
        )
        logger.info(
            f"Deleted task {task_id} with {counts['assignments']} assignments, "
            f"{counts['completions']} completions, "
            f"{counts['compatibility_assignments']} compatibility assignments"
        )
        return counts
