"""
Reporting over assignments and tasks.

Rows are fetched with typed joins and grouped here rather than in SQL so
the day bucket can follow the reporting timezone on every backend. Nothing
in this module writes.
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from listingops.core.dates import date_filter_bounds, day_start, day_end, reporting_day
from listingops.models.assignment import Assignment, AssignmentRangeQuantity
from listingops.models.catalog import Platform, PlatformType, Store, Category, Subcategory, Range
from listingops.models.task import Task, TaskStatus
from listingops.models.user import User


logger = logging.getLogger(__name__)


# ==================== Grouping Helpers ====================

def _names(values) -> List[str]:
    return [v.strip() for v in (values or "").split(",") if v.strip()]


def _sort_text(value: Optional[str]) -> str:
    return value or ""


def _distinct(values) -> int:
    """Distinct non-null values."""
    return len({v for v in values if v is not None})


class AnalyticsService:
    """Read-only summaries for the admin dashboards."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== ASSIGNMENT ANALYTICS ====================

    async def assignment_admin_lister(self) -> List[Dict[str, Any]]:
        """
        Per (scheduled day, sharing admin, lister): how many assignments, how
        many units, and how much of it is done.
        """
        admin = aliased(User)
        lister = aliased(User)
        stmt = (
            select(
                Assignment.scheduled_date,
                Assignment.created_by_id,
                Assignment.lister_id,
                Assignment.quantity,
                Assignment.completed_quantity,
                admin.username.label("admin_name"),
                lister.username.label("lister_name"),
            )
            .outerjoin(admin, admin.id == Assignment.created_by_id)
            .outerjoin(lister, lister.id == Assignment.lister_id)
        )
        rows = (await self.db.execute(stmt)).all()

        groups: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            key = (reporting_day(row.scheduled_date), row.created_by_id, row.lister_id)
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "date": key[0],
                    "admin_id": row.created_by_id,
                    "lister_id": row.lister_id,
                    "admin_name": row.admin_name or "Unassigned",
                    "lister_name": row.lister_name or "Unknown",
                    "tasks_count": 0,
                    "quantity_total": 0,
                    "completed_count": 0,
                    "completed_qty": 0,
                }
            completed = row.completed_quantity or 0
            group["tasks_count"] += 1
            group["quantity_total"] += row.quantity
            group["completed_count"] += 1 if completed >= row.quantity else 0
            group["completed_qty"] += completed

        result = sorted(groups.values(), key=lambda g: (g["admin_name"], g["lister_name"]))
        result.sort(key=lambda g: g["date"], reverse=True)
        return result

    async def listings_summary(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        date_mode: Optional[str] = None,
        date_single: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Per (scheduled day, platform, store) totals.

        The join against range entries yields one row per range; each
        assignment is folded back to a single unit before its quantity is
        summed.
        """
        filters = []
        if platform_id:
            filters.append(Assignment.listing_platform_id == platform_id)
        if store_id:
            filters.append(Assignment.store_id == store_id)
        start, end = date_filter_bounds(date_mode, date_single, date_from, date_to)
        if start:
            filters.append(Assignment.scheduled_date >= start)
        if end:
            filters.append(Assignment.scheduled_date < end)

        stmt = (
            select(
                Assignment.id,
                Assignment.scheduled_date,
                Assignment.listing_platform_id,
                Assignment.store_id,
                Assignment.lister_id,
                Assignment.quantity,
                Assignment.completed_quantity,
                Task.category_id,
                AssignmentRangeQuantity.range_id,
                Platform.name.label("platform_name"),
                Store.name.label("store_name"),
            )
            .join(Task, Task.id == Assignment.task_id)
            .outerjoin(AssignmentRangeQuantity, AssignmentRangeQuantity.assignment_id == Assignment.id)
            .outerjoin(Platform, Platform.id == Assignment.listing_platform_id)
            .outerjoin(Store, Store.id == Assignment.store_id)
        )
        if filters:
            stmt = stmt.where(and_(*filters))
        rows = (await self.db.execute(stmt)).all()

        # Fold range rows back into one record per assignment
        assignments: Dict[uuid.UUID, Dict[str, Any]] = {}
        for row in rows:
            record = assignments.get(row.id)
            if record is None:
                record = assignments[row.id] = {"row": row, "ranges": set()}
            if row.range_id is not None:
                record["ranges"].add(row.range_id)

        groups: Dict[tuple, Dict[str, Any]] = {}
        for assignment_id, record in assignments.items():
            row = record["row"]
            key = (reporting_day(row.scheduled_date), row.listing_platform_id, row.store_id)
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "date": key[0],
                    "platform_id": row.listing_platform_id,
                    "platform": row.platform_name,
                    "store_id": row.store_id,
                    "store": row.store_name,
                    "total_quantity": 0,
                    "completed_qty": 0,
                    "assignments": set(),
                    "listers": set(),
                    "categories": set(),
                    "ranges": set(),
                }
            group["total_quantity"] += row.quantity
            group["completed_qty"] += row.completed_quantity or 0
            group["assignments"].add(assignment_id)
            group["listers"].add(row.lister_id)
            group["categories"].add(row.category_id)
            group["ranges"].update(record["ranges"])

        result = []
        for group in groups.values():
            result.append({
                "date": group["date"],
                "platform_id": group["platform_id"],
                "platform": group["platform"],
                "store_id": group["store_id"],
                "store": group["store"],
                "total_quantity": group["total_quantity"],
                "assignments_count": len(group["assignments"]),
                "completed_qty": group["completed_qty"],
                "num_listers": _distinct(group["listers"]),
                "num_categories": _distinct(group["categories"]),
                "num_ranges": _distinct(group["ranges"]),
            })
        result.sort(key=lambda r: (_sort_text(r["platform"]), _sort_text(r["store"])))
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    async def stock_ledger(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        category_id: Optional[uuid.UUID] = None,
        subcategory_id: Optional[uuid.UUID] = None,
        category: Optional[str] = None,
        range_names: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Assigned vs. completed units per (platform, store, category,
        subcategory, range).

        totalAssigned sums each contributing assignment's quantity once;
        totalCompleted sums the range entries.
        """
        filters = [AssignmentRangeQuantity.quantity > 0]
        if platform_id:
            filters.append(Assignment.listing_platform_id == platform_id)
        if store_id:
            filters.append(Assignment.store_id == store_id)
        if category_id:
            filters.append(Task.category_id == category_id)
        if subcategory_id:
            filters.append(Task.subcategory_id == subcategory_id)
        names = _names(category)
        if names:
            filters.append(Category.name.in_(names))
        names = _names(range_names)
        if names:
            filters.append(Range.name.in_(names))

        stmt = (
            select(
                Assignment.id.label("assignment_id"),
                Assignment.quantity.label("assignment_quantity"),
                Assignment.listing_platform_id,
                Assignment.store_id,
                Task.category_id,
                Task.subcategory_id,
                AssignmentRangeQuantity.range_id,
                AssignmentRangeQuantity.quantity.label("range_quantity"),
                Platform.name.label("platform_name"),
                Store.name.label("store_name"),
                Category.name.label("category_name"),
                Subcategory.name.label("subcategory_name"),
                Range.name.label("range_name"),
            )
            .join(Task, Task.id == Assignment.task_id)
            .join(AssignmentRangeQuantity, AssignmentRangeQuantity.assignment_id == Assignment.id)
            .outerjoin(Platform, Platform.id == Assignment.listing_platform_id)
            .outerjoin(Store, Store.id == Assignment.store_id)
            .outerjoin(Category, Category.id == Task.category_id)
            .outerjoin(Subcategory, Subcategory.id == Task.subcategory_id)
            .outerjoin(Range, Range.id == AssignmentRangeQuantity.range_id)
            .where(and_(*filters))
        )
        rows = (await self.db.execute(stmt)).all()

        groups: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            key = (row.listing_platform_id, row.store_id, row.category_id, row.subcategory_id, row.range_id)
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "platform_id": row.listing_platform_id,
                    "platform": row.platform_name,
                    "store_id": row.store_id,
                    "store": row.store_name,
                    "category_id": row.category_id,
                    "category": row.category_name,
                    "subcategory_id": row.subcategory_id,
                    "subcategory": row.subcategory_name,
                    "range_id": row.range_id,
                    "range": row.range_name,
                    "assigned_by_assignment": {},
                    "total_completed": 0,
                }
            group["assigned_by_assignment"][row.assignment_id] = row.assignment_quantity
            group["total_completed"] += row.range_quantity

        result = []
        for group in groups.values():
            total_assigned = sum(group.pop("assigned_by_assignment").values())
            group["total_assigned"] = total_assigned
            group["pending"] = max(0, total_assigned - group["total_completed"])
            result.append(group)

        result.sort(key=lambda r: tuple(
            _sort_text(r[field]) for field in ("platform", "store", "category", "subcategory", "range")
        ))
        return result

    # ==================== TASK ANALYTICS ====================

    async def _task_rows(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        lister_id: Optional[uuid.UUID] = None,
        date: Optional[str] = None,
    ):
        filters = []
        if platform_id:
            filters.append(Task.listing_platform_id == platform_id)
        if store_id:
            filters.append(Task.store_id == store_id)
        if lister_id:
            filters.append(Task.assigned_lister_id == lister_id)
        if date:
            filters.append(Task.date >= day_start(date))
            filters.append(Task.date < day_end(date))

        admin = aliased(User)
        lister = aliased(User)
        stmt = (
            select(
                Task.id,
                Task.date,
                Task.quantity,
                Task.completed_quantity,
                Task.status,
                Task.assigned_lister_id,
                Task.assigned_by_id,
                Task.listing_platform_id,
                Task.store_id,
                Task.category_id,
                Task.subcategory_id,
                Task.range_id,
                admin.username.label("admin_name"),
                lister.username.label("lister_name"),
                Platform.name.label("platform_name"),
                Store.name.label("store_name"),
            )
            .outerjoin(admin, admin.id == Task.assigned_by_id)
            .outerjoin(lister, lister.id == Task.assigned_lister_id)
            .outerjoin(Platform, Platform.id == Task.listing_platform_id)
            .outerjoin(Store, Store.id == Task.store_id)
        )
        if filters:
            stmt = stmt.where(and_(*filters))
        return (await self.db.execute(stmt)).all()

    async def task_summary(self, **filters) -> Dict[str, Any]:
        rows = await self._task_rows(**filters)
        return {
            "total_listings": sum(row.quantity or 0 for row in rows),
            "completed_qty": sum(row.completed_quantity or 0 for row in rows),
            "num_listers": _distinct(row.assigned_lister_id for row in rows),
            "num_stores": _distinct(row.store_id for row in rows),
            "num_categories": _distinct(row.category_id for row in rows),
            "num_subcategories": _distinct(row.subcategory_id for row in rows),
        }

    async def task_daily(self, **filters) -> List[Dict[str, Any]]:
        rows = await self._task_rows(**filters)
        groups = defaultdict(list)
        for row in rows:
            groups[reporting_day(row.date)].append(row)

        result = [
            {
                "date": day,
                "total_quantity": sum(row.quantity or 0 for row in day_rows),
                "num_listers": _distinct(row.assigned_lister_id for row in day_rows),
                "num_stores": _distinct(row.store_id for row in day_rows),
                "num_categories": _distinct(row.category_id for row in day_rows),
                "num_subcategories": _distinct(row.subcategory_id for row in day_rows),
            }
            for day, day_rows in groups.items()
        ]
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    async def task_admin_lister(self, **filters) -> List[Dict[str, Any]]:
        """Per (task day, assigning admin, lister). completedCount counts tasks with any progress."""
        rows = await self._task_rows(**filters)
        groups = defaultdict(list)
        for row in rows:
            groups[(reporting_day(row.date), row.assigned_by_id, row.assigned_lister_id)].append(row)

        result = []
        for (day, admin_id, lister_id), group_rows in groups.items():
            first = group_rows[0]
            result.append({
                "date": day,
                "admin_id": admin_id,
                "lister_id": lister_id,
                "admin_name": first.admin_name,
                "lister_name": first.lister_name,
                "tasks_count": len(group_rows),
                "quantity_total": sum(row.quantity or 0 for row in group_rows),
                "completed_count": sum(1 for row in group_rows if (row.completed_quantity or 0) > 0),
                "completed_qty": sum(row.completed_quantity or 0 for row in group_rows),
            })
        result.sort(key=lambda r: (_sort_text(r["admin_name"]), _sort_text(r["lister_name"])))
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    async def task_lister_daily(self, **filters) -> List[Dict[str, Any]]:
        """Per (task day, platform, store); completed figures count tasks in completed status."""
        rows = await self._task_rows(**filters)
        groups = defaultdict(list)
        for row in rows:
            groups[(reporting_day(row.date), row.listing_platform_id, row.store_id)].append(row)

        result = []
        for (day, _platform_id, _store_id), group_rows in groups.items():
            first = group_rows[0]
            completed = [row for row in group_rows if row.status == TaskStatus.COMPLETED.value]
            result.append({
                "date": day,
                "platform": first.platform_name,
                "store": first.store_name,
                "tasks_count": len(group_rows),
                "quantity_total": sum(row.quantity or 0 for row in group_rows),
                "completed_count": len(completed),
                "completed_qty": sum(row.quantity or 0 for row in completed),
                "num_categories": _distinct(row.category_id for row in group_rows),
                "num_ranges": _distinct(row.range_id for row in group_rows),
            })
        result.sort(key=lambda r: (_sort_text(r["platform"]), _sort_text(r["store"])))
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    async def task_listings_summary(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
    ) -> List[Dict[str, Any]]:
        """
        Handed-out tasks per (assignment day, listing platform, store).

        Only tasks in assigned or completed status on a platform of type
        listing count; the day is taken from assigned_at, or the task date
        when the task was never assigned through the task itself.
        """
        filters = [
            Task.status.in_([TaskStatus.ASSIGNED.value, TaskStatus.COMPLETED.value]),
            Platform.type == PlatformType.LISTING.value,
        ]
        if platform_id:
            filters.append(Task.listing_platform_id == platform_id)
        if store_id:
            filters.append(Task.store_id == store_id)

        stmt = (
            select(
                Task.date,
                Task.assigned_at,
                Task.quantity,
                Task.assigned_lister_id,
                Task.listing_platform_id,
                Task.store_id,
                Task.category_id,
                Task.subcategory_id,
                Platform.name.label("platform_name"),
                Store.name.label("store_name"),
            )
            .join(Platform, Platform.id == Task.listing_platform_id)
            .outerjoin(Store, Store.id == Task.store_id)
            .where(and_(*filters))
        )
        rows = (await self.db.execute(stmt)).all()

        groups = defaultdict(list)
        for row in rows:
            day = reporting_day(row.assigned_at or row.date)
            groups[(day, row.listing_platform_id, row.store_id)].append(row)

        result = []
        for (day, group_platform_id, group_store_id), group_rows in groups.items():
            first = group_rows[0]
            result.append({
                "date": day,
                "platform_id": group_platform_id,
                "platform": first.platform_name,
                "store_id": group_store_id,
                "store": first.store_name,
                "total_quantity": sum(row.quantity or 0 for row in group_rows),
                "assignments_count": len(group_rows),
                "num_listers": _distinct(row.assigned_lister_id for row in group_rows),
                "num_categories": _distinct(row.category_id for row in group_rows),
                "num_subcategories": _distinct(row.subcategory_id for row in group_rows),
            })
        result.sort(key=lambda r: (_sort_text(r["platform"]), _sort_text(r["store"])))
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    # ==================== STORE & LISTER WORKLOAD ====================

    async def store_wise_summary(self) -> List[Dict[str, Any]]:
        """Every assignment, totalled per (store, scheduled day)."""
        stmt = (
            select(
                Assignment.store_id,
                Assignment.scheduled_date,
                Assignment.quantity,
                Assignment.completed_quantity,
                Store.name.label("store_name"),
            )
            .join(Store, Store.id == Assignment.store_id)
        )
        rows = (await self.db.execute(stmt)).all()

        groups: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            key = (row.store_id, reporting_day(row.scheduled_date))
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "store_id": row.store_id,
                    "store_name": row.store_name,
                    "date": key[1],
                    "total_quantity": 0,
                    "completed_quantity": 0,
                    "assignment_count": 0,
                }
            group["total_quantity"] += row.quantity
            group["completed_quantity"] += row.completed_quantity or 0
            group["assignment_count"] += 1

        result = list(groups.values())
        for group in result:
            group["pending_quantity"] = group["total_quantity"] - group["completed_quantity"]
        result.sort(key=lambda r: r["store_name"])
        result.sort(key=lambda r: r["date"], reverse=True)
        return result

    async def lister_summary(self) -> List[Dict[str, Any]]:
        """Assignments totalled per (lister, scheduled day), with the stores each lister worked."""
        stmt = (
            select(
                Assignment.lister_id,
                Assignment.store_id,
                Assignment.scheduled_date,
                Assignment.quantity,
                Assignment.completed_quantity,
                User.username.label("lister_name"),
                Store.name.label("store_name"),
            )
            .join(User, User.id == Assignment.lister_id)
            .join(Store, Store.id == Assignment.store_id)
        )
        rows = (await self.db.execute(stmt)).all()

        groups: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            key = (row.lister_id, reporting_day(row.scheduled_date))
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "lister_id": row.lister_id,
                    "lister_name": row.lister_name,
                    "date": key[1],
                    "total_quantity": 0,
                    "completed_quantity": 0,
                    "assignment_count": 0,
                    "stores": {},
                }
            group["total_quantity"] += row.quantity
            group["completed_quantity"] += row.completed_quantity or 0
            group["assignment_count"] += 1
            group["stores"].setdefault(row.store_id, row.store_name)

        result = list(groups.values())
        for group in result:
            stores = group.pop("stores")
            group["pending_quantity"] = group["total_quantity"] - group["completed_quantity"]
            group["stores"] = [
                {"store_id": sid, "store_name": name}
                for sid, name in sorted(stores.items(), key=lambda item: item[1])
            ]
            group["store_count"] = len(stores)
        result.sort(key=lambda r: r["lister_name"])
        result.sort(key=lambda r: r["date"], reverse=True)
        return result
