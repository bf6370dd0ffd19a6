"""Read side of the listing completion snapshots kept by reconciliation."""
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listingops.core.dates import day_start, day_end, reporting_day
from listingops.models.catalog import Platform, Store, Category, Subcategory, Range
from listingops.models.listing_completion import ListingCompletion, ListingCompletionRange


COMPLETION_LOAD = (
    selectinload(ListingCompletion.lister),
    selectinload(ListingCompletion.listing_platform),
    selectinload(ListingCompletion.store),
    selectinload(ListingCompletion.category),
    selectinload(ListingCompletion.subcategory),
    selectinload(ListingCompletion.range_completions).selectinload(ListingCompletionRange.range),
)


def _filters(
    platform_id: Optional[uuid.UUID],
    store_id: Optional[uuid.UUID],
    marketplace: Optional[str],
    lister_id: Optional[uuid.UUID],
    start_date: Optional[str],
    end_date: Optional[str],
) -> list:
    filters = []
    if platform_id:
        filters.append(ListingCompletion.listing_platform_id == platform_id)
    if store_id:
        filters.append(ListingCompletion.store_id == store_id)
    if marketplace:
        filters.append(ListingCompletion.marketplace == marketplace)
    if lister_id:
        filters.append(ListingCompletion.lister_id == lister_id)
    # Whole reporting days, both ends inclusive
    if start_date:
        filters.append(ListingCompletion.date >= day_start(start_date))
    if end_date:
        filters.append(ListingCompletion.date < day_end(end_date))
    return filters


class ListingCompletionService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_completions(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        marketplace: Optional[str] = None,
        lister_id: Optional[uuid.UUID] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[ListingCompletion]:
        """Completion history, newest first."""
        stmt = select(ListingCompletion).options(*COMPLETION_LOAD).order_by(ListingCompletion.date.desc())
        filters = _filters(platform_id, store_id, marketplace, lister_id, start_date, end_date)
        if filters:
            stmt = stmt.where(and_(*filters))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def listing_sheet(
        self,
        platform_id: Optional[uuid.UUID] = None,
        store_id: Optional[uuid.UUID] = None,
        marketplace: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Units listed per (day, platform, store, marketplace, category,
        subcategory, range), summed over range completions.
        """
        stmt = (
            select(
                ListingCompletion.date,
                ListingCompletion.listing_platform_id,
                ListingCompletion.store_id,
                ListingCompletion.marketplace,
                ListingCompletion.category_id,
                ListingCompletion.subcategory_id,
                ListingCompletionRange.range_id,
                ListingCompletionRange.quantity,
                Platform.name.label("platform_name"),
                Store.name.label("store_name"),
                Category.name.label("category_name"),
                Subcategory.name.label("subcategory_name"),
                Range.name.label("range_name"),
            )
            .join(ListingCompletionRange, ListingCompletionRange.completion_id == ListingCompletion.id)
            .outerjoin(Platform, Platform.id == ListingCompletion.listing_platform_id)
            .outerjoin(Store, Store.id == ListingCompletion.store_id)
            .outerjoin(Category, Category.id == ListingCompletion.category_id)
            .outerjoin(Subcategory, Subcategory.id == ListingCompletion.subcategory_id)
            .outerjoin(Range, Range.id == ListingCompletionRange.range_id)
        )
        filters = _filters(platform_id, store_id, marketplace, None, start_date, end_date)
        if filters:
            stmt = stmt.where(and_(*filters))
        rows = (await self.db.execute(stmt)).all()

        cells: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            key = (
                reporting_day(row.date),
                row.listing_platform_id,
                row.store_id,
                row.marketplace,
                row.category_id,
                row.subcategory_id,
                row.range_id,
            )
            cell = cells.get(key)
            if cell is None:
                cell = cells[key] = {
                    "date": key[0],
                    "platform": row.platform_name or "Unknown",
                    "store": row.store_name or "Unknown",
                    "marketplace": row.marketplace,
                    "category": row.category_name or "Unknown",
                    "subcategory": row.subcategory_name or "Unknown",
                    "range": row.range_name or "Unknown",
                    "quantity": 0,
                }
            cell["quantity"] += row.quantity

        result = sorted(cells.values(), key=lambda c: (
            c["marketplace"], c["platform"], c["store"], c["category"], c["subcategory"], c["range"]
        ))
        result.sort(key=lambda c: c["date"], reverse=True)
        return result
