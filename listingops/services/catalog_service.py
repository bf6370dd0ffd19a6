"""Service for reference data: platforms, stores, categories, ranges and users."""
from typing import List, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listingops.core.errors import ConflictError, ValidationError
from listingops.models.catalog import Platform, Store, Category, Subcategory, Range
from listingops.models.user import User
from listingops.schemas.catalog import (
    PlatformCreate,
    StoreCreate,
    CategoryCreate,
    SubcategoryCreate,
    RangeCreate,
    UserCreate,
)


logger = logging.getLogger(__name__)


class CatalogService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require(self, model, object_id: uuid.UUID, label: str):
        obj = await self.db.get(model, object_id)
        if obj is None:
            raise ValidationError(f"{label} not found", details={"id": str(object_id)})
        return obj

    # ==================== PLATFORMS & STORES ====================

    async def list_platforms(self, platform_type: Optional[str] = None) -> List[Platform]:
        stmt = select(Platform).order_by(Platform.name)
        if platform_type:
            stmt = stmt.where(Platform.type == platform_type)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_platform(self, data: PlatformCreate) -> Platform:
        platform = Platform(name=data.name, type=data.type.value)
        self.db.add(platform)
        await self.db.flush()
        logger.info(f"Platform created: {platform.name} ({platform.type})")
        return platform

    async def list_stores(self, platform_id: Optional[uuid.UUID] = None) -> List[Store]:
        stmt = select(Store).options(selectinload(Store.platform)).order_by(Store.name)
        if platform_id:
            stmt = stmt.where(Store.platform_id == platform_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_store(self, data: StoreCreate) -> Store:
        platform = await self._require(Platform, data.platform_id, "Platform")
        store = Store(name=data.name, platform_id=platform.id, platform=platform)
        self.db.add(store)
        await self.db.flush()
        logger.info(f"Store created: {store.name} on {platform.name}")
        return store

    # ==================== CATEGORIES & RANGES ====================

    async def list_categories(self) -> List[Category]:
        stmt = select(Category).order_by(Category.name)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_category(self, data: CategoryCreate) -> Category:
        existing = await self.db.execute(select(Category.id).where(Category.name == data.name))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"Category {data.name} already exists")
        category = Category(name=data.name)
        self.db.add(category)
        await self.db.flush()
        return category

    async def list_subcategories(self, category_id: Optional[uuid.UUID] = None) -> List[Subcategory]:
        stmt = select(Subcategory).order_by(Subcategory.name)
        if category_id:
            stmt = stmt.where(Subcategory.category_id == category_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_subcategory(self, data: SubcategoryCreate) -> Subcategory:
        await self._require(Category, data.category_id, "Category")
        subcategory = Subcategory(name=data.name, category_id=data.category_id)
        self.db.add(subcategory)
        await self.db.flush()
        return subcategory

    async def list_ranges(self, category_id: Optional[uuid.UUID] = None) -> List[Range]:
        stmt = select(Range).order_by(Range.name)
        if category_id:
            stmt = stmt.where(Range.category_id == category_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_range(self, data: RangeCreate) -> Range:
        await self._require(Category, data.category_id, "Category")
        range_obj = Range(name=data.name, category_id=data.category_id, description=data.description)
        self.db.add(range_obj)
        await self.db.flush()
        return range_obj

    # ==================== USERS ====================

    async def list_users(self, role: Optional[str] = None) -> List[User]:
        stmt = select(User).order_by(User.username)
        if role:
            stmt = stmt.where(User.role == role)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create_user(self, data: UserCreate) -> User:
        email = data.email.lower()
        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"User with email {email} already exists")
        user = User(email=email, username=data.username, role=data.role.value, is_active=True)
        self.db.add(user)
        await self.db.flush()
        logger.info(f"User created: {user.username} ({user.role})")
        return user
