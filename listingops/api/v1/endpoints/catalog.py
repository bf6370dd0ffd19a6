from typing import List, Optional
import uuid

from fastapi import APIRouter, status, Query, Depends

from listingops.api.deps import DB, require_permissions
from listingops.models.catalog import PlatformType
from listingops.schemas.catalog import (
    PlatformCreate,
    PlatformResponse,
    StoreCreate,
    StoreResponse,
    CategoryCreate,
    CategoryResponse,
    SubcategoryCreate,
    SubcategoryResponse,
    RangeCreate,
    RangeResponse,
)
from listingops.services.catalog_service import CatalogService


router = APIRouter()


# ==================== PLATFORMS ====================

@router.get(
    "/platforms",
    response_model=List[PlatformResponse],
    dependencies=[Depends(require_permissions("catalog:read"))]
)
async def list_platforms(
    db: DB,
    platform_type: Optional[PlatformType] = Query(None, alias="type"),
):
    service = CatalogService(db)
    platforms = await service.list_platforms(platform_type.value if platform_type else None)
    return [PlatformResponse.model_validate(p) for p in platforms]


@router.post(
    "/platforms",
    response_model=PlatformResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("catalog:write"))]
)
async def create_platform(data: PlatformCreate, db: DB):
    service = CatalogService(db)
    platform = await service.create_platform(data)
    return PlatformResponse.model_validate(platform)


# ==================== STORES ====================

@router.get(
    "/stores",
    response_model=List[StoreResponse],
    dependencies=[Depends(require_permissions("catalog:read"))]
)
async def list_stores(
    db: DB,
    platform_id: Optional[uuid.UUID] = Query(None, alias="platformId"),
):
    service = CatalogService(db)
    stores = await service.list_stores(platform_id)
    return [StoreResponse.model_validate(s) for s in stores]


@router.post(
    "/stores",
    response_model=StoreResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("catalog:write"))]
)
async def create_store(data: StoreCreate, db: DB):
    service = CatalogService(db)
    store = await service.create_store(data)
    return StoreResponse.model_validate(store)


# ==================== CATEGORIES ====================

@router.get(
    "/categories",
    response_model=List[CategoryResponse],
    dependencies=[Depends(require_permissions("catalog:read"))]
)
async def list_categories(db: DB):
    service = CatalogService(db)
    categories = await service.list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("catalog:write"))]
)
async def create_category(data: CategoryCreate, db: DB):
    service = CatalogService(db)
    category = await service.create_category(data)
    return CategoryResponse.model_validate(category)


@router.get(
    "/subcategories",
    response_model=List[SubcategoryResponse],
    dependencies=[Depends(require_permissions("catalog:read"))]
)
async def list_subcategories(
    db: DB,
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryId"),
):
    service = CatalogService(db)
    subcategories = await service.list_subcategories(category_id)
    return [SubcategoryResponse.model_validate(s) for s in subcategories]


@router.post(
    "/subcategories",
    response_model=SubcategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("catalog:write"))]
)
async def create_subcategory(data: SubcategoryCreate, db: DB):
    service = CatalogService(db)
    subcategory = await service.create_subcategory(data)
    return SubcategoryResponse.model_validate(subcategory)


# ==================== RANGES ====================

@router.get(
    "/ranges",
    response_model=List[RangeResponse],
    dependencies=[Depends(require_permissions("catalog:read"))]
)
async def list_ranges(
    db: DB,
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryId"),
):
    service = CatalogService(db)
    ranges = await service.list_ranges(category_id)
    return [RangeResponse.model_validate(r) for r in ranges]


@router.post(
    "/ranges",
    response_model=RangeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("catalog:write"))]
)
async def create_range(data: RangeCreate, db: DB):
    service = CatalogService(db)
    range_obj = await service.create_range(data)
    return RangeResponse.model_validate(range_obj)
