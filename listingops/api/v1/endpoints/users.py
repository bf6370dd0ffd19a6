from typing import List, Optional

from fastapi import APIRouter, status, Query, Depends

from listingops.api.deps import DB, require_permissions
from listingops.models.user import UserRole
from listingops.schemas.catalog import UserCreate, UserResponse
from listingops.services.catalog_service import CatalogService


router = APIRouter(tags=["Users"])


@router.get(
    "",
    response_model=List[UserResponse],
    dependencies=[Depends(require_permissions("users:manage"))]
)
async def list_users(
    db: DB,
    role: Optional[UserRole] = Query(None),
):
    service = CatalogService(db)
    users = await service.list_users(role.value if role else None)
    return [UserResponse.model_validate(u) for u in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions("users:manage"))]
)
async def create_user(data: UserCreate, db: DB):
    """Register a principal. Tokens are issued elsewhere; only the role is stored here."""
    service = CatalogService(db)
    user = await service.create_user(data)
    return UserResponse.model_validate(user)
