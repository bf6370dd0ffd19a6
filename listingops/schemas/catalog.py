from pydantic import Field, EmailStr

from listingops.models.catalog import PlatformType
from listingops.models.user import UserRole
from listingops.schemas.base import BaseCreateSchema, BaseResponseSchema
from typing import Optional
from datetime import datetime
import uuid


# ==================== REFERENCES (embedded in other responses) ====================

class NamedRef(BaseResponseSchema):
    """Minimal expansion of a referenced platform/store/category/range."""
    id: uuid.UUID
    name: str


class UserBrief(BaseResponseSchema):
    id: uuid.UUID
    username: str
    email: Optional[str] = None


# ==================== PLATFORMS & STORES ====================

class PlatformCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    type: PlatformType = PlatformType.LISTING


class PlatformResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    type: str
    created_at: datetime


class StoreCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    platform_id: uuid.UUID


class StoreResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    platform_id: uuid.UUID
    platform: Optional[NamedRef] = None
    created_at: datetime


# ==================== CATEGORIES, SUBCATEGORIES, RANGES ====================

class CategoryCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    created_at: datetime


class SubcategoryCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: uuid.UUID


class SubcategoryResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    category_id: uuid.UUID
    created_at: datetime


class RangeCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: uuid.UUID
    description: Optional[str] = Field(None, max_length=500)


class RangeResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    category_id: uuid.UUID
    description: Optional[str] = None
    created_at: datetime


# ==================== USERS ====================

class UserCreate(BaseCreateSchema):
    email: EmailStr
    username: str = Field(..., min_length=1, max_length=100)
    role: UserRole


class UserResponse(BaseResponseSchema):
    id: uuid.UUID
    email: str
    username: str
    role: str
    is_active: bool
    created_at: datetime
