"""
Base Schema Classes for Pydantic Models

The wire format is camelCase (taskId, rangeQuantities, completedAt); Python
code uses snake_case. Every schema inherits one of these bases so the alias
rule lives in one place.

RULE: All response schemas that read from ORM models MUST inherit from BaseResponseSchema.
"""

from typing import Generic, List, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Features:
    - Enables from_attributes for ORM compatibility
    - camelCase field names in JSON output
    - Allow population by field name or alias

    Usage:
        class StoreResponse(BaseResponseSchema):
            id: UUID
            name: str
            platform_id: UUID   # serialized as "platformId"
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Accepts camelCase keys from the frontend (snake_case also works).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        # Allow extra fields to be ignored (forward compatibility)
        extra='ignore',
    )


class BaseUpdateSchema(BaseCreateSchema):
    """
    Base class for update/patch schemas.

    All fields are optional by default for partial updates; read them with
    model_dump(exclude_unset=True).
    """
    pass


T = TypeVar("T")


class PageResponse(BaseResponseSchema, Generic[T]):
    """Paged list envelope: {items, total, page, limit}."""
    items: List[T]
    total: int
    page: int
    limit: int


