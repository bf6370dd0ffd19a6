import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from listingops.database import Base, UUIDType


class UserRole(str, Enum):
    """Fixed roles. SUPERADMIN is implicitly allowed everywhere."""
    SUPERADMIN = "superadmin"
    PRODUCT_ADMIN = "productadmin"
    LISTING_ADMIN = "listingadmin"
    LISTER = "lister"
    COMPATIBILITY_ADMIN = "compatibilityadmin"
    COMPATIBILITY_EDITOR = "compatibilityeditor"


class User(Base):
    """
    Staff member. Identity and role come from here; tokens only carry the id.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="superadmin, productadmin, listingadmin, lister, compatibilityadmin, compatibilityeditor"
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(username='{self.username}', role='{self.role}')>"
