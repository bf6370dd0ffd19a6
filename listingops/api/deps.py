from typing import Annotated, Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from listingops.database import get_db
from listingops.core.errors import UnauthorizedError, ForbiddenError
from listingops.core.security import verify_access_token
from listingops.core.permissions import PermissionChecker
from listingops.models.user import User


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme. auto_error is off so a missing header is a
# 401 (no principal), not FastAPI's default 403.
security = HTTPBearer(auto_error=False)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> User:
    """
    Dependency to get the current authenticated user.
    Validates the bearer token and loads the user; the stored role is authoritative.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Unauthorized")

    user_id = verify_access_token(credentials.credentials)
    if user_id is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise UnauthorizedError("Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning(f"User {user_id} from token not found")
        raise UnauthorizedError("Invalid token")

    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")

    return user


async def get_permission_checker(
    user: Annotated[User, Depends(get_current_user)],
) -> PermissionChecker:
    """Get a PermissionChecker instance for the current user."""
    return PermissionChecker(user)


def require_permissions(*required_permissions: str):
    """
    Dependency factory to require specific permissions.

    Usage:
        @router.post("", dependencies=[Depends(require_permissions("tasks:create"))])
        async def create_task():
            ...
    """
    async def permission_dependency(
        permission_checker: Annotated[PermissionChecker, Depends(get_permission_checker)]
    ):
        missing = permission_checker.missing_permissions(required_permissions)
        if missing:
            logger.warning(
                f"Permission denied for user {permission_checker.user.id} "
                f"(role={permission_checker.role}): {missing}"
            )
            raise ForbiddenError("Forbidden", details={"required": missing})
        return True

    return permission_dependency


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Permissions = Annotated[PermissionChecker, Depends(get_permission_checker)]
