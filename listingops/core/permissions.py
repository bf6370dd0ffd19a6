from typing import Dict, FrozenSet, Iterable, List, Optional
import uuid

from listingops.core.errors import ForbiddenError
from listingops.models.user import User, UserRole


ADMIN_ROLES: FrozenSet[str] = frozenset({
    UserRole.SUPERADMIN.value,
    UserRole.LISTING_ADMIN.value,
})

ALL_ROLES: FrozenSet[str] = frozenset(role.value for role in UserRole)


def _roles(*roles: UserRole) -> FrozenSet[str]:
    return frozenset(role.value for role in roles)


# Operation code -> roles allowed to perform it.
# SUPERADMIN is not listed; it passes every check.
PERMISSIONS: Dict[str, FrozenSet[str]] = {
    # Tasks
    "tasks:create": _roles(UserRole.PRODUCT_ADMIN),
    "tasks:read": ALL_ROLES,
    "tasks:update": _roles(UserRole.PRODUCT_ADMIN, UserRole.LISTING_ADMIN),
    "tasks:assign": _roles(UserRole.LISTING_ADMIN),
    "tasks:complete": _roles(UserRole.LISTER),
    "tasks:delete": _roles(UserRole.PRODUCT_ADMIN, UserRole.LISTING_ADMIN),
    "tasks:analytics": _roles(UserRole.PRODUCT_ADMIN, UserRole.LISTING_ADMIN),
    # Assignments
    "assignments:create": _roles(UserRole.LISTING_ADMIN),
    "assignments:read": _roles(UserRole.LISTING_ADMIN, UserRole.PRODUCT_ADMIN),
    "assignments:delete": _roles(UserRole.LISTING_ADMIN),
    "assignments:complete": _roles(UserRole.LISTING_ADMIN, UserRole.LISTER),
    "assignments:mine": _roles(UserRole.LISTING_ADMIN, UserRole.LISTER),
    "assignments:analytics": _roles(UserRole.LISTING_ADMIN, UserRole.PRODUCT_ADMIN),
    "assignments:workload": _roles(UserRole.LISTING_ADMIN),
    # Listing completions
    "completions:read": _roles(UserRole.LISTING_ADMIN, UserRole.PRODUCT_ADMIN),
    # Catalog
    "catalog:read": ALL_ROLES,
    "catalog:write": _roles(UserRole.PRODUCT_ADMIN),
    "users:manage": frozenset(),
    # Compatibility
    "compatibility:manage": _roles(UserRole.COMPATIBILITY_ADMIN),
    "compatibility:edit": _roles(UserRole.COMPATIBILITY_EDITOR),
}


def allowed_roles(permission_code: str) -> FrozenSet[str]:
    """Roles allowed for an operation (SUPERADMIN always implied)."""
    return PERMISSIONS.get(permission_code, frozenset()) | {UserRole.SUPERADMIN.value}


class PermissionChecker:
    """
    Capability check for the acting user.

    Answers two questions: may this role perform the operation at all, and
    may this user act on a lister-owned resource.
    """

    def __init__(self, user: User):
        self.user = user
        self.role = user.role

    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPERADMIN.value

    def is_admin(self) -> bool:
        """Admins act on any lister's assignments."""
        return self.role in ADMIN_ROLES

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in {role.value for role in roles}

    def has_permission(self, permission_code: str) -> bool:
        """
        Check if user may perform an operation.

        Unknown operation codes are denied for everyone but SUPERADMIN.
        """
        if self.is_super_admin():
            return True
        return self.role in PERMISSIONS.get(permission_code, frozenset())

    def has_any_permission(self, permission_codes: Iterable[str]) -> bool:
        return any(self.has_permission(code) for code in permission_codes)

    def missing_permissions(self, permission_codes: Iterable[str]) -> List[str]:
        return [code for code in permission_codes if not self.has_permission(code)]

    def can_act_for_lister(self, lister_id: Optional[uuid.UUID]) -> bool:
        """Admins always; otherwise only the owning lister."""
        if self.is_admin():
            return True
        return lister_id is not None and str(lister_id) == str(self.user.id)

    def ensure_owner(self, lister_id: Optional[uuid.UUID]) -> None:
        if not self.can_act_for_lister(lister_id):
            raise ForbiddenError(
                "Forbidden",
                details={"reason": "resource belongs to another lister"},
            )
