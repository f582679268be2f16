"""Role-based access control. No FastAPI."""

from enum import Enum

from app.security.exceptions import AuthorizationError


class Role(Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    VIEWER = "VIEWER"


# Permission matrix:
# Role      Propose  Approve  View
# ADMIN     ✓        ✓        ✓
# STAFF     ✓        ✗        ✓
# VIEWER    ✗        ✗        ✓

_ACTION_PERMISSIONS: dict[tuple[Role, str], bool] = {
    (Role.ADMIN, "propose"): True,
    (Role.ADMIN, "approve"): True,
    (Role.ADMIN, "view"): True,
    (Role.STAFF, "propose"): True,
    (Role.STAFF, "approve"): False,
    (Role.STAFF, "view"): True,
    (Role.VIEWER, "propose"): False,
    (Role.VIEWER, "approve"): False,
    (Role.VIEWER, "view"): True,
}


class RBACService:
    """Check permission for role and action. Raise AuthorizationError if invalid."""

    def has_permission(self, role: Role, action: str) -> bool:
        return _ACTION_PERMISSIONS.get((role, action), False)

    def check_permission(self, role: Role, action: str) -> None:
        """Raises AuthorizationError if role does not have permission for action."""
        if not self.has_permission(role, action):
            raise AuthorizationError(
                f"Role {role.value} does not have permission for action '{action}'"
            )
