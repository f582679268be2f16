"""Access policy: may an actor apply a mutation directly, or must it go through approval? No FastAPI."""

from dataclasses import dataclass
from enum import Enum

from app.domain.models.request import DESTRUCTIVE_TYPES, PUBLISHING_TYPES, RequestType
from app.security.rbac import RBACService, Role


class AccessDecision(str, Enum):
    APPLY_DIRECTLY = "APPLY_DIRECTLY"
    CREATE_PENDING_REQUEST = "CREATE_PENDING_REQUEST"
    DENY = "DENY"


@dataclass(frozen=True)
class ProjectFlags:
    """Per-project approval settings the policy reads."""

    require_approval: bool = True
    allow_auto_publish: bool = False


class AccessPolicy:
    """
    Pure decision function over (role, request type, project flags).

    Admins bypass the approval gate for every type. Staff always route destructive
    types through approval; publish/schedule types go direct only when the project
    allows auto-publish or does not require approval. Anyone without the propose
    permission is denied.
    """

    def __init__(self, rbac: RBACService | None = None) -> None:
        self._rbac = rbac or RBACService()

    def decide(
        self,
        role: Role,
        request_type: RequestType,
        flags: ProjectFlags,
    ) -> AccessDecision:
        if not self._rbac.has_permission(role, "propose"):
            return AccessDecision.DENY
        if role == Role.ADMIN:
            return AccessDecision.APPLY_DIRECTLY
        if request_type in DESTRUCTIVE_TYPES:
            return AccessDecision.CREATE_PENDING_REQUEST
        if request_type in PUBLISHING_TYPES:
            if flags.allow_auto_publish or not flags.require_approval:
                return AccessDecision.APPLY_DIRECTLY
            return AccessDecision.CREATE_PENDING_REQUEST
        # A type outside both groups has no staff rule yet; require review.
        return AccessDecision.CREATE_PENDING_REQUEST
