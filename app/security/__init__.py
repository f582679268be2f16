"""Security: RBAC and the approval access policy. No FastAPI."""

from app.security.access_policy import AccessDecision, AccessPolicy, ProjectFlags
from app.security.rbac import RBACService, Role

__all__ = [
    "AccessDecision",
    "AccessPolicy",
    "ProjectFlags",
    "RBACService",
    "Role",
]
