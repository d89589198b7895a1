"""Default role definitions.

1. Admin - Full access, including publishing without review
2. Editor - Requests reviews for their documents
3. Reviewer - Handles assigned reviews
4. Viewer - Read-only access to review status
"""

from typing import Dict, List
from .permissions import Resource, Action, Permission


def _build_permissions(*actions: Action) -> List[str]:
    return [str(Permission(Resource.REVIEWS, a)) for a in actions]


ADMIN_PERMISSIONS = [
    "*:*"  # Global wildcard - all permissions
]

EDITOR_PERMISSIONS = _build_permissions(
    Action.READ,
    Action.ASSIGN,
    Action.BULK_ASSIGN,
)

REVIEWER_PERMISSIONS = _build_permissions(
    Action.READ,
    Action.HANDLE,
    Action.APPROVE,
    Action.REJECT,
)

VIEWER_PERMISSIONS = _build_permissions(
    Action.READ,
)


DEFAULT_ROLES: Dict[str, Dict] = {
    "admin": {
        "name": "admin",
        "description": "Full access to the review workflow",
        "permissions": ADMIN_PERMISSIONS,
        "is_system": True,
    },
    "editor": {
        "name": "editor",
        "description": "Requests reviews for documents",
        "permissions": EDITOR_PERMISSIONS,
        "is_system": True,
    },
    "reviewer": {
        "name": "reviewer",
        "description": "Approves or rejects assigned reviews",
        "permissions": REVIEWER_PERMISSIONS,
        "is_system": True,
    },
    "viewer": {
        "name": "viewer",
        "description": "Read-only access to review status",
        "permissions": VIEWER_PERMISSIONS,
        "is_system": True,
    },
}


def get_role_permissions(role_name: str) -> List[str]:
    """Get permissions for a default role by name; unknown roles get none."""
    role = DEFAULT_ROLES.get(role_name.lower())
    return list(role["permissions"]) if role else []
