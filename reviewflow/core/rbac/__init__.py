"""Role-based access control for the review workflow."""

from .permissions import (
    Resource,
    Action,
    Permission,
    PERMISSION_MATRIX,
    is_valid_permission,
    get_all_permissions,
)
from .checker import PermissionChecker, has_permission, require_permission
from .roles import DEFAULT_ROLES, get_role_permissions

__all__ = [
    "Resource",
    "Action",
    "Permission",
    "PERMISSION_MATRIX",
    "is_valid_permission",
    "get_all_permissions",
    "PermissionChecker",
    "has_permission",
    "require_permission",
    "DEFAULT_ROLES",
    "get_role_permissions",
]
