"""Permission model for the review workflow.

Permission string format: "resource:action"
Examples:
  - reviews:read
  - reviews:assign
  - reviews:publish_without_review
"""

from enum import Enum
from typing import NamedTuple, FrozenSet


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    REVIEWS = "reviews"


class Action(str, Enum):
    """Actions that can be performed on resources."""

    READ = "read"
    ASSIGN = "assign"
    BULK_ASSIGN = "bulk_assign"
    APPROVE = "approve"
    REJECT = "reject"
    HANDLE = "handle"                                  # Eligible to be assigned as reviewer
    PUBLISH_WITHOUT_REVIEW = "publish_without_review"  # Bypass the publish gate


class Permission(NamedTuple):
    """A permission is a combination of resource and action."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse a permission string like 'reviews:read'."""
        parts = perm_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid permission format: {perm_str}")
        return cls(Resource(parts[0]), Action(parts[1]))


# Maps each resource to its valid actions
PERMISSION_MATRIX: dict[Resource, FrozenSet[Action]] = {
    Resource.REVIEWS: frozenset(Action),
}


def _generate_permission_definitions() -> dict[str, Permission]:
    permissions = {}
    for resource, actions in PERMISSION_MATRIX.items():
        for action in actions:
            perm = Permission(resource, action)
            permissions[str(perm)] = perm
    return permissions


# All valid permissions: "resource:action" -> Permission
PERMISSION_DEFINITIONS = _generate_permission_definitions()

REVIEWS_READ = str(Permission(Resource.REVIEWS, Action.READ))
REVIEWS_ASSIGN = str(Permission(Resource.REVIEWS, Action.ASSIGN))
REVIEWS_BULK_ASSIGN = str(Permission(Resource.REVIEWS, Action.BULK_ASSIGN))
REVIEWS_APPROVE = str(Permission(Resource.REVIEWS, Action.APPROVE))
REVIEWS_REJECT = str(Permission(Resource.REVIEWS, Action.REJECT))
REVIEWS_HANDLE = str(Permission(Resource.REVIEWS, Action.HANDLE))
REVIEWS_PUBLISH_WITHOUT_REVIEW = str(Permission(Resource.REVIEWS, Action.PUBLISH_WITHOUT_REVIEW))


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string is valid."""
    return perm_str in PERMISSION_DEFINITIONS


def get_all_permissions() -> list[str]:
    """Get all valid permission strings."""
    return sorted(PERMISSION_DEFINITIONS.keys())
