"""Database models for reviewflow."""

from reviewflow.db.models.user import User
from reviewflow.db.models.role import Role
from reviewflow.db.models.review import Review, ReviewComment

__all__ = [
    "User",
    "Role",
    "Review",
    "ReviewComment",
]
