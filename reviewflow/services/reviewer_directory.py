"""Reviewer directory.

Read-only view over the identity tables: which users may be assigned a review.
"""

from typing import List

from sqlalchemy.orm import Session, selectinload

from reviewflow.core.rbac.checker import has_permission
from reviewflow.core.rbac.permissions import REVIEWS_HANDLE
from reviewflow.db.models import User


class ReviewerDirectory:
    """Lists users eligible to be assigned as reviewers."""

    def __init__(self, db: Session):
        self.db = db

    def list_reviewers(self) -> List[User]:
        """Active users whose role grants ``reviews:handle``, ordered by name."""
        users = (
            self.db.query(User)
            .options(selectinload(User.role))
            .filter(User.is_active.is_(True))
            .order_by(User.name, User.email)
            .all()
        )
        return [u for u in users if has_permission(u, REVIEWS_HANDLE)]
