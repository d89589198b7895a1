"""Repositories over the review tables."""

from reviewflow.db.repositories.reviews import ReviewRepository
from reviewflow.db.repositories.comments import CommentRepository

__all__ = ["ReviewRepository", "CommentRepository"]
