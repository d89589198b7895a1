"""Comment store adapter for review annotations."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from reviewflow.db.models import Review, ReviewComment

# Stored value of CommentType.FIELD_COMMENT
FIELD_COMMENT = "field-comment"


class CommentRepository:
    """Persists comments attached to reviews."""

    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        review: Review,
        comment_type,
        author_id: UUID,
        content: str,
        *,
        field_name: Optional[str] = None,
    ) -> ReviewComment:
        """Append a comment; ``comment_type`` is a ``CommentType`` or its value."""
        comment = ReviewComment(
            review=review,
            content=content,
            comment_type=getattr(comment_type, "value", comment_type),
            author_id=author_id,
            field_name=field_name,
            resolved=False,
        )
        self.db.add(comment)
        self.db.flush()
        return comment

    def get(self, comment_id: UUID) -> Optional[ReviewComment]:
        return self.db.query(ReviewComment).filter(ReviewComment.id == comment_id).first()

    def delete(self, comment: ReviewComment) -> None:
        review = comment.review
        if review is not None and comment in review.comments:
            review.comments.remove(comment)
        self.db.delete(comment)
        self.db.flush()

    def field_comments(self, review_id: UUID) -> List[ReviewComment]:
        return (
            self.db.query(ReviewComment)
            .filter(
                and_(
                    ReviewComment.review_id == review_id,
                    ReviewComment.comment_type == FIELD_COMMENT,
                )
            )
            .order_by(ReviewComment.created_at.asc())
            .all()
        )

    def count_field_comments(self, review_id: UUID, *, unresolved_only: bool = False) -> int:
        query = self.db.query(func.count(ReviewComment.id)).filter(
            and_(
                ReviewComment.review_id == review_id,
                ReviewComment.comment_type == FIELD_COMMENT,
            )
        )
        if unresolved_only:
            query = query.filter(ReviewComment.resolved.is_(False))
        return query.scalar()

    def purge_field_comments(self, review: Review) -> int:
        """Delete every field comment on ``review``; returns how many were removed."""
        doomed = [c for c in review.comments if c.comment_type == FIELD_COMMENT]
        for comment in doomed:
            review.comments.remove(comment)
            self.db.delete(comment)
        self.db.flush()
        return len(doomed)
