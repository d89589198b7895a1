"""Field comment subsystem.

Field comments are reviewer notes bound to one named field of the document
under review. They gate the workflow: any field comment blocks approval, and
an unresolved one blocks a re-request. Only the assigned reviewer writes them
and only the requester resolves them.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from reviewflow.db.models import ReviewComment
from reviewflow.db.repositories.comments import CommentRepository
from reviewflow.db.repositories.reviews import ReviewRepository

from .errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from .machine import is_blank
from .states import CommentType, ReviewStatus

logger = logging.getLogger(__name__)


class FieldCommentService:
    """Creates, resolves and removes field comments on reviews."""

    def __init__(self, db: Session):
        self.db = db
        self.reviews = ReviewRepository(db)
        self.comments = CommentRepository(db)

    def add_field_comment(
        self,
        review_id: UUID,
        field_name: str,
        author_id: UUID,
        content: str,
        *,
        locale: Optional[str] = None,
    ) -> ReviewComment:
        """
        Attach a note to ``field_name`` of the reviewed document.

        Raises:
            ValidationError: blank content or field name
            NotFoundError: unknown review (or locale mismatch)
            AuthorizationError: author is not the assigned reviewer
            InvalidStateError: review is not pending
        """
        if is_blank(content):
            raise ValidationError("Field comment content is required")
        if is_blank(field_name):
            raise ValidationError("Field name is required")

        review = self.reviews.get(review_id)
        if review is None or (locale is not None and review.locale != locale):
            raise NotFoundError("Review not found")
        if review.assigned_to_id != author_id:
            raise AuthorizationError("Only the assigned reviewer can add field comments")
        if review.status != ReviewStatus.PENDING.value:
            raise InvalidStateError("Field comments can only be added to pending reviews")

        comment = self.comments.add(
            review,
            CommentType.FIELD_COMMENT,
            author_id,
            content.strip(),
            field_name=field_name.strip(),
        )
        logger.info("Field comment %s added on %s.%s", comment.id, review.id, comment.field_name)
        return comment

    def delete_field_comment(self, comment_id: UUID, caller_id: UUID) -> None:
        """
        Remove a field comment. Only its author may do so, and only while the
        review is still pending.
        """
        comment = self._get_field_comment(comment_id)
        if comment.author_id != caller_id:
            raise AuthorizationError("Only the author can delete this field comment")
        if comment.review.status != ReviewStatus.PENDING.value:
            raise InvalidStateError("Field comments can only be deleted while the review is pending")

        self.comments.delete(comment)
        logger.info("Field comment %s deleted", comment_id)

    def resolve_field_comment(self, comment_id: UUID, caller_id: UUID) -> ReviewComment:
        """Toggle ``resolved``. Only the user who requested the review may do so."""
        comment = self._get_field_comment(comment_id)
        if comment.review.assigned_by_id != caller_id:
            raise AuthorizationError("Only the user who requested the review can resolve field comments")

        comment.resolved = not comment.resolved
        self.db.flush()
        logger.info("Field comment %s resolved=%s", comment_id, comment.resolved)
        return comment

    def list_field_comments(self, review_id: UUID) -> List[ReviewComment]:
        return self.comments.field_comments(review_id)

    def unresolved_count(self, review_id: UUID) -> int:
        return self.comments.count_field_comments(review_id, unresolved_only=True)

    def total_count(self, review_id: UUID) -> int:
        return self.comments.count_field_comments(review_id)

    def _get_field_comment(self, comment_id: UUID) -> ReviewComment:
        comment = self.comments.get(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.comment_type != CommentType.FIELD_COMMENT.value:
            raise InvalidStateError("Only field comments can be changed")
        return comment
