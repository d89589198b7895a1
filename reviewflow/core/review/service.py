"""Review service for managing document review workflows.

Provides the high-level API around the review state machine, including
persistence of reviews and their comment trail, the pending-uniqueness
invariant, and the task-center projections.

The service only flushes. Callers own the transaction: commit on success,
roll back on any raised error so that a transition and its side effects
(comments written, field comments purged) land together or not at all.
"""

import logging
from typing import Optional, Dict, Any, List, Iterable
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reviewflow.core.config import WorkflowConfig
from reviewflow.db.models import Review, User
from reviewflow.db.repositories.comments import CommentRepository
from reviewflow.db.repositories.reviews import ReviewRepository

from .errors import (
    BlockedError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ReviewWorkflowError,
    ValidationError,
)
from .field_comments import FieldCommentService
from .machine import ReviewStateMachine, is_blank
from .states import CommentType, OPEN_STATES, ReviewAction, ReviewStatus

logger = logging.getLogger(__name__)


class ReviewService:
    """
    High-level service for review requests.

    Handles:
    - Assigning reviews (single, per locale, bulk)
    - Approve / reject / re-request transitions with their side effects
    - Looking up the current review for a document
    - Task-center listings
    """

    def __init__(self, db: Session, config: Optional[WorkflowConfig] = None):
        """
        Args:
            db: Database session
            config: Workflow options; defaults apply when omitted
        """
        self.db = db
        self.config = config or WorkflowConfig()
        self.reviews = ReviewRepository(db)
        self.comments = CommentRepository(db)
        self.field_comments = FieldCommentService(db)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign(
        self,
        content_type: str,
        document_id: str,
        locale: str,
        reviewer_id: Optional[UUID],
        requester_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Review:
        """
        Create a pending review for a localized document.

        Raises:
            ValidationError: missing identity or document key, unknown
                reviewer, or content type outside the workflow allow-list
            ConflictError: a pending review already exists for the key
        """
        if reviewer_id is None or requester_id is None:
            raise ValidationError("Both the reviewer and the requester are required")
        if is_blank(content_type) or is_blank(document_id) or is_blank(locale):
            raise ValidationError("Content type, document id and locale are required")
        if not self.config.applies_to(content_type):
            raise ValidationError(f"Review workflow is not enabled for {content_type}")
        if self.db.get(User, reviewer_id) is None:
            raise ValidationError("Assigned reviewer does not exist")

        self._ensure_no_pending(content_type, document_id, locale)

        review = Review(
            assigned_content_type=content_type,
            assigned_document_id=document_id,
            locale=locale,
            status=ReviewStatus.PENDING.value,
            assigned_to_id=reviewer_id,
            assigned_by_id=requester_id,
        )
        self._insert_pending(review)

        if not is_blank(note):
            self.comments.add(review, CommentType.ASSIGNMENT, requester_id, note.strip())

        logger.info(
            "Review %s assigned for %s:%s@%s to %s",
            review.id, content_type, document_id, locale, reviewer_id,
        )
        return self.reviews.get(review.id)

    def assign_multi_locale(
        self,
        content_type: str,
        document_id: str,
        locales: Iterable[str],
        reviewer_id: Optional[UUID],
        requester_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Assign one review per locale. Locales are independent keys, so a
        failure on one is reported and the others still go through.

        Returns:
            ``{"success": [locale, ...], "failed": [{"locale", "error"}, ...]}``
        """
        results: Dict[str, Any] = {"success": [], "failed": []}

        for locale in dict.fromkeys(locales):
            try:
                self.assign(content_type, document_id, locale, reviewer_id, requester_id, note)
                results["success"].append(locale)
            except ReviewWorkflowError as e:
                results["failed"].append({"locale": locale, "error": e.message})

        return results

    def bulk_assign(
        self,
        content_type: str,
        documents: Iterable[Dict[str, Optional[str]]],
        reviewer_id: Optional[UUID],
        requester_id: Optional[UUID],
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Assign reviews for many documents of one content type.

        Each entry is ``{"document_id": ..., "locale": ...}``; a missing locale
        falls back to the configured default.

        Returns:
            ``{"success": [document_id, ...], "failed": [{"document_id", "locale", "error"}, ...]}``
        """
        results: Dict[str, Any] = {"success": [], "failed": []}

        for doc in documents:
            document_id = doc.get("document_id")
            locale = doc.get("locale") or self.config.default_locale
            try:
                self.assign(content_type, document_id, locale, reviewer_id, requester_id, note)
                results["success"].append(document_id)
            except ReviewWorkflowError as e:
                results["failed"].append({
                    "document_id": document_id,
                    "locale": locale,
                    "error": e.message,
                })

        return results

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def approve(
        self,
        review_id: UUID,
        locale: str,
        reviewer_id: UUID,
        note: Optional[str] = None,
    ) -> Review:
        """
        Approve a pending review.

        Any field comment on the review blocks approval (resolved or not, unless
        configured otherwise). On success every field comment is purged.
        """
        review = self._get_for_update(review_id, locale)
        record = self._machine(review).transition(
            ReviewAction.APPROVE, user_id=reviewer_id, comment=note
        )

        if self.config.approval_blocks_on_resolved_comments:
            blocking = self.field_comments.total_count(review.id)
        else:
            blocking = self.field_comments.unresolved_count(review.id)
        if blocking:
            raise BlockedError(
                f"Cannot approve: {blocking} field comment(s) must be removed first"
            )

        self._apply(review, record)
        if not is_blank(note):
            self.comments.add(review, CommentType.APPROVAL, reviewer_id, note.strip())
        purged = self.comments.purge_field_comments(review)

        logger.info("Review %s approved by %s (%d field comments purged)", review.id, reviewer_id, purged)
        return review

    def reject(self, review_id: UUID, locale: str, reviewer_id: UUID, reason: Optional[str]) -> Review:
        """Reject a pending review. Field comments stay as context for the requester."""
        review = self._get_for_update(review_id, locale)
        record = self._machine(review).transition(
            ReviewAction.REJECT, user_id=reviewer_id, comment=reason
        )

        self._apply(review, record)
        self.comments.add(review, CommentType.REJECTION, reviewer_id, reason.strip())

        logger.info("Review %s rejected by %s", review.id, reviewer_id)
        return review

    def re_request(
        self, review_id: UUID, locale: str, requester_id: UUID, comment: Optional[str]
    ) -> Review:
        """Send a rejected review back to the reviewer once field comments are resolved."""
        review = self._get_for_update(review_id, locale)
        record = self._machine(review).transition(
            ReviewAction.RE_REQUEST, user_id=requester_id, comment=comment
        )

        unresolved = self.field_comments.unresolved_count(review.id)
        if unresolved:
            raise BlockedError(
                f"Cannot re-request: {unresolved} field comment(s) are still unresolved"
            )
        current = self.reviews.latest_for_key(
            review.assigned_content_type, review.assigned_document_id, review.locale
        )
        if current is not None and current.id != review.id:
            raise InvalidStateError("Only the current review of a document can be re-requested")

        self._apply(review, record)
        self._flush_pending(review)
        self.comments.add(review, CommentType.RE_REQUEST, requester_id, comment.strip())

        logger.info("Review %s re-requested by %s", review.id, requester_id)
        return review

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_review(self, review_id: UUID) -> Review:
        review = self.reviews.get(review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    def get_current(self, content_type: str, document_id: str, locale: str) -> Optional[Review]:
        """Most recently created review for the key, or None."""
        return self.reviews.latest_for_key(content_type, document_id, locale)

    def list_pending(self, reviewer_id: UUID) -> List[Review]:
        return self.reviews.list_for_reviewer(reviewer_id, ReviewStatus.PENDING.value)

    def list_rejected(self, reviewer_id: UUID) -> List[Review]:
        return self.reviews.list_for_reviewer(reviewer_id, ReviewStatus.REJECTED.value)

    def list_assigned_by(self, requester_id: UUID) -> List[Review]:
        return self.reviews.list_for_requester(requester_id, [s.value for s in OPEN_STATES])

    def task_count(self, user_id: UUID) -> int:
        """Reviews waiting on ``user_id``: assigned to them, or rejected back to them."""
        return (
            self.reviews.count_for_reviewer(user_id, ReviewStatus.PENDING.value)
            + self.reviews.count_for_requester(user_id, ReviewStatus.REJECTED.value)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_for_update(self, review_id: UUID, locale: str) -> Review:
        review = self.reviews.get(review_id, for_update=True)
        if review is None or review.locale != locale:
            raise NotFoundError("Review not found")
        return review

    def _machine(self, review: Review) -> ReviewStateMachine:
        return ReviewStateMachine(
            review.id,
            ReviewStatus(review.status),
            assigned_to=review.assigned_to_id,
            assigned_by=review.assigned_by_id,
        )

    def _apply(self, review: Review, record: Dict[str, Any]) -> None:
        review.status = record["to_state"].value
        review.reviewed_at = record["reviewed_at"]

    def _ensure_no_pending(self, content_type: str, document_id: str, locale: str) -> None:
        current = self.reviews.latest_for_key(content_type, document_id, locale)
        if current is not None and current.status == ReviewStatus.PENDING.value:
            raise ConflictError("A pending review already exists for this document and locale")

    def _insert_pending(self, review: Review) -> None:
        # A concurrent assign may win between the check and the insert; the
        # partial unique index turns that into an IntegrityError.
        try:
            with self.db.begin_nested():
                self.db.add(review)
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                "A pending review already exists for this document and locale"
            ) from e

    def _flush_pending(self, review: Review) -> None:
        try:
            with self.db.begin_nested():
                self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                "A pending review already exists for this document and locale"
            ) from e


def latest_rejection_reason(review: Review) -> Optional[str]:
    """Content of the most recent rejection comment on ``review``."""
    rejections = [
        c for c in review.comments if c.comment_type == CommentType.REJECTION.value
    ]
    if not rejections:
        return None
    return max(rejections, key=lambda c: c.created_at).content
