"""Publish gate.

Decides whether a localized document may be published, based only on the
current review for the key and the document's modification time. Blocking is
a normal return value; only infrastructure failures raise.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from reviewflow.core.config import WorkflowConfig
from reviewflow.core.rbac.checker import has_permission
from reviewflow.core.rbac.permissions import REVIEWS_PUBLISH_WITHOUT_REVIEW
from reviewflow.db.repositories.reviews import ReviewRepository

from .errors import DocumentStoreError, PublishBlockedError
from .states import ReviewStatus

if TYPE_CHECKING:
    from reviewflow.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

PUBLISH_WITHOUT_REVIEW = REVIEWS_PUBLISH_WITHOUT_REVIEW


class PublishVerdict(str, Enum):
    ALLOW = "allow"
    NO_REVIEW = "NO_REVIEW"
    REVIEW_PENDING = "REVIEW_PENDING"
    REVIEW_REJECTED = "REVIEW_REJECTED"
    MODIFIED_AFTER_APPROVAL = "MODIFIED_AFTER_APPROVAL"


BLOCK_REASON_MESSAGES = {
    PublishVerdict.NO_REVIEW: "This document must be reviewed and approved before publishing.",
    PublishVerdict.REVIEW_PENDING: "This document has a pending review. It can be published once the review is approved.",
    PublishVerdict.REVIEW_REJECTED: "The review for this document was rejected. Address the feedback and request a new review before publishing.",
    PublishVerdict.MODIFIED_AFTER_APPROVAL: "This document was modified after it was approved. Request a new review before publishing.",
}


def block_reason_message(verdict: PublishVerdict) -> Optional[str]:
    return BLOCK_REASON_MESSAGES.get(verdict)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PublishGate:
    """Maps the current review and document timestamp to a publish verdict."""

    def __init__(
        self,
        db: Session,
        document_store: "DocumentStore",
        config: Optional[WorkflowConfig] = None,
    ):
        self.reviews = ReviewRepository(db)
        self.document_store = document_store
        self.config = config or WorkflowConfig()

    def evaluate(self, content_type: str, document_id: str, locale: str) -> PublishVerdict:
        """
        Verdict for publishing ``document_id`` in ``locale``.

        Content types outside the workflow allow-list are always allowed.

        Raises:
            DocumentStoreError: the modification time could not be read and the
                gate is configured to fail closed
        """
        if not self.config.applies_to(content_type):
            return PublishVerdict.ALLOW

        review = self.reviews.latest_for_key(content_type, document_id, locale)
        if review is None:
            return PublishVerdict.NO_REVIEW
        if review.status == ReviewStatus.PENDING.value:
            return PublishVerdict.REVIEW_PENDING
        if review.status == ReviewStatus.REJECTED.value:
            return PublishVerdict.REVIEW_REJECTED
        if review.status != ReviewStatus.APPROVED.value:
            return PublishVerdict.NO_REVIEW

        try:
            updated_at = self.document_store.get_updated_at(content_type, document_id, locale)
        except DocumentStoreError:
            if not self.config.gate_allow_on_lookup_error:
                logger.error(
                    "Publish gate could not read %s:%s@%s, failing closed",
                    content_type, document_id, locale,
                )
                raise
            logger.warning(
                "Publish gate could not read %s:%s@%s, allowing approved review",
                content_type, document_id, locale,
            )
            return PublishVerdict.ALLOW

        if updated_at is not None and review.reviewed_at is not None:
            if _as_utc(updated_at) > _as_utc(review.reviewed_at):
                return PublishVerdict.MODIFIED_AFTER_APPROVAL
        return PublishVerdict.ALLOW

    def check(self, content_type: str, document_id: str, locale: str, user=None) -> None:
        """
        Raise ``PublishBlockedError`` unless publishing is allowed.

        Users holding ``reviews:publish_without_review`` bypass the gate.
        """
        if user is not None and has_permission(user, PUBLISH_WITHOUT_REVIEW):
            logger.info("Publish gate bypassed by %s for %s:%s@%s", user.id, content_type, document_id, locale)
            return

        verdict = self.evaluate(content_type, document_id, locale)
        if verdict is not PublishVerdict.ALLOW:
            logger.info("Publish blocked for %s:%s@%s: %s", content_type, document_id, locale, verdict.value)
            raise PublishBlockedError(block_reason_message(verdict), verdict)
