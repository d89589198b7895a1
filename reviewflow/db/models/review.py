"""Review workflow database models.

Stores one review row per assignment event and the comment trail attached to it.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text, Index, Uuid, text
from sqlalchemy.orm import relationship

from reviewflow.db.base import Base


class Review(Base):
    """
    A review request for one localized revision of a document.

    The current review for a (content type, document, locale) key is the most
    recently created row for that key. At most one row per key may be pending,
    enforced by the partial unique index below.
    """
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Reviewed document (lives in the host content store)
    assigned_content_type = Column(String(255), nullable=False)
    assigned_document_id = Column(String(255), nullable=False)
    locale = Column(String(35), nullable=False)

    # Workflow state
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Parties
    assigned_to_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    assigned_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    reviewed_at = Column(DateTime, nullable=True)

    # Relationships
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    assigned_by = relationship("User", foreign_keys=[assigned_by_id])
    comments = relationship(
        "ReviewComment",
        back_populates="review",
        order_by="ReviewComment.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index(
            "ix_reviews_key_created_at",
            "assigned_content_type", "assigned_document_id", "locale", "created_at",
        ),
        Index(
            "uq_reviews_pending_key",
            "assigned_content_type", "assigned_document_id", "locale",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Review {self.assigned_content_type}:{self.assigned_document_id}"
            f"@{self.locale} [{self.status}]>"
        )


class ReviewComment(Base):
    """
    Annotation attached to a review.

    Non field comments form an append-only trail. Field comments are bound to
    one named field and can be resolved, deleted, or purged on approval.
    """
    __tablename__ = "review_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    comment_type = Column(String(20), nullable=False)
    author_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # Field comments only
    field_name = Column(String(255), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    review = relationship("Review", back_populates="comments")
    author = relationship("User")

    def __repr__(self) -> str:
        return f"<ReviewComment {self.comment_type} on {self.review_id}>"
