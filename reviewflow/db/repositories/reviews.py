"""Review repository.

All reads of "the current review" go through ``latest_for_key`` or
``latest_statuses``: current is defined by ``created_at`` recency only.
"""

from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from reviewflow.db.models import Review


class ReviewRepository:
    """Persists and queries review rows."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Review).options(
            selectinload(Review.assigned_to),
            selectinload(Review.assigned_by),
            selectinload(Review.comments),
        )

    def add(self, review: Review) -> Review:
        self.db.add(review)
        self.db.flush()
        return review

    def get(self, review_id: UUID, *, for_update: bool = False) -> Optional[Review]:
        query = self._query().filter(Review.id == review_id)
        if for_update:
            query = query.with_for_update(of=Review)
        return query.first()

    def latest_for_key(
        self, content_type: str, document_id: str, locale: str
    ) -> Optional[Review]:
        """Most recently created review for the key, or None."""
        return (
            self._query()
            .filter(
                and_(
                    Review.assigned_content_type == content_type,
                    Review.assigned_document_id == document_id,
                    Review.locale == locale,
                )
            )
            .order_by(Review.created_at.desc())
            .first()
        )

    def latest_statuses(
        self, content_type: str, locale: str, document_ids: Iterable[str]
    ) -> Dict[str, Optional[str]]:
        """
        Status of the most recent review per document id, in one query.

        Every requested id is present in the result; ids without a review map
        to None.
        """
        ids = list(dict.fromkeys(document_ids))
        statuses: Dict[str, Optional[str]] = {doc_id: None for doc_id in ids}
        if not ids:
            return statuses

        ranked = (
            select(
                Review.assigned_document_id.label("document_id"),
                Review.status.label("status"),
                func.row_number()
                .over(
                    partition_by=Review.assigned_document_id,
                    order_by=Review.created_at.desc(),
                )
                .label("position"),
            )
            .where(
                and_(
                    Review.assigned_content_type == content_type,
                    Review.locale == locale,
                    Review.assigned_document_id.in_(ids),
                )
            )
            .subquery()
        )
        rows = self.db.execute(
            select(ranked.c.document_id, ranked.c.status).where(ranked.c.position == 1)
        ).all()
        for document_id, status in rows:
            statuses[document_id] = status
        return statuses

    def list_for_reviewer(self, user_id: UUID, status: str) -> List[Review]:
        """Reviews assigned to ``user_id`` in ``status``, most recent activity first."""
        order = Review.reviewed_at.desc() if status != "pending" else Review.created_at.desc()
        return (
            self._query()
            .filter(and_(Review.assigned_to_id == user_id, Review.status == status))
            .order_by(order, Review.created_at.desc())
            .all()
        )

    def list_for_requester(self, user_id: UUID, statuses: Iterable[str]) -> List[Review]:
        """Reviews requested by ``user_id`` in any of ``statuses``, newest first."""
        return (
            self._query()
            .filter(
                and_(
                    Review.assigned_by_id == user_id,
                    Review.status.in_(list(statuses)),
                )
            )
            .order_by(Review.created_at.desc())
            .all()
        )

    def count_for_reviewer(self, user_id: UUID, status: str) -> int:
        return (
            self.db.query(func.count(Review.id))
            .filter(and_(Review.assigned_to_id == user_id, Review.status == status))
            .scalar()
        )

    def count_for_requester(self, user_id: UUID, status: str) -> int:
        return (
            self.db.query(func.count(Review.id))
            .filter(and_(Review.assigned_by_id == user_id, Review.status == status))
            .scalar()
        )
