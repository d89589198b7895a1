"""Server-side review status aggregation for list views."""

import math
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from reviewflow.db.repositories.reviews import ReviewRepository

from .states import NO_REVIEW_SORT_ORDER, STATUS_SORT_ORDER

if TYPE_CHECKING:
    from reviewflow.services.document_store import DocumentStore


class StatusAggregator:
    """Answers "what is the review status of these documents" in one round trip."""

    def __init__(self, db: Session, document_store: Optional["DocumentStore"] = None):
        self.reviews = ReviewRepository(db)
        self.document_store = document_store

    def statuses_for(
        self, content_type: str, locale: str, document_ids: Iterable[str]
    ) -> Dict[str, Optional[str]]:
        """Map every requested id to the status of its current review, or None."""
        return self.reviews.latest_statuses(content_type, locale, document_ids)

    def sort_by_status(
        self,
        content_type: str,
        locale: str,
        *,
        direction: str = "asc",
        page: int = 1,
        page_size: int = 10,
    ) -> Dict[str, Any]:
        """
        Order every document of ``content_type`` by review status and return one page.

        Ascending order is approved, pending, rejected, then documents without
        a review. The sort is stable, so documents with equal status keep the
        order the document store returned them in.
        """
        if self.document_store is None:
            raise RuntimeError("sort_by_status requires a document store")

        document_ids = self.document_store.list_document_ids(content_type, locale)
        statuses = self.statuses_for(content_type, locale, document_ids)

        def weight(doc_id: str) -> int:
            return STATUS_SORT_ORDER.get(statuses.get(doc_id), NO_REVIEW_SORT_ORDER)

        ordered: List[str] = sorted(
            document_ids, key=weight, reverse=direction.lower() == "desc"
        )
        start = (page - 1) * page_size
        page_ids = ordered[start:start + page_size]

        return {
            "results": [{"document_id": d, "status": statuses.get(d)} for d in page_ids],
            "pagination": {
                "page": page,
                "page_size": page_size,
                "page_count": math.ceil(len(ordered) / page_size) if page_size else 0,
                "total": len(ordered),
            },
        }
