"""Adapters for the host document store.

The workflow never owns document content. It needs four read-only answers
from the host: when a localized document was last modified, which locales a
document exists in, a human readable title, and the ids of every document of
a content type. ``HttpDocumentStore`` asks the host content API over HTTP;
``InMemoryDocumentStore`` backs embedded use and tests.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx

from reviewflow.core.config import Settings
from reviewflow.core.review.errors import DocumentStoreError

logger = logging.getLogger(__name__)

# Fields tried, in order, when deriving a document title
TITLE_FIELDS = ("title", "name", "displayName", "label", "heading", "subject")


def pick_title(document: Dict[str, Any]) -> Optional[str]:
    for field in TITLE_FIELDS:
        value = document.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise DocumentStoreError(f"Document store sent an invalid timestamp {value!r}") from e


class DocumentStore(ABC):
    """Read-only view of the host content store."""

    @abstractmethod
    def get_updated_at(
        self, content_type: str, document_id: str, locale: str
    ) -> Optional[datetime]:
        """Modification time of the draft revision, or None if unknown."""

    @abstractmethod
    def list_locales(self, content_type: str, document_id: str) -> List[str]:
        """Locales the document exists in."""

    @abstractmethod
    def get_document(
        self, content_type: str, document_id: str, locale: str
    ) -> Optional[Dict[str, Any]]:
        """Raw draft document, or None when it does not exist."""

    @abstractmethod
    def list_document_ids(self, content_type: str, locale: str) -> List[str]:
        """Ids of every document of ``content_type`` in ``locale``."""

    def get_title(self, content_type: str, document_id: str, locale: str) -> Optional[str]:
        """Best-effort title for list views. Lookup failures yield None."""
        try:
            document = self.get_document(content_type, document_id, locale)
        except DocumentStoreError as e:
            logger.warning(
                "Title lookup failed for %s:%s@%s: %s", content_type, document_id, locale, e
            )
            return None
        if not document:
            return None
        return pick_title(document)


class HttpDocumentStore(DocumentStore):
    """
    Document store backed by the host content API.

    Expected endpoints, relative to ``base_url``:
    - ``GET /documents/{content_type}/{document_id}?locale=..`` → document JSON
      including ``updatedAt``
    - ``GET /documents/{content_type}/{document_id}/locales`` → ``["en", ...]``
    - ``GET /documents/{content_type}?locale=..&fields=documentId`` →
      ``[{"documentId": ...}, ...]``
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpDocumentStore":
        return cls(
            settings.document_store_url,
            token=settings.document_store_token,
            timeout=settings.document_store_timeout,
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise DocumentStoreError(f"Document store request failed: {e}") from e
        if response.status_code == 404:
            return None
        if response.is_error:
            raise DocumentStoreError(
                f"Document store returned {response.status_code} for {path}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise DocumentStoreError(f"Document store returned invalid JSON for {path}") from e

    def get_document(self, content_type, document_id, locale):
        return self._get(f"/documents/{content_type}/{document_id}", {"locale": locale})

    def get_updated_at(self, content_type, document_id, locale):
        document = self.get_document(content_type, document_id, locale)
        if not document:
            return None
        return parse_timestamp(document.get("updatedAt"))

    def list_locales(self, content_type, document_id):
        return self._get(f"/documents/{content_type}/{document_id}/locales") or []

    def list_document_ids(self, content_type, locale):
        documents = self._get(
            f"/documents/{content_type}", {"locale": locale, "fields": "documentId"}
        ) or []
        return [d["documentId"] for d in documents if d.get("documentId")]


class InMemoryDocumentStore(DocumentStore):
    """Document store holding documents in a dict keyed by (type, id, locale)."""

    def __init__(self):
        self._documents: Dict[Tuple[str, str, str], Dict[str, Any]] = {}

    def put(
        self,
        content_type: str,
        document_id: str,
        locale: str,
        *,
        updated_at: Optional[datetime] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        document = {"documentId": document_id, "locale": locale, **fields}
        document["updatedAt"] = updated_at or datetime.utcnow()
        self._documents[(content_type, document_id, locale)] = document
        return document

    def get_document(self, content_type, document_id, locale):
        return self._documents.get((content_type, document_id, locale))

    def get_updated_at(self, content_type, document_id, locale):
        document = self.get_document(content_type, document_id, locale)
        return parse_timestamp(document["updatedAt"]) if document else None

    def list_locales(self, content_type, document_id):
        return sorted(
            locale for (ct, doc_id, locale) in self._documents
            if ct == content_type and doc_id == document_id
        )

    def list_document_ids(self, content_type, locale):
        return [
            doc_id for (ct, doc_id, loc) in self._documents
            if ct == content_type and loc == locale
        ]
