"""Adapters for collaborators outside the review workflow."""

from reviewflow.services.document_store import (
    DocumentStore,
    HttpDocumentStore,
    InMemoryDocumentStore,
)
from reviewflow.services.reviewer_directory import ReviewerDirectory

__all__ = [
    "DocumentStore",
    "HttpDocumentStore",
    "InMemoryDocumentStore",
    "ReviewerDirectory",
]
