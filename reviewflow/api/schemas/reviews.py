"""Request and response schemas for review workflow endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import AliasChoices, Field

from reviewflow.api.schemas.common import CamelModel, Pagination


# Requests

class AssignRequest(CamelModel):
    assigned_content_type: Optional[str] = None
    assigned_document_id: Optional[str] = None
    locale: Optional[str] = None
    assigned_to: Optional[UUID] = None
    comments: Optional[str] = None


class AssignMultiLocaleRequest(CamelModel):
    assigned_content_type: Optional[str] = None
    assigned_document_id: Optional[str] = None
    locales: List[str] = []
    assigned_to: Optional[UUID] = None
    comments: Optional[str] = None


class BulkDocument(CamelModel):
    document_id: str
    locale: Optional[str] = None


class BulkAssignRequest(CamelModel):
    assigned_content_type: Optional[str] = None
    assigned_to: Optional[UUID] = None
    comments: Optional[str] = None
    documents: List[BulkDocument] = []


class ApproveRequest(CamelModel):
    comment: Optional[str] = None


class RejectRequest(CamelModel):
    rejection_reason: Optional[str] = None


class ReRequestRequest(CamelModel):
    comment: Optional[str] = None


class BatchStatusRequest(CamelModel):
    document_ids: List[str] = []


class FieldCommentCreate(CamelModel):
    review_document_id: UUID
    field_name: Optional[str] = None
    content: Optional[str] = None
    locale: Optional[str] = None


# Responses

class UserSummary(CamelModel):
    id: UUID
    name: Optional[str] = None
    email: str


class CommentResponse(CamelModel):
    id: UUID
    content: str
    comment_type: str
    author_id: UUID
    author: Optional[UserSummary] = None
    field_name: Optional[str] = None
    resolved: bool = False
    created_at: datetime


class ReviewResponse(CamelModel):
    # The review's own id is exposed as documentId
    document_id: UUID = Field(
        validation_alias=AliasChoices("id", "documentId"), serialization_alias="documentId"
    )
    assigned_content_type: str
    assigned_document_id: str
    locale: str
    status: str
    assigned_to: Optional[UserSummary] = None
    assigned_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    comments: List[CommentResponse] = []
    document_title: Optional[str] = None
    rejection_reason: Optional[str] = None


class LocaleFailure(CamelModel):
    locale: str
    error: str


class MultiLocaleResult(CamelModel):
    success: List[str] = []
    failed: List[LocaleFailure] = []


class DocumentFailure(CamelModel):
    document_id: Optional[str] = None
    locale: Optional[str] = None
    error: str


class BulkAssignResult(CamelModel):
    success: List[str] = []
    failed: List[DocumentFailure] = []


class ConfigResponse(CamelModel):
    content_types: List[str]


class BulkAssignPermissionResponse(CamelModel):
    can_bulk_assign: bool


class TaskCountResponse(CamelModel):
    count: int


class SortedEntry(CamelModel):
    document_id: str
    status: Optional[str] = None


class SortedResponse(CamelModel):
    results: List[SortedEntry]
    pagination: Pagination


class PublishCheckResponse(CamelModel):
    allowed: bool
    verdict: str
    message: Optional[str] = None
