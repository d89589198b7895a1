"""Review workflow API endpoints."""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from reviewflow.api.deps import (
    get_current_user,
    get_db,
    get_document_store,
    get_events,
    get_workflow_config,
    transaction,
)
from reviewflow.api.schemas.common import ErrorResponse
from reviewflow.api.schemas.reviews import (
    ApproveRequest,
    AssignMultiLocaleRequest,
    AssignRequest,
    BatchStatusRequest,
    BulkAssignPermissionResponse,
    BulkAssignRequest,
    BulkAssignResult,
    ConfigResponse,
    MultiLocaleResult,
    PublishCheckResponse,
    ReRequestRequest,
    RejectRequest,
    ReviewResponse,
    SortedResponse,
    TaskCountResponse,
    UserSummary,
)
from reviewflow.core.config import WorkflowConfig
from reviewflow.core.rbac import has_permission, require_permission
from reviewflow.core.rbac.permissions import (
    REVIEWS_APPROVE,
    REVIEWS_ASSIGN,
    REVIEWS_BULK_ASSIGN,
    REVIEWS_PUBLISH_WITHOUT_REVIEW,
    REVIEWS_READ,
    REVIEWS_REJECT,
)
from reviewflow.core.review import (
    PublishGate,
    PublishVerdict,
    ReviewEvents,
    ReviewService,
    StatusAggregator,
    latest_rejection_reason,
)
from reviewflow.core.review.gate import block_reason_message
from reviewflow.db.models import Review, User
from reviewflow.services.document_store import DocumentStore
from reviewflow.services.reviewer_directory import ReviewerDirectory

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/review-workflow",
    tags=["reviews"],
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 502)},
)


def _review_response(
    review: Review, document_store: Optional[DocumentStore] = None
) -> ReviewResponse:
    response = ReviewResponse.model_validate(review)
    response.rejection_reason = latest_rejection_reason(review)
    if document_store is not None:
        response.document_title = document_store.get_title(
            review.assigned_content_type, review.assigned_document_id, review.locale
        )
    return response


# Assignment

@router.post("/assign", response_model=ReviewResponse)
@require_permission(REVIEWS_ASSIGN)
async def assign_review(
    body: AssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Request a review of one localized document."""
    service = ReviewService(db, config)
    with transaction(db, events):
        review = service.assign(
            body.assigned_content_type,
            body.assigned_document_id,
            body.locale,
            body.assigned_to,
            current_user.id,
            body.comments,
        )
    return _review_response(review)


@router.post("/assign-multi-locale", response_model=MultiLocaleResult)
@require_permission(REVIEWS_ASSIGN)
async def assign_multi_locale(
    body: AssignMultiLocaleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Request one review per locale; failures are reported per locale."""
    service = ReviewService(db, config)
    with transaction(db, events):
        result = service.assign_multi_locale(
            body.assigned_content_type,
            body.assigned_document_id,
            body.locales,
            body.assigned_to,
            current_user.id,
            body.comments,
        )
    return MultiLocaleResult.model_validate(result)


@router.post("/bulk-assign", response_model=BulkAssignResult)
@require_permission(REVIEWS_BULK_ASSIGN)
async def bulk_assign(
    body: BulkAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Request reviews for many documents of one content type."""
    service = ReviewService(db, config)
    with transaction(db, events):
        result = service.bulk_assign(
            body.assigned_content_type,
            [{"document_id": d.document_id, "locale": d.locale} for d in body.documents],
            body.assigned_to,
            current_user.id,
            body.comments,
        )
    return BulkAssignResult.model_validate(result)


# Transitions

@router.put("/approve/{review_id}/{locale}", response_model=ReviewResponse)
@require_permission(REVIEWS_APPROVE)
async def approve_review(
    review_id: UUID,
    locale: str,
    body: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Approve a pending review."""
    service = ReviewService(db, config)
    with transaction(db, events):
        review = service.approve(
            review_id, locale, current_user.id, body.comment if body else None
        )
    return _review_response(review)


@router.put("/reject/{review_id}/{locale}", response_model=ReviewResponse)
@require_permission(REVIEWS_REJECT)
async def reject_review(
    review_id: UUID,
    locale: str,
    body: RejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Reject a pending review with a mandatory reason."""
    service = ReviewService(db, config)
    with transaction(db, events):
        review = service.reject(review_id, locale, current_user.id, body.rejection_reason)
    return _review_response(review)


@router.put("/re-request/{review_id}/{locale}", response_model=ReviewResponse)
@require_permission(REVIEWS_ASSIGN)
async def re_request_review(
    review_id: UUID,
    locale: str,
    body: ReRequestRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    events: ReviewEvents = Depends(get_events),
):
    """Send a rejected review back to its reviewer."""
    service = ReviewService(db, config)
    with transaction(db, events):
        review = service.re_request(review_id, locale, current_user.id, body.comment)
    return _review_response(review)


# Status

@router.get("/status/{content_type}/{document_id}/{locale}", response_model=Optional[ReviewResponse])
@require_permission(REVIEWS_READ)
async def get_review_status(
    content_type: str,
    document_id: str,
    locale: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Current review for a localized document, or null."""
    review = ReviewService(db).get_current(content_type, document_id, locale)
    return _review_response(review) if review else None


@router.post("/status/batch/{content_type}/{locale}", response_model=Dict[str, Optional[str]])
@require_permission(REVIEWS_READ)
async def get_batch_status(
    content_type: str,
    locale: str,
    body: BatchStatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Map each requested document id to its current review status or null."""
    return StatusAggregator(db).statuses_for(content_type, locale, body.document_ids)


@router.get("/sorted/{content_type}/{locale}", response_model=SortedResponse)
@require_permission(REVIEWS_READ)
def sorted_by_status(
    content_type: str,
    locale: str,
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_document_store),
):
    """Documents of a content type ordered by review status, one page at a time."""
    aggregator = StatusAggregator(db, document_store)
    result = aggregator.sort_by_status(
        content_type, locale, direction=direction, page=page, page_size=page_size
    )
    return SortedResponse.model_validate(result)


# Task center

@router.get("/pending", response_model=List[ReviewResponse])
@require_permission(REVIEWS_READ)
def list_pending(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_document_store),
):
    """Pending reviews assigned to the caller."""
    reviews = ReviewService(db).list_pending(current_user.id)
    return [_review_response(r, document_store) for r in reviews]


@router.get("/rejected", response_model=List[ReviewResponse])
@require_permission(REVIEWS_READ)
def list_rejected(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_document_store),
):
    """Reviews the caller rejected, most recent first."""
    reviews = ReviewService(db).list_rejected(current_user.id)
    return [_review_response(r, document_store) for r in reviews]


@router.get("/assigned-by-me", response_model=List[ReviewResponse])
@require_permission(REVIEWS_READ)
def list_assigned_by_me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_document_store),
):
    """Open reviews the caller requested."""
    reviews = ReviewService(db).list_assigned_by(current_user.id)
    return [_review_response(r, document_store) for r in reviews]


@router.get("/task-count", response_model=TaskCountResponse)
@require_permission(REVIEWS_READ)
async def task_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reviews waiting on the caller."""
    return TaskCountResponse(count=ReviewService(db).task_count(current_user.id))


# Lookups

@router.get("/available-locales/{content_type}/{document_id}", response_model=List[str])
@require_permission(REVIEWS_READ)
def available_locales(
    content_type: str,
    document_id: str,
    current_user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_document_store),
):
    """Locales the document exists in."""
    return document_store.list_locales(content_type, document_id)


@router.get("/reviewers", response_model=List[UserSummary])
@require_permission(REVIEWS_ASSIGN, REVIEWS_BULK_ASSIGN)
async def list_reviewers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Users who may be assigned a review."""
    return [UserSummary.model_validate(u) for u in ReviewerDirectory(db).list_reviewers()]


@router.get("/config", response_model=ConfigResponse)
@require_permission(REVIEWS_READ)
async def get_config(
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """Content types the workflow applies to; empty means all."""
    return ConfigResponse(content_types=list(config.content_types))


@router.get("/permissions/bulk-assign", response_model=BulkAssignPermissionResponse)
async def can_bulk_assign(current_user: User = Depends(get_current_user)):
    return BulkAssignPermissionResponse(
        can_bulk_assign=has_permission(current_user, REVIEWS_BULK_ASSIGN)
    )


# Publish gate

@router.get("/publish-check/{content_type}/{document_id}/{locale}", response_model=PublishCheckResponse)
@require_permission(REVIEWS_READ)
def publish_check(
    content_type: str,
    document_id: str,
    locale: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    config: WorkflowConfig = Depends(get_workflow_config),
    document_store: DocumentStore = Depends(get_document_store),
):
    """
    Whether the caller may publish the document now.

    Callers holding ``reviews:publish_without_review`` are always allowed.
    """
    if has_permission(current_user, REVIEWS_PUBLISH_WITHOUT_REVIEW):
        return PublishCheckResponse(allowed=True, verdict=PublishVerdict.ALLOW.value)

    verdict = PublishGate(db, document_store, config).evaluate(content_type, document_id, locale)
    return PublishCheckResponse(
        allowed=verdict is PublishVerdict.ALLOW,
        verdict=verdict.value,
        message=block_reason_message(verdict),
    )
