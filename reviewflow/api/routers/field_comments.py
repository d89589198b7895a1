"""Field comment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from reviewflow.api.deps import get_current_user, get_db, get_events, transaction
from reviewflow.api.schemas.common import ErrorResponse
from reviewflow.api.schemas.reviews import CommentResponse, FieldCommentCreate
from reviewflow.core.rbac import require_permission
from reviewflow.core.rbac.permissions import REVIEWS_READ
from reviewflow.core.review import FieldCommentService, ReviewEvents
from reviewflow.db.models import User

router = APIRouter(
    prefix="/review-workflow/field-comments",
    tags=["field-comments"],
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409)},
)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
@require_permission(REVIEWS_READ)
async def add_field_comment(
    body: FieldCommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: ReviewEvents = Depends(get_events),
):
    """Attach a reviewer note to one field of the document under review."""
    service = FieldCommentService(db)
    with transaction(db, events):
        comment = service.add_field_comment(
            body.review_document_id,
            body.field_name,
            current_user.id,
            body.content,
            locale=body.locale,
        )
    return CommentResponse.model_validate(comment)


@router.put("/{comment_id}/resolve", response_model=CommentResponse)
@require_permission(REVIEWS_READ)
async def resolve_field_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: ReviewEvents = Depends(get_events),
):
    """Toggle the resolved flag of a field comment."""
    service = FieldCommentService(db)
    with transaction(db, events):
        comment = service.resolve_field_comment(comment_id, current_user.id)
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
@require_permission(REVIEWS_READ)
async def delete_field_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    events: ReviewEvents = Depends(get_events),
):
    """Delete a field comment written by the caller."""
    service = FieldCommentService(db)
    with transaction(db, events):
        service.delete_field_comment(comment_id, current_user.id)
