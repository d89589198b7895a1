"""Review workflow module for reviewflow.

Implements the review state machine, field comment gating, the publish gate
and status aggregation.
"""

from .states import ReviewStatus, ReviewAction, CommentType, TRANSITION_RULES
from .machine import ReviewStateMachine
from .service import ReviewService, latest_rejection_reason
from .field_comments import FieldCommentService
from .gate import PublishGate, PublishVerdict
from .status import StatusAggregator
from .events import ReviewEvents, review_events

__all__ = [
    "ReviewStatus",
    "ReviewAction",
    "CommentType",
    "TRANSITION_RULES",
    "ReviewStateMachine",
    "ReviewService",
    "latest_rejection_reason",
    "FieldCommentService",
    "PublishGate",
    "PublishVerdict",
    "StatusAggregator",
    "ReviewEvents",
    "review_events",
]
