"""Review workflow states and transitions.

State Machine Diagram:

    ┌──────────┐
    │   NONE   │  (no review for the key)
    └────┬─────┘
         │ assign
    ┌────▼─────┐   reject   ┌──────────┐
    │ PENDING  │───────────►│ REJECTED │
    └────┬─────┘◄───────────┴──────────┘
         │        re_request
         │ approve
    ┌────▼─────┐
    │ APPROVED │
    └──────────┘

A new assignment may be created for a key whose current review is approved or
rejected; it starts a fresh review row rather than mutating the old one.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class ReviewStatus(str, Enum):
    """Persisted states of a review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    """Actions that trigger state transitions."""

    ASSIGN = "assign"            # NONE → PENDING
    APPROVE = "approve"          # PENDING → APPROVED
    REJECT = "reject"            # PENDING → REJECTED
    RE_REQUEST = "re_request"    # REJECTED → PENDING


class CommentType(str, Enum):
    """Kinds of annotations attached to a review."""

    ASSIGNMENT = "assignment"
    REJECTION = "rejection"
    RE_REQUEST = "re-request"
    APPROVAL = "approval"
    GENERAL = "general"
    FIELD_COMMENT = "field-comment"


class Party(str, Enum):
    """Which side of the review may perform an action."""

    REVIEWER = "assigned_to"
    REQUESTER = "assigned_by"


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: Optional[ReviewStatus]
    to_state: ReviewStatus
    action: ReviewAction
    actor: Optional[Party] = None
    requires_comment: bool = False
    comment_type: Optional[CommentType] = None


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(None, ReviewStatus.PENDING, ReviewAction.ASSIGN,
                   comment_type=CommentType.ASSIGNMENT),
    TransitionRule(ReviewStatus.PENDING, ReviewStatus.APPROVED, ReviewAction.APPROVE,
                   Party.REVIEWER, comment_type=CommentType.APPROVAL),
    TransitionRule(ReviewStatus.PENDING, ReviewStatus.REJECTED, ReviewAction.REJECT,
                   Party.REVIEWER, requires_comment=True, comment_type=CommentType.REJECTION),
    TransitionRule(ReviewStatus.REJECTED, ReviewStatus.PENDING, ReviewAction.RE_REQUEST,
                   Party.REQUESTER, requires_comment=True, comment_type=CommentType.RE_REQUEST),
]

# Lookup table keyed by (from_state, action)
TRANSITION_TARGETS: Dict[tuple[Optional[ReviewStatus], ReviewAction], TransitionRule] = {
    (rule.from_state, rule.action): rule for rule in TRANSITION_RULES
}

# States that carry a reviewed_at timestamp
REVIEWED_STATES: Set[ReviewStatus] = {
    ReviewStatus.APPROVED,
    ReviewStatus.REJECTED,
}

# Task-center projection for requesters
OPEN_STATES: Set[ReviewStatus] = {
    ReviewStatus.PENDING,
    ReviewStatus.REJECTED,
}

# Sort weight used when ordering list views by review status; no review sorts last
STATUS_SORT_ORDER: Dict[Optional[str], int] = {
    ReviewStatus.APPROVED.value: 1,
    ReviewStatus.PENDING.value: 2,
    ReviewStatus.REJECTED.value: 3,
}
NO_REVIEW_SORT_ORDER = 4


def can_transition(from_state: Optional[ReviewStatus], action: ReviewAction) -> bool:
    """Check if an action is valid from the given state (None = no review)."""
    return (from_state, action) in TRANSITION_TARGETS


def get_transition_rule(
    from_state: Optional[ReviewStatus], action: ReviewAction
) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, action))


def get_target_state(
    from_state: Optional[ReviewStatus], action: ReviewAction
) -> Optional[ReviewStatus]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, action)
    return rule.to_state if rule else None
