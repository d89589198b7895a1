"""Review state machine implementation.

Validates a single transition for one review: legal source state, acting
party and required comment text. Persistence and side effects live in
``ReviewService``; the machine only decides.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from .states import (
    ReviewStatus,
    ReviewAction,
    TransitionRule,
    Party,
    REVIEWED_STATES,
    get_transition_rule,
)
from .errors import AuthorizationError, InvalidStateError, ValidationError


_ACTION_VERBS = {
    ReviewAction.APPROVE: "approve",
    ReviewAction.REJECT: "reject",
    ReviewAction.RE_REQUEST: "re-request",
}

_REQUIRED_STATE_MESSAGES = {
    ReviewAction.APPROVE: "Only pending reviews can be approved",
    ReviewAction.REJECT: "Only pending reviews can be rejected",
    ReviewAction.RE_REQUEST: "Only rejected reviews can be re-requested",
}


def is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


class ReviewStateMachine:
    """
    State machine for a single review.

    Checks, in order:
    - the acting user is the party the rule names (reviewer or requester)
    - the transition is legal from the current state
    - required comment text is present

    Args:
        review_id: ID of the review row
        current_state: Current persisted status
        assigned_to: Reviewer user ID
        assigned_by: Requester user ID
    """

    def __init__(
        self,
        review_id: UUID,
        current_state: ReviewStatus,
        *,
        assigned_to: UUID,
        assigned_by: UUID,
    ):
        self.review_id = review_id
        self._state = current_state
        self.assigned_to = assigned_to
        self.assigned_by = assigned_by

    @property
    def state(self) -> ReviewStatus:
        """Current state of the review."""
        return self._state

    def can_perform(self, action: ReviewAction, user_id: UUID) -> bool:
        """Check whether ``user_id`` may perform ``action`` right now."""
        rule = get_transition_rule(self._state, action)
        if rule is None:
            return False
        return self._is_actor(rule, user_id)

    def transition(
        self,
        action: ReviewAction,
        *,
        user_id: UUID,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Validate and apply a transition.

        Returns:
            Transition record with from/to states and the reviewed_at value
            the review must carry afterwards.

        Raises:
            AuthorizationError: caller is not the required party
            InvalidStateError: transition is not legal from the current state
            ValidationError: a required comment is blank
        """
        party = _party_for(action)
        if party is not None and self._party_id(party) != user_id:
            raise AuthorizationError(
                f"Only the {_party_label(party)} can {_ACTION_VERBS[action]} this review"
            )

        rule = get_transition_rule(self._state, action)
        if rule is None:
            raise InvalidStateError(
                _REQUIRED_STATE_MESSAGES.get(
                    action, f"Cannot {action.value} a review in state {self._state.value}"
                )
            )

        if rule.requires_comment and is_blank(comment):
            raise ValidationError(f"A comment is required to {_ACTION_VERBS[action]} a review")

        from_state = self._state
        self._state = rule.to_state
        return {
            "review_id": self.review_id,
            "action": action,
            "from_state": from_state,
            "to_state": rule.to_state,
            "comment_type": rule.comment_type,
            "reviewed_at": datetime.utcnow() if rule.to_state in REVIEWED_STATES else None,
        }

    def _is_actor(self, rule: TransitionRule, user_id: UUID) -> bool:
        if rule.actor is None:
            return True
        return self._party_id(rule.actor) == user_id

    def _party_id(self, party: Party) -> UUID:
        return self.assigned_to if party is Party.REVIEWER else self.assigned_by


def _party_for(action: ReviewAction) -> Optional[Party]:
    # Every rule for a given action names the same party
    for state in (ReviewStatus.PENDING, ReviewStatus.REJECTED):
        rule = get_transition_rule(state, action)
        if rule is not None:
            return rule.actor
    return None


def _party_label(party: Party) -> str:
    return "assigned reviewer" if party is Party.REVIEWER else "user who requested the review"
